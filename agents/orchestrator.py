"""
Conversation Orchestrator - runs one inbound message through the pipeline.

validate -> resolve session -> classify emotion -> load profile -> load history
-> compose prompt -> invoke model -> extract memory -> persist -> merge memory -> respond

Only validation can reject a message. Every later stage degrades (temporary
profile, empty history, fallback reply) instead of failing the request.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from agents.emotion_classifier import EmotionClassifier
from agents.fallback import FallbackResponder
from agents.memory_extractor import ExtractionStrategy, RegexExtractionStrategy
from agents.prompt_composer import PromptComposer
from core import InvalidInputError, LLMServiceError, get_logger
from memory.conversation_service import ConversationService
from memory.profile_service import ProfileService
from schemas import (
    ConversationContextSchema,
    EmotionAnalysisSchema,
    ExtractedMemorySchema,
    MessageSchema,
    ResponseContext,
)
from utils.llm_client import LLMClient

logger = get_logger(__name__)

FALLBACK_NOTE = "The language model is unavailable, so this reply was generated locally."
TEMPORARY_PROFILE_NOTE = "Memory is temporarily unavailable; this conversation will not be remembered."
NOT_SAVED_NOTE = "This message could not be saved."


@dataclass
class ChatResult:
    """Everything the HTTP layer needs to answer POST /api/chat/message."""
    reply: str
    session_id: str
    timestamp: datetime
    emotion: EmotionAnalysisSchema
    context: ResponseContext
    note: Optional[str] = None


def new_session_id() -> str:
    return f"session_{uuid.uuid4().hex}"


class ConversationOrchestrator:
    """
    Coordinates the per-request flow. Holds no conversation state of its own.

    The model client is optional: without it the classifier and extractor use
    their local strategies and replies come from the fallback responder.
    """

    def __init__(
        self,
        profiles: ProfileService,
        conversations: ConversationService,
        llm: Optional[LLMClient] = None,
        classifier: Optional[EmotionClassifier] = None,
        extractor: Optional[ExtractionStrategy] = None,
        composer: Optional[PromptComposer] = None,
        fallback: Optional[FallbackResponder] = None,
        context_limit: int = 10,
        fact_limit: int = 10,
    ):
        self.profiles = profiles
        self.conversations = conversations
        self.llm = llm
        self.classifier = classifier or EmotionClassifier(llm)
        self.extractor = extractor or RegexExtractionStrategy()
        self.composer = composer or PromptComposer()
        self.fallback = fallback or FallbackResponder()
        self.context_limit = context_limit
        self.fact_limit = fact_limit
        logger.info("Conversation orchestrator initialized", llm_enabled=llm is not None)

    async def handle_message(
        self,
        message: Optional[str],
        user_id: Optional[str],
        session_id: Optional[str] = None,
    ) -> ChatResult:
        """
        Process one inbound message and return the reply with its metadata.

        Raises:
            InvalidInputError: message or user id missing
        """
        # 1. Validate
        if not message or not message.strip():
            raise InvalidInputError("message", "message is required")
        if not user_id or not user_id.strip():
            raise InvalidInputError("userId", "userId is required")
        message = message.strip()

        # 2. Resolve session
        session_id = session_id or new_session_id()

        logger.info(
            "Processing message",
            user_id=user_id,
            session_id=session_id,
            message_preview=message[:50],
        )

        notes: List[str] = []

        # 3. Classify emotion
        emotion = await self.classifier.classify(message)

        # 4. Load profile
        profile = await self.profiles.get(user_id)
        if profile.is_temporary:
            notes.append(TEMPORARY_PROFILE_NOTE)

        # 5. Load history
        history = await self.conversations.recent_messages(user_id, session_id, self.context_limit)
        new_session = not history

        user_message = MessageSchema(
            role="user",
            content=message,
            emotion=emotion.emotion,
            sentiment=emotion.sentiment,
        )
        window = (history + [user_message])[-self.context_limit:]

        # 6. Compose prompt
        context = ConversationContextSchema(
            user_mood=emotion.mood,
            conversation_style=profile.profile.communication_style,
            last_interaction=user_message.timestamp,
        )
        system_prompt = self.composer.compose(
            profile.chatbot_persona,
            profile.profile,
            profile.preferences,
            profile.memory,
            context,
            relevant=self.profiles.contextual_memory(profile, message, self.fact_limit),
        )

        # 7. Invoke model
        reply = None
        if self.llm is not None:
            try:
                reply = await self.llm.generate(self.composer.generation_prompt(system_prompt, window))
            except LLMServiceError as e:
                logger.warning("Model reply failed, using fallback", user_id=user_id, error=str(e))
        if reply is None:
            reply = self.fallback.reply(message, profile)
            notes.append(FALLBACK_NOTE)

        # 8. Extract memory over the updated window
        assistant_message = MessageSchema(role="assistant", content=reply)
        updated_window = (window + [assistant_message])[-self.context_limit:]
        extracted = None
        try:
            extracted = await self.extractor.extract(updated_window)
        except Exception as e:
            logger.error("Memory extraction failed", user_id=user_id, error=str(e), exc_info=True)
        topic = self._topic_of(message, extracted)

        # 9. Persist, user message first
        saved = await self.conversations.append_messages(
            user_id,
            session_id,
            [user_message, assistant_message],
            current_topic=topic,
            user_mood=emotion.mood,
            conversation_style=profile.profile.communication_style,
        )
        if saved is None and self.conversations.available:
            notes.append(NOT_SAVED_NOTE)

        # 10. Merge memory and stats
        try:
            await self.profiles.record_exchange(
                user_id,
                emotion,
                extracted=extracted,
                message_count=2,
                new_session=new_session,
                topic=topic,
            )
        except Exception as e:
            logger.error("Memory update failed", user_id=user_id, error=str(e), exc_info=True)

        # 11. Respond
        conversation_length = len(saved.messages) if saved else len(history) + 2
        return ChatResult(
            reply=reply,
            session_id=session_id,
            timestamp=assistant_message.timestamp,
            emotion=emotion,
            context=ResponseContext(
                user_mood=emotion.mood,
                conversation_length=conversation_length,
                conversation_style=profile.profile.communication_style.value,
            ),
            note=" ".join(notes) or None,
        )

    @staticmethod
    def _topic_of(message: str, extracted: Optional[ExtractedMemorySchema]) -> Optional[str]:
        """First extracted interest the user named in this message."""
        if extracted is None:
            return None
        lowered = message.lower()
        return next((interest for interest in extracted.interests if interest.lower() in lowered), None)
