"""
Prompt composer - renders the system prompt and transcript sent to the model.

Rendering is deterministic: the same profile, context and messages always
produce the same text.
"""

from typing import List, Optional, Sequence

import pytz

from prompts import (
    COMPANION_SYSTEM_PROMPT,
    CONVERSATION_RULES,
    GENERATION_PROMPT,
    NO_EXPERIENCES_PLACEHOLDER,
    NO_FACTS_PLACEHOLDER,
    NO_RELEVANT_PLACEHOLDER,
)
from schemas import (
    ChatbotPersonaSchema,
    ContextualMemorySchema,
    ConversationContextSchema,
    IdentitySchema,
    MemorySchema,
    MessageSchema,
    PreferencesSchema,
)

RECENT_EXPERIENCE_COUNT = 3


class PromptComposer:
    """Builds model prompts from persona, profile and conversation state."""

    def __init__(self, timezone: str = "UTC"):
        self.tz = pytz.timezone(timezone)

    def compose(
        self,
        persona: Optional[ChatbotPersonaSchema],
        profile: IdentitySchema,
        preferences: PreferencesSchema,
        memory: MemorySchema,
        context: Optional[ConversationContextSchema] = None,
        relevant: Optional[ContextualMemorySchema] = None,
    ) -> str:
        """
        Render the system prompt.

        Args:
            persona: Assistant persona (defaults to the standard one)
            profile: User identity section
            preferences: User preferences section
            memory: User memory section; all facts are listed in stored order
            context: Current conversation context
            relevant: Memory selected as relevant to the current message
        """
        persona = persona or ChatbotPersonaSchema()
        context = context or ConversationContextSchema()

        rules = "\n".join(
            f"{i}. {rule.format(persona_name=persona.name)}"
            for i, rule in enumerate(CONVERSATION_RULES, start=1)
        )

        return COMPANION_SYSTEM_PROMPT.format(
            persona_name=persona.name,
            persona_personality=persona.personality,
            persona_backstory=persona.backstory,
            persona_relationship=persona.relationship_with_user,
            user_name=profile.display_name or "friend",
            communication_style=profile.communication_style.value,
            interests=", ".join(profile.interests) or "getting to know them better",
            response_style=preferences.response_style.value,
            conversation_length=preferences.conversation_length.value,
            facts=self._facts(memory),
            relevant=self._relevant(relevant),
            experiences=self._experiences(memory),
            conversation_style=context.conversation_style.value,
            user_mood=context.user_mood or "neutral",
            current_topic=context.current_topic or "general conversation",
            rules=rules,
        )

    def format_transcript(self, messages: Sequence[MessageSchema]) -> str:
        """Chronological '[HH:MM:SS] User/You: text' lines in the configured timezone."""
        lines = []
        for message in sorted(messages, key=lambda m: m.timestamp):
            local_time = message.timestamp.replace(tzinfo=pytz.utc).astimezone(self.tz)
            role = "User" if message.role == "user" else "You"
            lines.append(f"[{local_time.strftime('%H:%M:%S')}] {role}: {message.content}")
        return "\n".join(lines)

    def generation_prompt(self, system_prompt: str, messages: Sequence[MessageSchema]) -> str:
        """Full payload for the conversation model."""
        return GENERATION_PROMPT.format(
            system_prompt=system_prompt,
            transcript=self.format_transcript(messages),
        )

    @staticmethod
    def _facts(memory: MemorySchema) -> str:
        if not memory.important_facts:
            return NO_FACTS_PLACEHOLDER
        return "\n".join(f"- {f.fact}" for f in memory.important_facts)

    @staticmethod
    def _experiences(memory: MemorySchema) -> str:
        recent = sorted(memory.experiences, key=lambda e: e.date)[-RECENT_EXPERIENCE_COUNT:]
        if not recent:
            return NO_EXPERIENCES_PLACEHOLDER
        return "\n".join(f"- {e.event} ({e.emotion})" for e in recent)

    @staticmethod
    def _relevant(relevant: Optional[ContextualMemorySchema]) -> str:
        if relevant is None:
            return NO_RELEVANT_PLACEHOLDER

        lines: List[str] = [f"- {f.fact}" for f in relevant.facts]
        lines.extend(f"- Interested in {i}" for i in relevant.interests)
        for r in relevant.relationships:
            line = f"- {r.name}"
            if r.relationship:
                line += f" ({r.relationship})"
            if r.details:
                line += f": {r.details}"
            lines.append(line)

        return "\n".join(lines) or NO_RELEVANT_PLACEHOLDER
