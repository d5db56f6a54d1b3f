"""
Conversation service - message persistence, history and analytics.

Read paths degrade to empty results when the store is unavailable; write
paths log and return None/False. A failed persist must never stop a reply
from reaching the user.

Concurrent appends to the same session are not serialised here: each append
is a read-modify-write of the session record, so two simultaneous requests
for one session can lose a message (last write wins).
"""

import re
import time
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from pydantic import ValidationError

from core import InvalidInputError, get_logger
from memory.cache import SnapshotCache, conversation_key
from memory.stores import STORE_ERRORS, ConversationStore
from schemas import (
    ConversationAnalyticsSchema,
    ConversationSchema,
    EmotionalTrendSchema,
    MessageSchema,
    TopicTrendSchema,
)

logger = get_logger(__name__)

_TIME_RANGE = re.compile(r"^\s*(\d+)\s*d?\s*$", re.IGNORECASE)


def parse_time_range(time_range: str) -> int:
    """Parse '7d' (or '7') into a number of days."""
    match = _TIME_RANGE.match(time_range or "")
    if not match or int(match.group(1)) <= 0:
        raise InvalidInputError("timeRange", "expected a positive number of days such as '7d'")
    return int(match.group(1))


class ConversationService:
    """Conversation records keyed by (user id, session id)."""

    def __init__(self, store: Optional[ConversationStore], cache: Optional[SnapshotCache] = None):
        self.store = store
        self.cache = cache
        # user_id -> monotonic deadline while cached sessions may predate a clear
        self._stale_until: Dict[str, float] = {}

        if store is None:
            logger.warning("Conversation service initialized without a store; history is not kept")

    @property
    def available(self) -> bool:
        return self.store is not None

    # ==================== Writes ====================

    async def append_messages(
        self,
        user_id: str,
        session_id: str,
        messages: Sequence[MessageSchema],
        **context_updates,
    ) -> Optional[ConversationSchema]:
        """
        Append messages in order, creating the session record if absent.

        Extra keyword arguments update the conversation context
        (current_topic, user_mood, conversation_style).

        Returns:
            The saved conversation, or None if it could not be persisted
        """
        if self.store is None:
            return None

        try:
            conversation = await self.store.get(user_id, session_id)
            is_new = conversation is None
            if is_new:
                conversation = ConversationSchema(user_id=user_id, session_id=session_id)
                logger.info("Starting new conversation", user_id=user_id, session_id=session_id)

            for message in messages:
                conversation.add_message(message)
            for field, value in context_updates.items():
                if value is not None:
                    setattr(conversation.context, field, value)

            saved = await self.store.save(conversation)
        except STORE_ERRORS as e:
            logger.warning("Could not save messages", user_id=user_id, session_id=session_id, error=str(e))
            return None

        if is_new:
            # Starting a session ends the user's previous ones
            try:
                await self.store.deactivate_others(user_id, session_id)
            except STORE_ERRORS as e:
                logger.warning("Could not deactivate previous sessions", user_id=user_id, error=str(e))

        await self._cache_set(saved)
        return saved

    async def append_message(
        self, user_id: str, session_id: str, message: MessageSchema
    ) -> Optional[ConversationSchema]:
        return await self.append_messages(user_id, session_id, [message])

    async def update_context(self, user_id: str, session_id: str, **fields) -> Optional[ConversationSchema]:
        if self.store is None:
            return None
        try:
            conversation = await self.store.get(user_id, session_id)
            if conversation is None:
                return None
            for field, value in fields.items():
                setattr(conversation.context, field, value)
            saved = await self.store.save(conversation)
        except STORE_ERRORS as e:
            logger.warning("Could not update conversation context", user_id=user_id, error=str(e))
            return None

        await self._cache_set(saved)
        return saved

    async def summarize(self, user_id: str, session_id: str) -> Optional[str]:
        """Render and store a one-line summary of a session."""
        conversation = await self._load(user_id, session_id)
        if conversation is None or not conversation.messages:
            return None

        topic = conversation.context.current_topic or "general conversation"
        minutes = round((conversation.updated_at - conversation.created_at).total_seconds() / 60)
        summary = (
            f"Conversation with {len(conversation.messages)} messages about {topic}. "
            f"Duration: {minutes} minutes."
        )

        conversation.summary = summary
        try:
            saved = await self.store.save(conversation)
        except STORE_ERRORS as e:
            logger.warning("Could not save conversation summary", user_id=user_id, error=str(e))
            return summary

        await self._cache_set(saved)
        return summary

    async def clear(self, user_id: str, session_id: Optional[str] = None) -> bool:
        """Delete one session, or all of a user's sessions when session_id is None."""
        if self.store is None:
            return False

        try:
            removed = await self.store.delete(user_id, session_id)
        except STORE_ERRORS as e:
            logger.warning("Could not clear conversation", user_id=user_id, session_id=session_id, error=str(e))
            return False

        if self.cache is not None:
            if session_id:
                invalidated = await self.cache.delete(conversation_key(user_id, session_id))
            else:
                invalidated = await self.cache.delete_pattern(conversation_key(user_id, "*")) is not None
            if not invalidated:
                logger.warning("Cache invalidation failed, reading from store", user_id=user_id)
                self._stale_until[user_id] = time.monotonic() + self.cache.ttl

        logger.info("Cleared conversations", user_id=user_id, session_id=session_id, removed=removed)
        return True

    async def cleanup_old_data(self, days_old: int = 30) -> int:
        """Delete inactive conversations not updated in `days_old` days."""
        if self.store is None:
            return 0
        cutoff = datetime.utcnow() - timedelta(days=days_old)
        removed = await self.store.delete_inactive_before(cutoff)
        logger.info("Cleaned up old conversations", removed=removed, days_old=days_old)
        return removed

    # ==================== Reads ====================

    async def recent_messages(self, user_id: str, session_id: str, limit: int = 10) -> List[MessageSchema]:
        """Most recent `limit` messages of one session, oldest first."""
        conversation = await self._load(user_id, session_id)
        return conversation.recent_messages(limit) if conversation else []

    async def history(
        self, user_id: str, session_id: Optional[str] = None, limit: int = 50
    ) -> List[MessageSchema]:
        """
        Messages for one session, or merged across all of a user's sessions.

        Returns the most recent `limit` messages, globally ordered by timestamp.
        """
        if self.store is None:
            return []

        if session_id:
            conversation = await self._load(user_id, session_id)
            conversations = [conversation] if conversation else []
        else:
            try:
                conversations = await self.store.find(user_id)
            except STORE_ERRORS as e:
                logger.warning("Could not get conversation history", user_id=user_id, error=str(e))
                return []

        messages = [m for c in conversations for m in c.messages]
        messages.sort(key=lambda m: m.timestamp)
        return messages[-limit:] if limit > 0 else []

    async def recent_conversations(self, user_id: str, limit: int = 5) -> List[ConversationSchema]:
        if self.store is None:
            return []
        try:
            return await self.store.find(user_id, limit=limit)
        except STORE_ERRORS as e:
            logger.warning("Could not get recent conversations", user_id=user_id, error=str(e))
            return []

    async def analytics(self, user_id: str, window_days: int = 7) -> ConversationAnalyticsSchema:
        """Aggregate over conversations updated within the last `window_days` days."""
        if self.store is None:
            return ConversationAnalyticsSchema()

        since = datetime.utcnow() - timedelta(days=window_days)
        try:
            conversations = await self.store.find(user_id, updated_since=since)
        except STORE_ERRORS as e:
            logger.warning("Could not get analytics", user_id=user_id, error=str(e))
            return ConversationAnalyticsSchema()

        total_messages = sum(len(c.messages) for c in conversations)
        emotions = Counter(
            m.emotion.value for c in conversations for m in c.messages if m.emotion is not None
        )
        topics = Counter(c.context.current_topic for c in conversations if c.context.current_topic)

        return ConversationAnalyticsSchema(
            total_sessions=len(conversations),
            total_messages=total_messages,
            average_session_length=round(total_messages / len(conversations)) if conversations else 0,
            emotional_trends=[
                EmotionalTrendSchema(emotion=emotion, count=count)
                for emotion, count in emotions.most_common()
            ],
            frequent_topics=[
                TopicTrendSchema(topic=topic, count=count) for topic, count in topics.most_common()
            ],
        )

    # ==================== Internals ====================

    async def _load(self, user_id: str, session_id: str) -> Optional[ConversationSchema]:
        """Read-through load of one session: cache first, then the store."""
        if self.store is None:
            return None

        if self.cache is not None and not self._cache_is_stale(user_id):
            doc = await self.cache.get_json(conversation_key(user_id, session_id))
            if doc is not None:
                try:
                    return ConversationSchema.model_validate(doc)
                except ValidationError as e:
                    logger.warning("Discarding invalid cached conversation", user_id=user_id, error=str(e))

        try:
            conversation = await self.store.get(user_id, session_id)
        except STORE_ERRORS as e:
            logger.warning("Could not retrieve conversation", user_id=user_id, session_id=session_id, error=str(e))
            return None

        if conversation is not None:
            await self._cache_set(conversation)
        return conversation

    async def _cache_set(self, conversation: ConversationSchema) -> None:
        if self.cache is not None:
            await self.cache.set_json(
                conversation_key(conversation.user_id, conversation.session_id),
                conversation.to_document(),
            )

    def _cache_is_stale(self, user_id: str) -> bool:
        until = self._stale_until.get(user_id)
        if until is None:
            return False
        if time.monotonic() >= until:
            del self._stale_until[user_id]
            return False
        return True
