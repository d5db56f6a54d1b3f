"""
Profile service - read-through / write-through access to user profiles.

Profiles are created lazily on first contact. When the store is missing or
unreachable the service hands back a default profile flagged `is_temporary`
so the conversation can continue without persistent memory.
"""

import re
from typing import Iterable, Optional

from pydantic import ValidationError

from core import InvalidInputError, get_logger
from memory.cache import SnapshotCache, profile_key
from memory.stores import STORE_ERRORS, ProfileStore
from schemas import (
    ChatbotPersonaSchema,
    ContextualMemorySchema,
    Emotion,
    EmotionAnalysisSchema,
    ExtractedMemorySchema,
    PreferencesSchema,
    UserProfileSchema,
)

logger = get_logger(__name__)

_NAME_FACT = re.compile(r"^name is\s+(.+)$", re.IGNORECASE)
_WORD = re.compile(r"[a-z0-9']+")
_PREFERENCE_FIELDS = set(PreferencesSchema.model_fields)

# Confidence assigned to facts pulled out of conversation text
EXTRACTED_FACT_CONFIDENCE = 0.8


class ProfileService:
    """
    Profile access for the rest of the application.

    Features:
    - Lazy creation with defaults on first contact
    - Optional snapshot cache (read-through, refreshed after every write)
    - Temporary profiles instead of errors when the store is unavailable
    """

    def __init__(self, store: Optional[ProfileStore], cache: Optional[SnapshotCache] = None):
        self.store = store
        self.cache = cache

        if store is None:
            logger.warning("Profile service initialized without a store; profiles are temporary")

    # ==================== Reads ====================

    async def get(self, user_id: str) -> UserProfileSchema:
        """
        Get a user's profile, creating it with defaults if absent.

        Never raises for store or cache trouble; returns a temporary profile instead.
        """
        if self.store is None:
            return UserProfileSchema.default(user_id, temporary=True)

        cached = await self._cache_get(user_id)
        if cached is not None:
            return cached

        try:
            profile = await self.store.get(user_id)
            if profile is None:
                profile = await self.store.save(UserProfileSchema.default(user_id))
                logger.info("Created new user profile", user_id=user_id)
        except STORE_ERRORS as e:
            logger.warning("Profile store unavailable, using temporary profile", user_id=user_id, error=str(e))
            return UserProfileSchema.default(user_id, temporary=True)

        await self._cache_set(profile)
        return profile

    def contextual_memory(
        self, profile: UserProfileSchema, message: str, limit: int = 10
    ) -> ContextualMemorySchema:
        """
        Select the parts of a profile relevant to the current message.

        Facts match when their text or category contains a word of the message
        (words shorter than three characters are ignored). Experiences are the
        three most recent; relationships the first five.
        """
        words = {w for w in _WORD.findall(message.lower()) if len(w) >= 3}

        def mentions(text: Optional[str]) -> bool:
            text = (text or "").lower()
            return any(word in text for word in words)

        facts = [
            f for f in profile.memory.important_facts
            if mentions(f.fact) or mentions(f.category)
        ]
        experiences = sorted(profile.memory.experiences, key=lambda e: e.date, reverse=True)[:3]
        interests = [i for i in profile.profile.interests if mentions(i)]

        return ContextualMemorySchema(
            facts=facts[:limit],
            experiences=experiences,
            interests=interests,
            relationships=profile.memory.relationships[:5],
        )

    # ==================== Writes ====================

    async def update(self, user_id: str, updates: dict) -> UserProfileSchema:
        """
        Merge partial fields into a profile (upsert).

        Raises:
            InvalidInputError: unknown field or invalid value
        """
        profile = await self.get(user_id)
        updated = profile.with_updates(updates)
        logger.info("Updating profile", user_id=user_id, fields=sorted(updates))
        return await self._persist(updated)

    async def add_fact(
        self, user_id: str, fact: str, category: str = "general", confidence: float = 1.0
    ) -> UserProfileSchema:
        profile = await self.get(user_id)
        profile.add_important_fact(fact, category=category, confidence=confidence)
        self._promote_name(profile, fact)
        return await self._persist(profile)

    async def add_experience(
        self, user_id: str, event: str, emotion: str = "neutral", importance: int = 5
    ) -> UserProfileSchema:
        profile = await self.get(user_id)
        profile.add_experience(event, emotion=emotion, importance=importance)
        return await self._persist(profile)

    async def increment_stats(
        self, user_id: str, message_count: int, new_session: bool = True
    ) -> UserProfileSchema:
        profile = await self.get(user_id)
        profile.increment_stats(message_count, new_session=new_session)
        return await self._persist(profile)

    async def record_exchange(
        self,
        user_id: str,
        emotion: EmotionAnalysisSchema,
        extracted: Optional[ExtractedMemorySchema] = None,
        message_count: int = 2,
        new_session: bool = False,
        topic: Optional[str] = None,
    ) -> UserProfileSchema:
        """
        Fold one exchange into the profile with a single write.

        Merges extracted memory, then updates aggregate stats and emotional patterns.
        """
        profile = await self.get(user_id)
        if extracted is not None:
            profile = self._apply_extracted(profile, extracted, emotion)
        profile.increment_stats(message_count, new_session=new_session)
        profile.record_emotion(emotion.emotion.value, context=emotion.mood)
        if topic:
            profile.record_topic(topic)
        return await self._persist(profile)

    async def set_persona(self, user_id: str, persona: ChatbotPersonaSchema) -> UserProfileSchema:
        profile = await self.get(user_id)
        profile.chatbot_persona = persona
        return await self._persist(profile)

    async def merge_memory(
        self,
        user_id: str,
        extracted: ExtractedMemorySchema,
        emotion: Optional[EmotionAnalysisSchema] = None,
    ) -> UserProfileSchema:
        """
        Fold extracted memory into the profile with the dedup rules of the schema.

        Unknown or invalid preference keys are ignored rather than rejected.
        """
        profile = await self.get(user_id)
        profile = self._apply_extracted(profile, extracted, emotion)
        return await self._persist(profile)

    # ==================== Internals ====================

    @classmethod
    def _apply_extracted(
        cls,
        profile: UserProfileSchema,
        extracted: ExtractedMemorySchema,
        emotion: Optional[EmotionAnalysisSchema] = None,
    ) -> UserProfileSchema:
        for fact in extracted.facts:
            profile.add_important_fact(fact, confidence=EXTRACTED_FACT_CONFIDENCE)
            cls._promote_name(profile, fact)

        profile.add_interests(extracted.interests)

        known_events = {e.event.lower() for e in profile.memory.experiences}
        for event in extracted.experiences:
            if event.lower() not in known_events:
                profile.add_experience(event)
                known_events.add(event.lower())

        for relationship in extracted.relationships:
            profile.add_relationship(relationship)

        if extracted.preferences:
            profile = cls._merge_preferences(profile, extracted.preferences.items())

        if emotion is not None and emotion.emotion != Emotion.NEUTRAL:
            profile.add_experience("Recent conversation", emotion=emotion.emotion.value)

        logger.debug(
            "Merged extracted memory",
            user_id=profile.user_id,
            facts=len(extracted.facts),
            interests=len(extracted.interests),
            relationships=len(extracted.relationships),
        )
        return profile

    @staticmethod
    def _promote_name(profile: UserProfileSchema, fact: str) -> None:
        match = _NAME_FACT.match(fact.strip())
        if match and not profile.profile.name:
            profile.profile.name = match.group(1).strip()

    @staticmethod
    def _merge_preferences(profile: UserProfileSchema, items: Iterable) -> UserProfileSchema:
        for key, value in items:
            snake = re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()
            if snake not in _PREFERENCE_FIELDS:
                continue
            try:
                profile = profile.with_updates({"preferences": {snake: value}})
            except InvalidInputError:
                logger.debug("Ignoring invalid extracted preference", key=key, value=value)
        return profile

    async def _persist(self, profile: UserProfileSchema) -> UserProfileSchema:
        """Save to the store, then refresh the cache. Store failure yields a temporary copy."""
        if self.store is None or profile.is_temporary:
            return profile

        try:
            saved = await self.store.save(profile)
        except STORE_ERRORS as e:
            logger.warning("Failed to persist profile", user_id=profile.user_id, error=str(e))
            return profile.model_copy(update={"is_temporary": True})

        await self._cache_set(saved)
        return saved

    async def _cache_get(self, user_id: str) -> Optional[UserProfileSchema]:
        if self.cache is None:
            return None
        doc = await self.cache.get_json(profile_key(user_id))
        if doc is None:
            return None
        try:
            return UserProfileSchema.model_validate(doc)
        except ValidationError as e:
            logger.warning("Discarding invalid cached profile", user_id=user_id, error=str(e))
            await self.cache.delete(profile_key(user_id))
            return None

    async def _cache_set(self, profile: UserProfileSchema) -> None:
        if self.cache is not None:
            await self.cache.set_json(profile_key(profile.user_id), profile.to_document())

