"""
Tests for the profile service: lazy creation, fact dedup, merges, updates,
cache read-through/write-through and degradation to temporary profiles.
"""

import json
from datetime import datetime, timedelta

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from core import InvalidInputError
from memory.cache import profile_key
from memory.profile_service import EXTRACTED_FACT_CONFIDENCE, ProfileService
from schemas import (
    CommunicationStyle,
    Emotion,
    EmotionAnalysisSchema,
    ExtractedMemorySchema,
    ResponseStyle,
    UserProfileSchema,
)


class TestGetProfile:
    async def test_new_user_gets_default_profile(self, profile_service):
        profile = await profile_service.get("new-user")

        assert profile.user_id == "new-user"
        assert profile.is_temporary is False
        assert profile.memory.important_facts == []
        assert profile.memory.experiences == []
        assert profile.memory.relationships == []
        assert profile.profile.interests == []
        assert profile.conversation_history.total_sessions == 0
        assert profile.conversation_history.total_messages == 0
        assert profile.conversation_history.average_session_length == 0
        assert profile.profile.communication_style == CommunicationStyle.CASUAL
        assert profile.preferences.response_style == ResponseStyle.EMPATHETIC
        assert profile.preferences.conversation_length.value == "moderate"

    async def test_profile_is_persisted_on_first_contact(self, profile_service, profile_store):
        await profile_service.get("u1")
        assert await profile_store.get("u1") is not None

    async def test_no_store_gives_temporary_profile(self):
        profile = await ProfileService(store=None).get("u1")
        assert profile.is_temporary is True

    async def test_store_failure_gives_temporary_profile(self, failing_profile_store):
        service = ProfileService(failing_profile_store)
        profile = await service.get("u1")
        assert profile.is_temporary is True
        assert profile.memory.important_facts == []


class TestFacts:
    async def test_add_fact_twice_is_idempotent(self, profile_service):
        first = await profile_service.add_fact("u1", "Name is John")
        first_mentioned = first.memory.important_facts[0].last_mentioned

        second = await profile_service.add_fact("u1", "name is john")

        facts = second.memory.important_facts
        assert len(facts) == 1
        assert facts[0].last_mentioned >= first_mentioned

    def test_repeat_updates_last_mentioned_to_second_call(self):
        profile = UserProfileSchema.default("u1")
        t1 = datetime(2026, 1, 1, 12, 0)
        t2 = t1 + timedelta(hours=3)

        profile.add_important_fact("Name is John", confidence=0.5, now=t1)
        profile.add_important_fact("Name is John", confidence=0.9, now=t2)

        assert len(profile.memory.important_facts) == 1
        assert profile.memory.important_facts[0].last_mentioned == t2
        assert profile.memory.important_facts[0].confidence == 0.9

    def test_repeat_never_lowers_confidence(self):
        profile = UserProfileSchema.default("u1")
        profile.add_important_fact("Likes tea", confidence=0.9)
        profile.add_important_fact("likes tea", confidence=0.3)
        assert profile.memory.important_facts[0].confidence == 0.9

    async def test_name_fact_fills_empty_name(self, profile_service):
        profile = await profile_service.add_fact("u1", "Name is John")
        assert profile.profile.name == "John"

    async def test_name_fact_keeps_existing_name(self, profile_service):
        await profile_service.update("u1", {"name": "Johnny"})
        profile = await profile_service.add_fact("u1", "Name is John")
        assert profile.profile.name == "Johnny"


class TestStats:
    async def test_average_is_derived(self, profile_service):
        await profile_service.increment_stats("u1", 4)
        profile = await profile_service.increment_stats("u1", 2)

        stats = profile.conversation_history
        assert stats.total_sessions == 2
        assert stats.total_messages == 6
        assert stats.average_session_length == 3
        assert stats.last_active is not None

    async def test_record_exchange_in_existing_session(self, profile_service):
        emotion = EmotionAnalysisSchema(emotion=Emotion.HAPPY, sentiment=0.8, mood="happy")
        await profile_service.record_exchange("u1", emotion, new_session=True)
        profile = await profile_service.record_exchange("u1", emotion, new_session=False)

        stats = profile.conversation_history
        assert stats.total_sessions == 1
        assert stats.total_messages == 4
        assert stats.average_session_length == 4
        assert stats.emotional_patterns[0].emotion == "happy"
        assert stats.emotional_patterns[0].frequency == 2


class TestMergeMemory:
    async def test_merge_facts_and_interests(self, profile_service):
        extracted = ExtractedMemorySchema(facts=["Name is John"], interests=["playing guitar"])
        profile = await profile_service.merge_memory("u1", extracted)

        assert profile.memory.important_facts[0].fact == "Name is John"
        assert profile.memory.important_facts[0].confidence == EXTRACTED_FACT_CONFIDENCE
        assert profile.profile.interests == ["playing guitar"]
        assert profile.profile.name == "John"

    async def test_interests_are_a_case_insensitive_union(self, profile_service):
        await profile_service.merge_memory("u1", ExtractedMemorySchema(interests=["Guitar", "chess"]))
        profile = await profile_service.merge_memory(
            "u1", ExtractedMemorySchema(interests=["guitar", "Hiking"])
        )
        assert profile.profile.interests == ["Guitar", "chess", "Hiking"]

    async def test_relationships_dedupe_by_name(self, profile_service):
        extracted = ExtractedMemorySchema(relationships=[{"name": "Maya", "relationship": "sister"}])
        await profile_service.merge_memory("u1", extracted)
        profile = await profile_service.merge_memory(
            "u1", ExtractedMemorySchema(relationships=[{"name": "maya"}])
        )
        assert len(profile.memory.relationships) == 1
        assert profile.memory.relationships[0].relationship == "sister"

    async def test_experiences_are_not_duplicated(self, profile_service):
        extracted = ExtractedMemorySchema(experiences=["Moved to Lisbon"])
        await profile_service.merge_memory("u1", extracted)
        profile = await profile_service.merge_memory("u1", extracted)
        assert [e.event for e in profile.memory.experiences] == ["Moved to Lisbon"]

    async def test_non_neutral_emotion_adds_experience(self, profile_service):
        emotion = EmotionAnalysisSchema(emotion=Emotion.SAD, sentiment=-0.7, mood="sad")
        profile = await profile_service.merge_memory("u1", ExtractedMemorySchema(), emotion)

        assert profile.memory.experiences[-1].event == "Recent conversation"
        assert profile.memory.experiences[-1].emotion == "sad"

    async def test_neutral_emotion_adds_nothing(self, profile_service):
        emotion = EmotionAnalysisSchema()
        profile = await profile_service.merge_memory("u1", ExtractedMemorySchema(), emotion)
        assert profile.memory.experiences == []

    async def test_valid_preferences_merge_invalid_ignored(self, profile_service):
        extracted = ExtractedMemorySchema(
            preferences={"responseStyle": "humorous", "conversationLength": "endless", "favoriteColor": "blue"}
        )
        profile = await profile_service.merge_memory("u1", extracted)

        assert profile.preferences.response_style == ResponseStyle.HUMOROUS
        assert profile.preferences.conversation_length.value == "moderate"


class TestUpdate:
    async def test_update_creates_profile_if_absent(self, profile_service, profile_store):
        profile = await profile_service.update("fresh", {"preferences": {"responseStyle": "direct"}})
        assert profile.preferences.response_style == ResponseStyle.DIRECT
        assert (await profile_store.get("fresh")).preferences.response_style == ResponseStyle.DIRECT

    async def test_update_merges_sections(self, profile_service):
        await profile_service.update("u1", {"profile": {"name": "Ana", "location": "Porto"}})
        profile = await profile_service.update("u1", {"profile": {"occupation": "chef"}})

        assert profile.profile.name == "Ana"
        assert profile.profile.location == "Porto"
        assert profile.profile.occupation == "chef"

    async def test_bare_fields_route_to_their_section(self, profile_service):
        profile = await profile_service.update(
            "u1", {"communicationStyle": "playful", "reminder_frequency": "never"}
        )
        assert profile.profile.communication_style == CommunicationStyle.PLAYFUL
        assert profile.preferences.reminder_frequency.value == "never"

    async def test_unknown_field_is_rejected(self, profile_service):
        with pytest.raises(InvalidInputError):
            await profile_service.update("u1", {"shoeSize": 42})

    async def test_invalid_enum_is_rejected(self, profile_service):
        with pytest.raises(InvalidInputError):
            await profile_service.update("u1", {"communicationStyle": "sarcastic"})

    async def test_user_id_cannot_be_changed(self, profile_service):
        profile = await profile_service.update("u1", {"userId": "someone-else", "name": "Ana"})
        assert profile.user_id == "u1"


class TestContextualMemory:
    def test_selects_facts_mentioning_message_words(self, profile_service):
        profile = UserProfileSchema.default("u1")
        profile.add_important_fact("Works as a nurse", category="work")
        profile.add_important_fact("Has a dog named Rex", category="pets")
        profile.add_interests(["guitar", "chess"])

        memory = profile_service.contextual_memory(profile, "How was work with the dog today?")

        assert [f.fact for f in memory.facts] == ["Works as a nurse", "Has a dog named Rex"]
        assert memory.interests == []

    def test_short_words_are_ignored(self, profile_service):
        profile = UserProfileSchema.default("u1")
        profile.add_important_fact("Is an early riser")
        memory = profile_service.contextual_memory(profile, "is it ok")
        assert memory.facts == []

    def test_interest_and_limits(self, profile_service):
        profile = UserProfileSchema.default("u1")
        for i in range(12):
            profile.add_important_fact(f"Guitar fact {i}")
        for i in range(5):
            profile.add_experience(f"event {i}")
        profile.add_interests(["guitar"])

        memory = profile_service.contextual_memory(profile, "guitar", limit=10)

        assert len(memory.facts) == 10
        assert len(memory.experiences) == 3
        assert memory.interests == ["guitar"]


class TestCaching:
    async def test_read_through_populates_cache(self, profile_store, cache, mock_redis):
        service = ProfileService(profile_store, cache)
        await service.get("u1")

        doc = json.loads(mock_redis.data[profile_key("u1")])
        assert doc["userId"] == "u1"
        mock_redis.setex.assert_awaited()
        assert mock_redis.setex.call_args.args[1] == 3600

    async def test_cache_hit_skips_store(self, profile_store, cache, mock_redis):
        service = ProfileService(profile_store, cache)
        await service.get("u1")
        profile_store._profiles.clear()

        profile = await service.get("u1")
        assert profile.user_id == "u1"
        assert profile.is_temporary is False

    async def test_write_refreshes_cache(self, profile_store, cache, mock_redis):
        service = ProfileService(profile_store, cache)
        await service.get("u1")
        await service.add_fact("u1", "Likes tea")

        doc = json.loads(mock_redis.data[profile_key("u1")])
        assert doc["memory"]["importantFacts"][0]["fact"] == "Likes tea"

    async def test_cache_failure_falls_back_to_store(self, profile_store, cache, mock_redis):
        mock_redis.get.side_effect = RedisConnectionError("down")
        mock_redis.setex.side_effect = RedisConnectionError("down")
        service = ProfileService(profile_store, cache)

        profile = await service.add_fact("u1", "Likes tea")

        assert profile.memory.important_facts[0].fact == "Likes tea"
        assert (await profile_store.get("u1")).memory.important_facts[0].fact == "Likes tea"

    async def test_corrupt_cache_entry_is_discarded(self, profile_store, cache, mock_redis):
        mock_redis.data[profile_key("u1")] = json.dumps({"userId": ""})
        service = ProfileService(profile_store, cache)

        profile = await service.get("u1")

        assert profile.user_id == "u1"
        assert profile.is_temporary is False
