"""
Tests for system prompt and transcript rendering.
"""

from datetime import datetime, timedelta

import pytest

from agents.prompt_composer import PromptComposer
from prompts import NO_EXPERIENCES_PLACEHOLDER, NO_FACTS_PLACEHOLDER, NO_RELEVANT_PLACEHOLDER
from schemas import (
    ChatbotPersonaSchema,
    ContextualMemorySchema,
    ConversationContextSchema,
    ExperienceSchema,
    RelationshipSchema,
    UserProfileSchema,
)


@pytest.fixture
def composer():
    return PromptComposer(timezone="UTC")


def _compose(composer, profile, **kwargs):
    return composer.compose(
        profile.chatbot_persona, profile.profile, profile.preferences, profile.memory, **kwargs
    )


class TestCompose:
    def test_new_user_placeholders(self, composer):
        prompt = _compose(composer, UserProfileSchema.default("u1"))

        assert "You are Alex" in prompt
        assert "- Name: friend" in prompt
        assert "- Interests: getting to know them better" in prompt
        assert "- Communication Style: casual" in prompt
        assert "- Response Preference: empathetic" in prompt
        assert "- Preferred Conversation Length: moderate" in prompt
        assert NO_FACTS_PLACEHOLDER in prompt
        assert NO_EXPERIENCES_PLACEHOLDER in prompt
        assert NO_RELEVANT_PLACEHOLDER in prompt
        assert "- User Mood: neutral" in prompt
        assert "- Current Topic: general conversation" in prompt

    def test_profile_fields_are_rendered(self, composer):
        profile = UserProfileSchema.default("u1")
        profile.profile.name = "John"
        profile.add_interests(["guitar", "hiking"])
        profile.add_important_fact("Name is John")
        profile.add_important_fact("Works as a nurse")
        profile.chatbot_persona = ChatbotPersonaSchema(name="Sam", personality="Dry wit")

        prompt = _compose(
            composer,
            profile,
            context=ConversationContextSchema(user_mood="sad", current_topic="work"),
        )

        assert "You are Sam" in prompt
        assert "- Dry wit" in prompt
        assert "- Name: John" in prompt
        assert "- Interests: guitar, hiking" in prompt
        assert "- Name is John\n- Works as a nurse" in prompt
        assert "- User Mood: sad" in prompt
        assert "- Current Topic: work" in prompt
        assert "Respond as Sam would" in prompt

    def test_preferred_name_wins(self, composer):
        profile = UserProfileSchema.default("u1")
        profile.profile.name = "Jonathan"
        profile.profile.preferred_name = "Jon"
        assert "- Name: Jon\n" in _compose(composer, profile)

    def test_rules_are_numbered_with_persona_name(self, composer):
        prompt = _compose(composer, UserProfileSchema.default("u1"))

        assert "1. Stay completely in character as Alex" in prompt
        assert "10. Remember: you're a real person" in prompt
        assert "{persona_name}" not in prompt

    def test_only_three_most_recent_experiences(self, composer):
        profile = UserProfileSchema.default("u1")
        base = datetime(2026, 1, 1)
        # Stored out of order on purpose
        for day in (3, 0, 4, 1, 2):
            profile.memory.experiences.append(
                ExperienceSchema(event=f"event {day}", date=base + timedelta(days=day), emotion="happy")
            )

        prompt = _compose(composer, profile)

        assert "- event 2 (happy)\n- event 3 (happy)\n- event 4 (happy)" in prompt
        assert "event 0" not in prompt
        assert "event 1" not in prompt

    def test_relevant_memory_section(self, composer):
        profile = UserProfileSchema.default("u1")
        relevant = ContextualMemorySchema(
            interests=["guitar"],
            relationships=[RelationshipSchema(name="Maya", relationship="sister", details="lives in Oslo")],
        )

        prompt = _compose(composer, profile, relevant=relevant)

        assert "- Interested in guitar" in prompt
        assert "- Maya (sister): lives in Oslo" in prompt
        assert NO_RELEVANT_PLACEHOLDER not in prompt

    def test_is_deterministic(self, composer):
        profile = UserProfileSchema.default("u1")
        profile.add_important_fact("Likes tea")
        assert _compose(composer, profile) == _compose(composer, profile)


class TestTranscript:
    def test_format_and_order(self, composer, make_message):
        messages = [
            make_message("Hi there!", role="assistant", timestamp=datetime(2026, 1, 1, 10, 0, 5)),
            make_message("Hello", timestamp=datetime(2026, 1, 1, 10, 0, 0)),
        ]

        transcript = composer.format_transcript(messages)

        assert transcript == "[10:00:00] User: Hello\n[10:00:05] You: Hi there!"

    def test_uses_configured_timezone(self, make_message):
        composer = PromptComposer(timezone="Asia/Tokyo")
        transcript = composer.format_transcript([make_message("Hello", timestamp=datetime(2026, 1, 1, 10, 0, 0))])
        assert transcript == "[19:00:00] User: Hello"

    def test_generation_prompt_wraps_both(self, composer, make_message):
        payload = composer.generation_prompt(
            "SYSTEM", [make_message("Hello", timestamp=datetime(2026, 1, 1, 8, 30, 0))]
        )

        assert payload.startswith("SYSTEM\n\nConversation History:\n[08:30:00] User: Hello")
        assert payload.endswith("remembers previous context.")
