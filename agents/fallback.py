"""
Local replies used when the conversation model is unavailable.
"""

import random
import re
from typing import List, Optional

from schemas import UserProfileSchema

FALLBACK_RESPONSES = [
    "That's really interesting, {name}! Tell me more about that.",
    "I can understand how you feel about that. It sounds important to you.",
    "Thanks for sharing that with me, {name}. I'll remember that about you.",
    "That reminds me of something you mentioned before. You seem to really care about these things.",
    "I appreciate you opening up to me. How does that make you feel?",
    "That's a great perspective! I can see why that matters to you.",
    "I'm here to listen, {name}. What's been on your mind lately?",
    "It sounds like you've got a lot going on. I'm glad you're sharing with me.",
]

_RECALL_QUESTION = re.compile(r"\b(remember|recall|know about me)\b", re.IGNORECASE)
_RECALLED_FACTS = 5


class FallbackResponder:
    """Picks a templated reply, or recites stored memory when asked what is remembered."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    @staticmethod
    def responses_for(name: str) -> List[str]:
        return [template.format(name=name) for template in FALLBACK_RESPONSES]

    def reply(self, message: str, profile: UserProfileSchema) -> str:
        name = profile.profile.display_name or "friend"

        if _RECALL_QUESTION.search(message or ""):
            recital = self._recital(profile, name)
            if recital:
                return recital

        return self.rng.choice(self.responses_for(name))

    @staticmethod
    def _recital(profile: UserProfileSchema, name: str) -> Optional[str]:
        facts = [f.fact for f in profile.memory.important_facts[:_RECALLED_FACTS]]
        interests = profile.profile.interests

        if not facts and not interests:
            return None

        parts = [f"Of course I remember you, {name}!"]
        if facts:
            parts.append("You told me: " + "; ".join(facts) + ".")
        if interests:
            parts.append("And you're into " + ", ".join(interests) + ".")
        return " ".join(parts)
