"""Persona generator - asks the model for an assistant persona suited to a user."""

from typing import Optional

from pydantic import ValidationError

from core import LLMServiceError, get_logger
from prompts import PERSONA_GENERATION_PROMPT
from schemas import ChatbotPersonaSchema, UserProfileSchema
from utils.llm_client import LLMClient

logger = get_logger(__name__)


class PersonaGenerator:
    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm

    async def generate(self, profile: UserProfileSchema) -> ChatbotPersonaSchema:
        """Generate a persona; the default persona on any failure."""
        if self.llm is None:
            return ChatbotPersonaSchema()

        identity = profile.profile
        prompt = PERSONA_GENERATION_PROMPT.format(
            interests=", ".join(identity.interests) or "unknown",
            communication_style=identity.communication_style.value,
            personality_traits=", ".join(identity.personality_traits) or "unknown",
        )

        try:
            data = await self.llm.generate_json(prompt)
            # Missing fields keep their defaults
            return ChatbotPersonaSchema.model_validate({k: v for k, v in data.items() if v})
        except (LLMServiceError, ValidationError) as e:
            logger.warning("Persona generation failed, using default", user_id=profile.user_id, error=str(e))
            return ChatbotPersonaSchema()
