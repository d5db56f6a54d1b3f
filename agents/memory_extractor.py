"""
Memory extraction strategies.

Both strategies turn a window of recent messages into an
ExtractedMemorySchema. The model-backed strategy is used when a model is
configured; the regex strategy is used otherwise and as its fallback for
replies that cannot be parsed. Extraction never raises.
"""

import re
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from pydantic import ValidationError

from core import LLMServiceError, get_logger
from prompts import MEMORY_EXTRACTION_PROMPT
from schemas import ExtractedMemorySchema, MessageSchema
from utils.llm_client import LLMClient

logger = get_logger(__name__)

_NAME = re.compile(r"\b(name is|i[’']m|i am)\s+([a-zA-Z]+)", re.IGNORECASE)
_INTEREST = re.compile(r"\b(?:love|like|enjoy)\s+([a-zA-Z\s]+)", re.IGNORECASE)
_NOT_AN_INTEREST = re.compile(r"\b(?:feel|feels|felt|look|looks|seem|seems|sound|sounds|would)\s+$", re.IGNORECASE)

# Words that follow "I'm" / "I am" without being a name
_NOT_A_NAME = {
    "a", "an", "the", "so", "very", "really", "not", "just", "also", "still", "from", "in", "at",
    "on", "here", "back", "sorry", "sure", "fine", "good", "ok", "okay", "feeling", "going",
    "doing", "trying", "working", "looking", "thinking", "getting", "happy", "sad", "tired",
    "excited", "upset", "angry", "bored", "busy", "glad", "curious", "interested", "learning",
}


class ExtractionStrategy(ABC):
    """Turns a conversation window into extracted memory."""

    @abstractmethod
    async def extract(self, messages: Sequence[MessageSchema]) -> ExtractedMemorySchema:
        ...


class RegexExtractionStrategy(ExtractionStrategy):
    """
    Pattern matching over user-authored messages only.

    "my name is X" / "I'm X" / "I am X" yields the fact "Name is X";
    "love X" / "like X" / "enjoy X" yields the interest X.
    """

    async def extract(self, messages: Sequence[MessageSchema]) -> ExtractedMemorySchema:
        facts: List[str] = []
        interests: List[str] = []

        for message in messages:
            if message.role != "user":
                continue
            text = message.content

            name = self._find_name(text)
            if name and f"Name is {name}" not in facts:
                facts.append(f"Name is {name}")

            interest = self._find_interest(text)
            if interest and interest not in interests:
                interests.append(interest)

        return ExtractedMemorySchema(facts=facts, interests=interests)

    @staticmethod
    def _find_name(text: str) -> Optional[str]:
        for match in _NAME.finditer(text):
            candidate = match.group(2)
            explicit = match.group(1).lower() == "name is"
            if explicit or candidate.lower() not in _NOT_A_NAME:
                return candidate[0].upper() + candidate[1:]
        return None

    @staticmethod
    def _find_interest(text: str) -> Optional[str]:
        for match in _INTEREST.finditer(text):
            if _NOT_AN_INTEREST.search(text[: match.start()]):
                continue
            interest = " ".join(match.group(1).split())
            if interest:
                return interest
        return None


class LLMExtractionStrategy(ExtractionStrategy):
    """Structured extraction by the analysis model."""

    def __init__(self, llm: LLMClient, fallback: Optional[ExtractionStrategy] = None):
        self.llm = llm
        self.fallback = fallback or RegexExtractionStrategy()

    async def extract(self, messages: Sequence[MessageSchema]) -> ExtractedMemorySchema:
        conversation = "\n".join(f"{m.role}: {m.content}" for m in messages)
        try:
            data = await self.llm.generate_json(MEMORY_EXTRACTION_PROMPT.format(conversation=conversation))
            return ExtractedMemorySchema.model_validate(data)
        except (LLMServiceError, ValidationError, TypeError, ValueError) as e:
            logger.warning("Memory extraction fell back to patterns", error=str(e))
            return await self.fallback.extract(messages)


def build_memory_extractor(llm: Optional[LLMClient]) -> ExtractionStrategy:
    """Pick the extraction strategy for the configured capabilities."""
    if llm is None:
        return RegexExtractionStrategy()
    return LLMExtractionStrategy(llm)
