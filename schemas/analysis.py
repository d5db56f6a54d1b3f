"""Schemas for model-derived analysis: emotion, extracted memory, personas."""

from typing import Any, Dict, List

from pydantic import Field, field_validator

from schemas.base import CamelSchema
from schemas.conversation import Emotion
from schemas.profile import RelationshipSchema


class EmotionAnalysisSchema(CamelSchema):
    """Result of classifying one piece of text."""

    emotion: Emotion = Emotion.NEUTRAL
    sentiment: float = Field(default=0.0, description="-1 (very negative) to 1 (very positive)")
    mood: str = "neutral"

    @field_validator("emotion", mode="before")
    @classmethod
    def normalise_emotion(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("sentiment", mode="before")
    @classmethod
    def clamp_sentiment(cls, v: Any) -> float:
        return max(-1.0, min(1.0, float(v)))


class ExtractedMemorySchema(CamelSchema):
    """Facts and interests pulled out of a conversation window."""

    facts: List[str] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)
    preferences: Dict[str, Any] = Field(default_factory=dict)
    experiences: List[str] = Field(default_factory=list)
    relationships: List[RelationshipSchema] = Field(default_factory=list)

    @field_validator("facts", "interests", "experiences", mode="before")
    @classmethod
    def coerce_strings(cls, v: Any) -> List[str]:
        """Models sometimes return objects where strings are expected; keep their text."""
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, list):
            raise ValueError(f"expected a list of strings, got {type(v).__name__}")
        items = []
        for item in v:
            if isinstance(item, dict):
                item = next((str(val) for val in item.values() if val), "")
            item = str(item).strip()
            if item:
                items.append(item)
        return items

    @field_validator("relationships", mode="before")
    @classmethod
    def drop_unnamed(cls, v: Any) -> List[Any]:
        if not v:
            return []
        if not isinstance(v, list):
            raise ValueError(f"expected a list of relationships, got {type(v).__name__}")
        kept = []
        for item in v:
            if isinstance(item, str):
                item = {"name": item}
            if isinstance(item, dict) and item.get("name"):
                kept.append(item)
        return kept

    @field_validator("preferences", mode="before")
    @classmethod
    def coerce_preferences(cls, v: Any) -> Dict[str, Any]:
        return v if isinstance(v, dict) else {}

    @property
    def is_empty(self) -> bool:
        return not (
            self.facts or self.interests or self.preferences or self.experiences or self.relationships
        )
