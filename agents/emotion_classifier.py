"""
Emotion classifier - tags text with a coarse emotion and a sentiment score.

The model path asks the analysis model for a JSON verdict. Without a model,
or when its reply cannot be used, a keyword matcher decides.
"""

from typing import Optional, Tuple

from pydantic import ValidationError

from core import LLMServiceError, get_logger
from prompts import EMOTION_ANALYSIS_PROMPT
from schemas import Emotion, EmotionAnalysisSchema
from utils.llm_client import LLMClient

logger = get_logger(__name__)

# Checked in this order; the first category with a trigger anywhere in the
# lower-cased text wins. Triggers are plain substrings.
KEYWORD_RULES: Tuple[Tuple[Emotion, Tuple[str, ...], float], ...] = (
    (Emotion.SAD, ("sad", "down", "upset"), -0.7),
    (Emotion.HAPPY, ("happy", "excited", "great"), 0.8),
    (Emotion.EXCITED, ("thrilled", "can't wait"), 0.9),
    (Emotion.ANGRY, ("angry", "mad"), -0.8),
)
CURIOUS_SENTIMENT = 0.2


class EmotionClassifier:
    """Classifies text as {emotion, sentiment, mood}."""

    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm

    async def classify(self, text: str) -> EmotionAnalysisSchema:
        if self.llm is None:
            return self.classify_keywords(text)

        try:
            data = await self.llm.generate_json(EMOTION_ANALYSIS_PROMPT.format(message=text))
            return EmotionAnalysisSchema.model_validate(data)
        except (LLMServiceError, ValidationError, TypeError, ValueError) as e:
            logger.warning("Emotion analysis fell back to keywords", error=str(e))
            return self.classify_keywords(text)

    @staticmethod
    def classify_keywords(text: str) -> EmotionAnalysisSchema:
        """Deterministic keyword classification."""
        lowered = (text or "").lower()

        for emotion, triggers, sentiment in KEYWORD_RULES:
            if any(trigger in lowered for trigger in triggers):
                return EmotionAnalysisSchema(emotion=emotion, sentiment=sentiment, mood=emotion.value)

        if lowered.rstrip().endswith("?"):
            return EmotionAnalysisSchema(
                emotion=Emotion.CURIOUS, sentiment=CURIOUS_SENTIMENT, mood=Emotion.CURIOUS.value
            )

        return EmotionAnalysisSchema(emotion=Emotion.NEUTRAL, sentiment=0.0, mood=Emotion.NEUTRAL.value)
