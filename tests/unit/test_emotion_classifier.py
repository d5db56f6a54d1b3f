"""
Tests for the emotion classifier.

Covers the keyword fallback (priority order, sentiments) and the
model-backed path with its fallback on bad output.
"""

import pytest

from agents.emotion_classifier import EmotionClassifier
from core import LLMServiceError
from schemas import Emotion


class TestKeywordClassification:
    """Deterministic keyword path."""

    @pytest.mark.parametrize("text", [
        "I feel so sad today",
        "I'm really down about work",
        "My sister got me upset",
        "SAD",
    ])
    def test_sad_keywords(self, text):
        """Sad keywords map to sad with sentiment -0.7."""
        result = EmotionClassifier.classify_keywords(text)
        assert result.emotion == Emotion.SAD
        assert result.sentiment == -0.7

    def test_sad_wins_over_happy(self):
        """Sad is checked before happy, so a mixed message resolves to sad."""
        result = EmotionClassifier.classify_keywords("I was happy this morning but now I'm sad")
        assert result.emotion == Emotion.SAD

    def test_happy_wins_over_excited(self):
        result = EmotionClassifier.classify_keywords("I'm happy and excited!")
        assert result.emotion == Emotion.HAPPY
        assert result.sentiment == 0.8

    def test_excited_counts_as_happy(self):
        result = EmotionClassifier.classify_keywords("I'm so excited about tomorrow")
        assert result.emotion == Emotion.HAPPY
        assert result.sentiment == 0.8

    def test_thrilled_is_excited(self):
        result = EmotionClassifier.classify_keywords("I'm thrilled, I can't wait for the concert")
        assert result.emotion == Emotion.EXCITED
        assert result.sentiment == 0.9

    def test_angry(self):
        result = EmotionClassifier.classify_keywords("I am so mad at my landlord")
        assert result.emotion == Emotion.ANGRY
        assert result.sentiment == -0.8

    def test_excited_wins_over_angry(self):
        result = EmotionClassifier.classify_keywords("I'm thrilled but also angry")
        assert result.emotion == Emotion.EXCITED

    def test_trailing_question_mark_is_curious(self):
        result = EmotionClassifier.classify_keywords("What do you remember about me?")
        assert result.emotion == Emotion.CURIOUS
        assert result.sentiment == 0.2

    def test_angry_question_is_angry(self):
        """Keyword categories outrank the question-mark check."""
        result = EmotionClassifier.classify_keywords("Why am I always so angry?")
        assert result.emotion == Emotion.ANGRY

    def test_neutral_default(self):
        result = EmotionClassifier.classify_keywords("I went to the store")
        assert result.emotion == Emotion.NEUTRAL
        assert result.sentiment == 0.0
        assert result.mood == "neutral"

    def test_keywords_match_inside_words(self):
        """Triggers are substrings, so 'sadness' counts as sad."""
        result = EmotionClassifier.classify_keywords("I feel sadness today")
        assert result.emotion == Emotion.SAD
        assert result.sentiment == -0.7

    @pytest.mark.parametrize("text", ["I'm glad", "That was wonderful", "I feel lonely"])
    def test_words_outside_the_lists_are_neutral(self, text):
        assert EmotionClassifier.classify_keywords(text).emotion == Emotion.NEUTRAL

    def test_sentiment_always_in_range(self):
        for text in ["sad", "happy", "excited", "angry", "ok?", "ok"]:
            result = EmotionClassifier.classify_keywords(text)
            assert -1.0 <= result.sentiment <= 1.0


class TestModelClassification:
    """Model-backed path."""

    async def test_without_model_uses_keywords(self):
        classifier = EmotionClassifier(llm=None)
        result = await classifier.classify("I feel sad")
        assert result.emotion == Emotion.SAD

    async def test_uses_model_verdict(self, mock_llm):
        mock_llm.generate_json.return_value = {"emotion": "Excited", "sentiment": 0.7, "mood": "buzzing"}
        classifier = EmotionClassifier(llm=mock_llm)

        result = await classifier.classify("guess what happened")

        assert result.emotion == Emotion.EXCITED
        assert result.sentiment == 0.7
        assert result.mood == "buzzing"
        prompt = mock_llm.generate_json.call_args.args[0]
        assert "guess what happened" in prompt

    async def test_clamps_out_of_range_sentiment(self, mock_llm):
        mock_llm.generate_json.return_value = {"emotion": "happy", "sentiment": 3}
        result = await EmotionClassifier(llm=mock_llm).classify("yay")
        assert result.sentiment == 1.0

    async def test_model_failure_falls_back(self, mock_llm):
        mock_llm.generate_json.side_effect = LLMServiceError("test-model", "timed out")
        result = await EmotionClassifier(llm=mock_llm).classify("I'm upset")
        assert result.emotion == Emotion.SAD

    async def test_unknown_emotion_falls_back(self, mock_llm):
        mock_llm.generate_json.return_value = {"emotion": "melancholic", "sentiment": -0.4}
        result = await EmotionClassifier(llm=mock_llm).classify("I went to the store")
        assert result.emotion == Emotion.NEUTRAL
