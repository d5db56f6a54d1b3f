"""Agent modules for the companion chatbot."""

from .emotion_classifier import EmotionClassifier
from .fallback import FallbackResponder
from .memory_extractor import (
    ExtractionStrategy,
    LLMExtractionStrategy,
    RegexExtractionStrategy,
    build_memory_extractor,
)
from .orchestrator import ChatResult, ConversationOrchestrator
from .persona_generator import PersonaGenerator
from .prompt_composer import PromptComposer

__all__ = [
    "EmotionClassifier",
    "FallbackResponder",
    "ExtractionStrategy",
    "LLMExtractionStrategy",
    "RegexExtractionStrategy",
    "build_memory_extractor",
    "ChatResult",
    "ConversationOrchestrator",
    "PersonaGenerator",
    "PromptComposer",
]
