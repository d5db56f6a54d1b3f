"""
Prompts module - All LLM prompts organized by feature.

Import prompts directly:
    from prompts import COMPANION_SYSTEM_PROMPT, EMOTION_ANALYSIS_PROMPT

Or import from specific modules:
    from prompts.companion import COMPANION_SYSTEM_PROMPT
"""

from prompts.companion import (
    COMPANION_SYSTEM_PROMPT,
    CONVERSATION_RULES,
    GENERATION_PROMPT,
    NO_FACTS_PLACEHOLDER,
    NO_EXPERIENCES_PLACEHOLDER,
    NO_RELEVANT_PLACEHOLDER,
)
from prompts.analysis import (
    EMOTION_ANALYSIS_PROMPT,
    MEMORY_EXTRACTION_PROMPT,
    PERSONA_GENERATION_PROMPT,
)

__all__ = [
    "COMPANION_SYSTEM_PROMPT",
    "CONVERSATION_RULES",
    "GENERATION_PROMPT",
    "NO_FACTS_PLACEHOLDER",
    "NO_EXPERIENCES_PLACEHOLDER",
    "NO_RELEVANT_PLACEHOLDER",
    "EMOTION_ANALYSIS_PROMPT",
    "MEMORY_EXTRACTION_PROMPT",
    "PERSONA_GENERATION_PROMPT",
]
