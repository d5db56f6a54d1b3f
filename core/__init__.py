"""
Core utilities and infrastructure for the companion chatbot backend.
"""

from core.exceptions import (
    ChatbotException,
    DatabaseException,
    ExternalServiceException,
    LLMServiceError,
    ValidationException,
    InvalidInputError,
    RateLimitExceeded,
)
from core.logging_config import configure_logging, get_logger

__all__ = [
    "ChatbotException",
    "DatabaseException",
    "ExternalServiceException",
    "LLMServiceError",
    "ValidationException",
    "InvalidInputError",
    "RateLimitExceeded",
    "configure_logging",
    "get_logger",
]
