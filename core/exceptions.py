"""
Custom exception hierarchy for the companion chatbot backend.
Provides structured error handling with proper context.
"""

from typing import Optional, Dict, Any


class ChatbotException(Exception):
    """Base exception for all chatbot errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize exception with message and optional context.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            context: Additional context information
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# ==================== Database Exceptions ====================


class DatabaseException(ChatbotException):
    """Base exception for database-related errors."""

    pass


# ==================== External Service Exceptions ====================


class ExternalServiceException(ChatbotException):
    """Base exception for external service errors."""

    pass


class LLMServiceError(ExternalServiceException):
    """Raised when the language model is unreachable, times out, or misbehaves."""

    def __init__(self, model: Optional[str] = None, details: Optional[str] = None):
        super().__init__(
            message="Language model request failed",
            error_code="LLM_SERVICE_ERROR",
            context={"model": model, "details": details},
        )


# ==================== Validation Exceptions ====================


class ValidationException(ChatbotException):
    """Base exception for validation errors."""

    status_code = 400


class InvalidInputError(ValidationException):
    """Raised when input validation fails."""

    def __init__(self, field: str, reason: str):
        super().__init__(
            message=f"Invalid input: {field} - {reason}",
            error_code="INVALID_INPUT",
            context={"field": field, "reason": reason},
        )


# ==================== Rate Limiting ====================


class RateLimitExceeded(ChatbotException):
    """Raised when a client exceeds the request budget."""

    status_code = 429

    def __init__(self, retry_after: int):
        super().__init__(
            message=f"Rate limit exceeded. Try again in {retry_after} seconds.",
            error_code="Too Many Requests",
            context={"retry_after": retry_after},
        )
        self.retry_after = retry_after
