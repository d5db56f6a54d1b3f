"""
Structured logging setup.

structlog wraps the stdlib logging hierarchy so third-party libraries
(uvicorn, SQLAlchemy, LiteLLM) and our own modules share one output stream.
Call sites log an event name plus key/value fields:

    logger = get_logger(__name__)
    logger.warning("Cache read failed", key=key, error=str(e))
"""

import logging
import re
import sys
from typing import Any, Dict

import structlog

_SECRET_PATTERNS = [
    # Google AI keys
    re.compile(r"AIza[0-9A-Za-z_-]{20,}"),
    # Generic sk- prefixed keys (OpenAI, Anthropic, etc.)
    re.compile(r"sk-[a-zA-Z0-9_-]{20,}"),
    # Bearer token values in headers
    re.compile(r"Bearer\s+[a-zA-Z0-9_./-]{20,}"),
]

_REDACTED = "***REDACTED***"


def _scrub_value(value: str) -> str:
    for pattern in _SECRET_PATTERNS:
        value = pattern.sub(_REDACTED, value)
    return value


def sanitize_secrets(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """structlog processor that scrubs API keys from string values."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = _scrub_value(value)
    return event_dict


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """
    Configure stdlib logging and structlog.

    Args:
        level: Root log level name
        json_output: Render JSON lines instead of the console renderer (production)
    """
    root_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=root_level,
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            sanitize_secrets,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to the given module name."""
    return structlog.get_logger(name)
