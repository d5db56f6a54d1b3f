"""
Configuration settings for the companion chatbot backend.
Uses Pydantic Settings for type-safe configuration with validation.
"""

from typing import List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every external dependency is optional. An empty DATABASE_URL selects the
    in-memory stores, an empty REDIS_URL disables the cache and rate limiter,
    and a missing LLM_API_KEY (or LLM_ENABLED=false) switches every model call
    to its local fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra env vars
    )

    # Language model (LiteLLM model strings, e.g. "gemini/gemini-1.5-flash")
    LLM_API_KEY: str = Field(
        default="",
        description="API key for the generative-language provider",
    )
    LLM_ENABLED: bool = Field(
        default=True,
        description="Set false to force local fallback replies even when a key is present",
    )
    MODEL_CONVERSATION: str = Field(
        default="gemini/gemini-1.5-flash",
        description="Model for main conversation responses",
    )
    MODEL_ANALYSIS: str = Field(
        default="gemini/gemini-1.5-flash",
        description="Model for emotion analysis, memory extraction and persona generation",
    )
    LLM_TIMEOUT_SECONDS: float = Field(
        default=20.0,
        description="Upper bound for a single model call before falling back",
        gt=0,
    )
    LLM_TEMPERATURE: float = Field(default=0.7, ge=0.0, le=2.0)
    LLM_MAX_TOKENS: int = Field(default=1000, ge=1)

    # Persistence
    DATABASE_URL: str = Field(
        default="",
        description="SQLAlchemy database URL. Empty means in-memory stores.",
    )

    # Cache / rate limiting
    REDIS_URL: str = Field(
        default="",
        description="Redis URL for the cache layer and rate limiter. Empty disables both.",
    )
    CACHE_TTL_SECONDS: int = Field(
        default=3600,
        description="Expiry for cached profile and conversation snapshots",
        ge=1,
    )
    CACHE_TIMEOUT_SECONDS: float = Field(
        default=2.0,
        description="Upper bound for a single cache operation before skipping the cache",
        gt=0,
    )
    RATE_LIMIT_MAX: int = Field(
        default=100,
        description="Requests allowed per client IP within RATE_LIMIT_WINDOW",
        ge=1,
    )
    RATE_LIMIT_WINDOW: int = Field(
        default=900,
        description="Sliding window length in seconds",
        ge=1,
    )
    RATE_LIMIT_BLOCK_SECONDS: int = Field(
        default=900,
        description="How long a client stays blocked once the limit is exceeded",
        ge=1,
    )

    # ==================== Conversation Context Configuration ====================

    CONVERSATION_CONTEXT_LIMIT: int = Field(
        default=10,
        description="Number of recent messages of the session included in the model transcript "
                    "and scanned by the memory extractor.",
        ge=1,
    )
    HISTORY_DEFAULT_LIMIT: int = Field(
        default=50,
        description="Default number of messages returned by the history endpoint",
        ge=1,
    )
    CONTEXTUAL_FACT_LIMIT: int = Field(
        default=10,
        description="Maximum facts selected as relevant to the current message",
        ge=1,
    )
    CLEANUP_DAYS: int = Field(
        default=30,
        description="Inactive conversations older than this many days are removed by the cleanup sweep",
        ge=1,
    )

    # Application
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    TIMEZONE: str = Field(
        default="UTC",
        description="Timezone used when rendering transcript timestamps",
    )
    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    CORS_ORIGINS: List[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )
    PORT: int = Field(
        default=8000,
        description="Port for the HTTP server",
        ge=1,
        le=65535,
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Normalise sync driver URLs to their async counterparts."""
        if not v:
            return v
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v.startswith("sqlite:///"):
            return v.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        if not v.startswith(("postgresql+asyncpg://", "sqlite+aiosqlite://")):
            raise ValueError(
                "DATABASE_URL must start with postgresql://, postgresql+asyncpg://, "
                "sqlite:/// or sqlite+aiosqlite://"
            )
        return v

    @property
    def llm_available(self) -> bool:
        """Whether model calls should be attempted at all."""
        return self.LLM_ENABLED and bool(self.LLM_API_KEY) and self.LLM_API_KEY != "your_api_key_here"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT == "development"


# Create singleton instance with validation
# This will automatically load from .env and validate all fields
settings = Settings()
