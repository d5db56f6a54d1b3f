"""
Service container - builds every collaborator once from settings.

Optional dependencies (database, Redis, language model) are None when not
configured; each consumer branches on their presence.
"""

from dataclasses import dataclass
from typing import Optional

import redis.asyncio as redis
from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError

from agents.emotion_classifier import EmotionClassifier
from agents.memory_extractor import build_memory_extractor
from agents.orchestrator import ConversationOrchestrator
from agents.persona_generator import PersonaGenerator
from agents.prompt_composer import PromptComposer
from api.rate_limiter import RateLimiter
from config.settings import Settings
from core import get_logger
from memory.cache import SnapshotCache
from memory.conversation_service import ConversationService
from memory.database_async import AsyncDatabase, SQLConversationStore, SQLProfileStore
from memory.profile_service import ProfileService
from memory.stores import (
    ConversationStore,
    InMemoryConversationStore,
    InMemoryProfileStore,
    ProfileStore,
)
from utils.llm_client import LLMClient

logger = get_logger(__name__)


@dataclass
class Services:
    profiles: ProfileService
    conversations: ConversationService
    orchestrator: ConversationOrchestrator
    persona_generator: PersonaGenerator
    environment: str = "development"
    history_limit: int = 50
    llm: Optional[LLMClient] = None
    cache: Optional[SnapshotCache] = None
    rate_limiter: Optional[RateLimiter] = None
    db: Optional[AsyncDatabase] = None

    @classmethod
    def assemble(
        cls,
        settings: Settings,
        profile_store: Optional[ProfileStore],
        conversation_store: Optional[ConversationStore],
        llm: Optional[LLMClient] = None,
        cache: Optional[SnapshotCache] = None,
        rate_limiter: Optional[RateLimiter] = None,
        db: Optional[AsyncDatabase] = None,
    ) -> "Services":
        """Wire services around already-built backends."""
        profiles = ProfileService(profile_store, cache)
        conversations = ConversationService(conversation_store, cache)
        orchestrator = ConversationOrchestrator(
            profiles,
            conversations,
            llm=llm,
            classifier=EmotionClassifier(llm),
            extractor=build_memory_extractor(llm),
            composer=PromptComposer(settings.TIMEZONE),
            context_limit=settings.CONVERSATION_CONTEXT_LIMIT,
            fact_limit=settings.CONTEXTUAL_FACT_LIMIT,
        )
        return cls(
            profiles=profiles,
            conversations=conversations,
            orchestrator=orchestrator,
            persona_generator=PersonaGenerator(llm),
            environment=settings.ENVIRONMENT,
            history_limit=settings.HISTORY_DEFAULT_LIMIT,
            llm=llm,
            cache=cache,
            rate_limiter=rate_limiter,
            db=db,
        )

    @classmethod
    def in_memory(cls, settings: Settings, llm: Optional[LLMClient] = None) -> "Services":
        return cls.assemble(settings, InMemoryProfileStore(), InMemoryConversationStore(), llm=llm)

    async def close(self) -> None:
        if self.cache is not None:
            await self.cache.close()
        if self.rate_limiter is not None:
            await self.rate_limiter.client.aclose()
        if self.db is not None:
            await self.db.dispose()


def get_services(request: Request) -> Services:
    """FastAPI dependency returning the app's service container."""
    return request.app.state.services


async def build_services(settings: Settings) -> Services:
    """Build the production container from settings."""
    db = None
    if settings.DATABASE_URL:
        db = AsyncDatabase(settings.DATABASE_URL, echo=settings.is_development and settings.LOG_LEVEL == "DEBUG")
        try:
            await db.create_tables()
        except (SQLAlchemyError, OSError) as e:
            # Stores degrade per request until the database comes back
            logger.error("Database unavailable at startup", error=str(e))
        profile_store = SQLProfileStore(db)
        conversation_store = SQLConversationStore(db)
    else:
        logger.warning("DATABASE_URL not set; using in-memory stores")
        profile_store = InMemoryProfileStore()
        conversation_store = InMemoryConversationStore()

    cache = None
    rate_limiter = None
    if settings.REDIS_URL:
        cache = SnapshotCache.from_url(
            settings.REDIS_URL,
            ttl_seconds=settings.CACHE_TTL_SECONDS,
            timeout_seconds=settings.CACHE_TIMEOUT_SECONDS,
        )
        if not await cache.ping():
            logger.warning("Redis not reachable at startup; cache reads will miss until it recovers")
        rate_limiter = RateLimiter(
            redis.from_url(settings.REDIS_URL, decode_responses=True),
            max_requests=settings.RATE_LIMIT_MAX,
            window_seconds=settings.RATE_LIMIT_WINDOW,
            block_seconds=settings.RATE_LIMIT_BLOCK_SECONDS,
            timeout_seconds=settings.CACHE_TIMEOUT_SECONDS,
        )
    else:
        logger.warning("REDIS_URL not set; cache and rate limiting disabled")

    return Services.assemble(
        settings,
        profile_store,
        conversation_store,
        llm=LLMClient.from_settings(settings),
        cache=cache,
        rate_limiter=rate_limiter,
        db=db,
    )
