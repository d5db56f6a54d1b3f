"""
Shared pytest fixtures for companion chatbot tests.
"""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from config.settings import Settings
from memory.cache import SnapshotCache
from memory.conversation_service import ConversationService
from memory.profile_service import ProfileService
from memory.stores import InMemoryConversationStore, InMemoryProfileStore
from schemas import MessageSchema


# --- Settings ---

@pytest.fixture
def test_settings():
    """Settings with every optional dependency switched off."""
    return Settings(
        _env_file=None,
        LLM_API_KEY="",
        DATABASE_URL="",
        REDIS_URL="",
        ENVIRONMENT="development",
        TIMEZONE="UTC",
    )


# --- Stores and services ---

@pytest.fixture
def profile_store():
    return InMemoryProfileStore()


@pytest.fixture
def conversation_store():
    return InMemoryConversationStore()


@pytest.fixture
def profile_service(profile_store):
    return ProfileService(profile_store)


@pytest.fixture
def conversation_service(conversation_store):
    return ConversationService(conversation_store)


@pytest.fixture
def failing_profile_store():
    """Profile store whose every call fails like an unreachable database."""
    from core import DatabaseException

    store = AsyncMock()
    store.get.side_effect = DatabaseException("connection refused")
    store.save.side_effect = DatabaseException("connection refused")
    return store


@pytest.fixture
def failing_conversation_store():
    from core import DatabaseException

    store = AsyncMock()
    for method in ("get", "save", "find", "delete", "deactivate_others", "delete_inactive_before"):
        getattr(store, method).side_effect = DatabaseException("connection refused")
    return store


# --- Mock Redis ---

@pytest.fixture
def mock_redis():
    """AsyncMock Redis client backed by a plain dict (values are JSON strings)."""
    data = {}
    client = AsyncMock()

    async def _get(key):
        return data.get(key)

    async def _setex(key, ttl, value):
        data[key] = value
        return True

    async def _delete(*keys):
        removed = 0
        for key in keys:
            if data.pop(key, None) is not None:
                removed += 1
        return removed

    def _scan_iter(match=None, count=None):
        prefix = (match or "*").rstrip("*")

        async def _iter():
            for key in list(data):
                if key.startswith(prefix):
                    yield key

        return _iter()

    client.get.side_effect = _get
    client.setex.side_effect = _setex
    client.delete.side_effect = _delete
    client.scan_iter = MagicMock(side_effect=_scan_iter)
    client.ping.return_value = True
    client.data = data
    return client


@pytest.fixture
def cache(mock_redis):
    return SnapshotCache(mock_redis, ttl_seconds=3600, timeout_seconds=0.5)


# --- Mock LLM client ---

@pytest.fixture
def mock_llm():
    """Mock LLM client for testing without API calls."""
    llm = AsyncMock()
    llm.generate = AsyncMock(return_value="Hey! Great to hear from you.")
    llm.generate_json = AsyncMock(return_value={})
    return llm


# --- Test data ---

@pytest.fixture
def make_message():
    """Factory for messages with explicit timestamps."""

    def _make(content: str, role: str = "user", timestamp: datetime = None, **kwargs) -> MessageSchema:
        return MessageSchema(
            role=role,
            content=content,
            timestamp=timestamp or datetime.utcnow(),
            **kwargs,
        )

    return _make

