"""
Redis-backed snapshot cache for profiles and conversations.

The cache is an accelerator only. Every operation is bounded by a timeout
and every failure is logged and reported as a miss, so callers always fall
through to the authoritative store.
"""

import asyncio
import json
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from core import get_logger

logger = get_logger(__name__)


def profile_key(user_id: str) -> str:
    return f"user_profile:{user_id}"


def conversation_key(user_id: str, session_id: str) -> str:
    return f"conversation:{user_id}:{session_id}"


class SnapshotCache:
    """JSON snapshots in Redis with a fixed TTL."""

    def __init__(self, client: "redis.Redis", ttl_seconds: int = 3600, timeout_seconds: float = 2.0):
        self.client = client
        self.ttl = ttl_seconds
        self.timeout = timeout_seconds

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int = 3600, timeout_seconds: float = 2.0) -> "SnapshotCache":
        client = redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=timeout_seconds,
            socket_timeout=timeout_seconds,
        )
        return cls(client, ttl_seconds=ttl_seconds, timeout_seconds=timeout_seconds)

    async def _run(self, op: str, key: str, coro) -> Any:
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Cache operation timed out", op=op, key=key, timeout=self.timeout)
        except (RedisError, OSError) as e:
            logger.warning("Cache operation failed", op=op, key=key, error=str(e))
        return None

    async def get_json(self, key: str) -> Optional[dict]:
        raw = await self._run("get", key, self.client.get(key))
        if not raw:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("Discarding unreadable cache entry", key=key, error=str(e))
            await self.delete(key)
            return None

    async def set_json(self, key: str, value: dict) -> bool:
        result = await self._run("setex", key, self.client.setex(key, self.ttl, json.dumps(value)))
        return bool(result)

    async def delete(self, key: str) -> bool:
        """Returns False when the key could not be removed."""
        return await self._run("delete", key, self.client.delete(key)) is not None

    async def delete_pattern(self, pattern: str) -> Optional[int]:
        """Delete every key matching a glob pattern (SCAN, not KEYS). None on failure."""

        async def _scan_and_delete() -> int:
            removed = 0
            async for key in self.client.scan_iter(match=pattern, count=100):
                removed += await self.client.delete(key)
            return removed

        return await self._run("delete_pattern", pattern, _scan_and_delete())

    async def ping(self) -> bool:
        return bool(await self._run("ping", "-", self.client.ping()))

    async def close(self) -> None:
        try:
            await self.client.aclose()
        except (RedisError, OSError) as e:
            logger.warning("Error closing cache client", error=str(e))
