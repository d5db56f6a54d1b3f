"""
IP-keyed sliding-window rate limiter backed by Redis.

Each request adds a timestamped member to a sorted set per client; members
older than the window are pruned before counting. A client over the limit
is blocked for a fixed period. Redis trouble lets requests through.
"""

import asyncio
import time
import uuid
from typing import Optional

import redis.asyncio as redis
from fastapi import Request
from redis.exceptions import RedisError

from core import RateLimitExceeded, get_logger

logger = get_logger(__name__)

DEFAULT_PREFIX = "rl_stan_chatbot"


class RateLimiter:
    def __init__(
        self,
        client: "redis.Redis",
        max_requests: int = 100,
        window_seconds: int = 900,
        block_seconds: int = 900,
        prefix: str = DEFAULT_PREFIX,
        timeout_seconds: float = 2.0,
    ):
        self.client = client
        self.max_requests = max_requests
        self.window = window_seconds
        self.block_seconds = block_seconds
        self.prefix = prefix
        self.timeout = timeout_seconds

    async def check(self, identifier: str) -> None:
        """
        Record one request for `identifier`.

        Raises:
            RateLimitExceeded: the client is blocked or just went over the limit
        """
        try:
            await asyncio.wait_for(self._check(identifier), timeout=self.timeout)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            logger.warning("Rate limiter unavailable, allowing request", client=identifier, error=str(e))

    async def _check(self, identifier: str) -> None:
        key = f"{self.prefix}:{identifier}"
        block_key = f"{self.prefix}:blocked:{identifier}"

        blocked_for = await self.client.ttl(block_key)
        if blocked_for and blocked_for > 0:
            raise RateLimitExceeded(retry_after=int(blocked_for))

        now = time.time()
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(key, 0, now - self.window)
            pipe.zadd(key, {f"{now}:{uuid.uuid4().hex}": now})
            pipe.zcard(key)
            pipe.expire(key, self.window)
            _, _, count, _ = await pipe.execute()

        if count > self.max_requests:
            await self.client.set(block_key, 1, ex=self.block_seconds)
            logger.warning(
                "Rate limit exceeded",
                client=identifier,
                requests_in_window=count,
                blocked_seconds=self.block_seconds,
            )
            raise RateLimitExceeded(retry_after=self.block_seconds)


async def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency applying the app's limiter to the client IP."""
    limiter: Optional[RateLimiter] = request.app.state.services.rate_limiter
    if limiter is None:
        return
    host = request.client.host if request.client else "unknown"
    await limiter.check(host)
