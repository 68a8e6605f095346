"""Role graph generation counters (IGraphVersion) for permission cache invalidation.

LocalGraphVersion serves a single process. RedisGraphVersion shares the
counter between workers so an invalidation in one is observed by all.
"""

from __future__ import annotations

import asyncio
import logging

import redis.asyncio as redis

from authz_engine.core.constants import GRAPH_VERSION_KEY

logger = logging.getLogger(__name__)


class LocalGraphVersion:
    """In-process generation counter."""

    def __init__(self) -> None:
        self._generation = 0
        self._lock = asyncio.Lock()

    async def current(self) -> int | None:
        return self._generation

    async def bump(self) -> None:
        async with self._lock:
            self._generation += 1


class RedisGraphVersion:
    """Generation counter stored in Redis (INCR/GET on one key).

    When Redis is unreachable current() returns None, which disables
    caching for that read rather than serving possibly stale results.
    """

    def __init__(self, redis_client: redis.Redis, key: str = GRAPH_VERSION_KEY) -> None:
        """Initialize with a connected client.

        Args:
            redis_client: redis.asyncio client (decode_responses not required).
            key: Counter key shared by every worker.
        """
        self.redis = redis_client
        self.key = key

    @classmethod
    def from_url(cls, url: str, key: str = GRAPH_VERSION_KEY) -> RedisGraphVersion:
        return cls(
            redis.Redis.from_url(url, socket_connect_timeout=5, socket_keepalive=True),
            key=key,
        )

    async def current(self) -> int | None:
        try:
            value = await self.redis.get(self.key)
        except redis.RedisError as e:
            logger.warning("Graph version read failed: %s. Permission cache bypassed.", e)
            return None
        return int(value) if value is not None else 0

    async def bump(self) -> None:
        try:
            generation = await self.redis.incr(self.key)
        except redis.RedisError as e:
            logger.error(
                "Graph version bump failed: %s. Other workers may serve stale permissions.", e
            )
            return
        logger.debug("Graph version bumped to %s", generation)

    async def close(self) -> None:
        """Close the Redis connection. Call on shutdown."""
        await self.redis.aclose()
