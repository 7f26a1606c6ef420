"""Redis cache store for Smart File API.

Provides async Redis operations for the response cache.
Uses redis-py async client for connection pooling.

Every call is bounded by a short timeout so a degraded Redis never
materially slows a request. Any Redis error or timeout is reported as
``CacheStoreError``; callers decide whether to swallow it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable
from typing import TYPE_CHECKING, TypeVar, cast

import redis.asyncio as redis
from redis.exceptions import RedisError

from smartfile.cache.store import CacheStore, CacheStoreError
from smartfile.config import settings
from smartfile.observability.metrics import record_cache_operation

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Module-level connection pool
_redis_client: Redis | None = None


async def get_redis() -> Redis:
    """Get or create the Redis client.

    Uses connection pooling for efficient connection management.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(  # type: ignore[no-untyped-call]
            settings.redis_url,
            decode_responses=False,  # We're storing bytes
            socket_connect_timeout=settings.cache_op_timeout,
            socket_timeout=settings.cache_op_timeout,
        )
    return _redis_client


async def close_redis() -> None:
    """Close Redis connections."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


class RedisCacheStore(CacheStore):
    """Cache store backed by Redis.

    Values are raw bytes written with SETEX. Pattern deletion walks the
    keyspace with SCAN so large keyspaces never block the server.
    """

    name = "redis"

    def __init__(
        self,
        client: Redis,
        op_timeout: float = 0.25,
        scan_timeout: float = 2.0,
    ):
        self.client = client
        self.op_timeout = op_timeout
        self.scan_timeout = scan_timeout

    async def _call(self, operation: str, awaitable: Awaitable[T], timeout: float) -> T:
        """Run a Redis call under a timeout, mapping failures to CacheStoreError."""
        start = time.perf_counter()
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise CacheStoreError(f"redis {operation} timed out after {timeout}s") from e
        except (RedisError, OSError) as e:
            raise CacheStoreError(f"redis {operation} failed: {e}") from e
        finally:
            record_cache_operation(operation, time.perf_counter() - start)

    async def get(self, key: str) -> bytes | None:
        value = await self._call("get", self.client.get(key), self.op_timeout)
        return cast(bytes | None, value)

    async def set(self, key: str, value: bytes, ttl: int) -> None:
        await self._call("set", self.client.setex(key, ttl, value), self.op_timeout)

    async def delete(self, key: str) -> None:
        await self._call("delete", self.client.delete(key), self.op_timeout)

    async def _scan_delete(self, pattern: str) -> int:
        deleted = 0
        # Use SCAN to avoid blocking on large keyspaces
        async for key in self.client.scan_iter(match=pattern):
            deleted += cast(int, await self.client.delete(key))
        return deleted

    async def delete_matching(self, pattern: str) -> int:
        return await self._call("delete_matching", self._scan_delete(pattern), self.scan_timeout)

    async def _scan_count(self, pattern: str) -> int:
        count = 0
        async for _ in self.client.scan_iter(match=pattern):
            count += 1
        return count

    async def count_matching(self, pattern: str) -> int:
        return await self._call("count_matching", self._scan_count(pattern), self.scan_timeout)

    async def ping(self) -> bool:
        """Check Redis connectivity."""
        try:
            await self._call("ping", cast(Awaitable[bool], self.client.ping()), self.op_timeout)
            return True
        except CacheStoreError:
            return False

    async def close(self) -> None:
        global _redis_client
        if _redis_client is self.client:
            _redis_client = None
        await self.client.aclose()
