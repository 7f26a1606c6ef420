"""Cache store factory for Smart File API."""

from __future__ import annotations

import logging

from smartfile.cache.redis import RedisCacheStore, close_redis, get_redis
from smartfile.cache.store import CacheStore, MemoryCacheStore, UnavailableCacheStore
from smartfile.config import settings

logger = logging.getLogger(__name__)


async def create_cache_store() -> CacheStore:
    """Build the cache store selected by settings.

    A Redis backend that does not answer PING at startup is replaced by an
    UnavailableCacheStore, so the application keeps serving without a cache.
    """
    backend = settings.cache_backend.lower()

    if backend in {"none", "off", "disabled"}:
        logger.info("Response cache disabled by configuration")
        return UnavailableCacheStore("disabled by configuration")

    if backend == "memory":
        logger.info("Using in-process response cache")
        return MemoryCacheStore()

    if backend != "redis":
        raise ValueError("Unsupported cache_backend. Supported values: redis, memory, none.")

    store = RedisCacheStore(
        await get_redis(),
        op_timeout=settings.cache_op_timeout,
        scan_timeout=settings.cache_invalidation_timeout,
    )
    if not await store.ping():
        logger.warning(
            f"Redis connection to {settings.redis_url} failed (caching will be disabled)"
        )
        await close_redis()
        return UnavailableCacheStore("redis unreachable at startup")

    logger.info("Redis connected successfully")
    return store
