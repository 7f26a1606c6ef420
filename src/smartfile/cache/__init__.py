"""Response cache layer for Smart File API.

Read-through caching of JSON responses:
- Deterministic, identity-scoped cache keys
- Pluggable store (Redis, in-process, or explicitly unavailable)
- TTL-based expiration bounds staleness
- Coarse namespace invalidation after every write
"""

from smartfile.cache.factory import create_cache_store
from smartfile.cache.invalidation import CacheInvalidationError, CacheInvalidator
from smartfile.cache.keys import ANONYMOUS_USER_ID, CacheKeys
from smartfile.cache.redis import RedisCacheStore, close_redis, get_redis
from smartfile.cache.store import (
    CacheStore,
    CacheStoreError,
    MemoryCacheStore,
    UnavailableCacheStore,
)

__all__ = [
    # Keys
    "ANONYMOUS_USER_ID",
    "CacheKeys",
    # Stores
    "CacheStore",
    "CacheStoreError",
    "MemoryCacheStore",
    "RedisCacheStore",
    "UnavailableCacheStore",
    "create_cache_store",
    "get_redis",
    "close_redis",
    # Invalidation
    "CacheInvalidationError",
    "CacheInvalidator",
]
