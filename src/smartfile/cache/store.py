"""Key-value store interface for the response cache.

Defines the abstract interface the cache layer talks to, plus two backends
that need no external service:
- MemoryCacheStore: in-process dict with per-entry expiry (single process)
- UnavailableCacheStore: explicit "no cache" state, every operation no-ops

The Redis backend lives in ``smartfile.cache.redis``.
"""

from __future__ import annotations

import fnmatch
import time
from abc import ABC, abstractmethod
from collections.abc import Callable


class CacheStoreError(Exception):
    """A store operation failed (connection loss, timeout, server error)."""


class CacheStore(ABC):
    """Abstract base class for cache store backends."""

    name: str = "abstract"

    @property
    def available(self) -> bool:
        """Whether the store was reachable when it was set up."""
        return True

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Get a value, or None if missing or expired.

        Raises:
            CacheStoreError: If the store could not be queried
        """
        ...

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl: int) -> None:
        """Store a value that expires after ``ttl`` seconds.

        Raises:
            CacheStoreError: If the value could not be written
        """
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a single key."""
        ...

    @abstractmethod
    async def delete_matching(self, pattern: str) -> int:
        """Delete every key matching a glob-style pattern.

        Returns:
            Number of keys deleted

        Raises:
            CacheStoreError: If enumeration or any deletion failed
        """
        ...

    @abstractmethod
    async def count_matching(self, pattern: str) -> int:
        """Count keys matching a glob-style pattern."""
        ...

    async def ping(self) -> bool:
        """Check store connectivity."""
        return self.available

    async def close(self) -> None:
        """Release connections held by the store."""
        return None


class UnavailableCacheStore(CacheStore):
    """Store used when caching is disabled or the backend was unreachable."""

    name = "none"

    def __init__(self, reason: str = "caching disabled"):
        self.reason = reason

    @property
    def available(self) -> bool:
        return False

    async def get(self, key: str) -> bytes | None:
        return None

    async def set(self, key: str, value: bytes, ttl: int) -> None:
        return None

    async def delete(self, key: str) -> None:
        return None

    async def delete_matching(self, pattern: str) -> int:
        return 0

    async def count_matching(self, pattern: str) -> int:
        return 0


class MemoryCacheStore(CacheStore):
    """In-process cache store with TTL expiry.

    Entries are evicted lazily on access. Only suitable for a single worker
    process, since nothing is shared between processes.
    """

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[bytes, float]] = {}

    def _live_keys(self) -> list[str]:
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        return list(self._entries)

    async def get(self, key: str) -> bytes | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: bytes, ttl: int) -> None:
        self._entries[key] = (value, self._clock() + ttl)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def delete_matching(self, pattern: str) -> int:
        matched = fnmatch.filter(self._live_keys(), pattern)
        for key in matched:
            self._entries.pop(key, None)
        return len(matched)

    async def count_matching(self, pattern: str) -> int:
        return len(fnmatch.filter(self._live_keys(), pattern))
