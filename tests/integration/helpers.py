"""Shared helpers for API integration tests."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable

from smartfile.cache.keys import CacheKeys
from smartfile.cache.store import CacheStore


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def wait_for(condition: Callable[[], bool], timeout: float = 5.0, interval: float = 0.05) -> bool:
    """Poll until condition() is true or the timeout passes."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(interval)
    return condition()


def cached_entry_count(store: CacheStore) -> int:
    """Number of response cache entries currently held by ``store``."""
    return asyncio.run(store.count_matching(CacheKeys.invalidation_pattern()))
