"""Tests for the in-process and unavailable cache stores."""

from __future__ import annotations

import pytest

from smartfile.cache.store import MemoryCacheStore, UnavailableCacheStore


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestMemoryCacheStore:
    """Tests for MemoryCacheStore."""

    @pytest.mark.asyncio
    async def test_set_and_get(self) -> None:
        store = MemoryCacheStore()
        await store.set("cache:a", b'{"ok":true}', ttl=60)
        assert await store.get("cache:a") == b'{"ok":true}'

    @pytest.mark.asyncio
    async def test_missing_key(self) -> None:
        store = MemoryCacheStore()
        assert await store.get("cache:missing") is None

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self) -> None:
        """An entry queried at or after its TTL is a miss."""
        clock = FakeClock()
        store = MemoryCacheStore(clock=clock)
        await store.set("cache:a", b"x", ttl=300)

        clock.now += 299
        assert await store.get("cache:a") == b"x"

        clock.now += 1
        assert await store.get("cache:a") is None

    @pytest.mark.asyncio
    async def test_delete(self) -> None:
        store = MemoryCacheStore()
        await store.set("cache:a", b"x", ttl=60)
        await store.delete("cache:a")
        assert await store.get("cache:a") is None

    @pytest.mark.asyncio
    async def test_delete_matching_only_touches_pattern(self) -> None:
        store = MemoryCacheStore()
        await store.set("cache:a", b"1", ttl=60)
        await store.set("cache:b", b"2", ttl=60)
        await store.set("session:c", b"3", ttl=60)

        deleted = await store.delete_matching("cache:*")

        assert deleted == 2
        assert await store.get("cache:a") is None
        assert await store.get("session:c") == b"3"

    @pytest.mark.asyncio
    async def test_count_matching_skips_expired(self) -> None:
        clock = FakeClock()
        store = MemoryCacheStore(clock=clock)
        await store.set("cache:short", b"1", ttl=10)
        await store.set("cache:long", b"2", ttl=100)

        clock.now += 50

        assert await store.count_matching("cache:*") == 1

    @pytest.mark.asyncio
    async def test_ping(self) -> None:
        assert await MemoryCacheStore().ping() is True
        assert MemoryCacheStore().available is True


class TestUnavailableCacheStore:
    """Tests for UnavailableCacheStore."""

    @pytest.mark.asyncio
    async def test_every_operation_is_a_no_op(self) -> None:
        store = UnavailableCacheStore("redis unreachable at startup")

        assert store.available is False
        await store.set("cache:a", b"x", ttl=60)
        assert await store.get("cache:a") is None
        assert await store.delete_matching("cache:*") == 0
        assert await store.count_matching("cache:*") == 0
        assert await store.ping() is False
