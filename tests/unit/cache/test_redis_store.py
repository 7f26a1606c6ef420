"""Tests for RedisCacheStore error mapping, using a mocked client."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from smartfile.cache.redis import RedisCacheStore
from smartfile.cache.store import CacheStoreError


def make_client(keys: list[bytes] | None = None) -> MagicMock:
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.setex = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock()

    async def scan_iter(match: str | None = None):
        for key in keys or []:
            yield key

    client.scan_iter = scan_iter
    return client


class TestRedisCacheStore:
    """Tests for RedisCacheStore."""

    @pytest.mark.asyncio
    async def test_get_returns_bytes(self) -> None:
        client = make_client()
        client.get.return_value = b'{"status":"success"}'
        store = RedisCacheStore(client)

        assert await store.get("cache:k") == b'{"status":"success"}'
        client.get.assert_awaited_once_with("cache:k")

    @pytest.mark.asyncio
    async def test_set_uses_setex_with_ttl(self) -> None:
        client = make_client()
        store = RedisCacheStore(client)

        await store.set("cache:k", b"body", ttl=300)

        client.setex.assert_awaited_once_with("cache:k", 300, b"body")

    @pytest.mark.asyncio
    async def test_connection_error_becomes_store_error(self) -> None:
        client = make_client()
        client.get.side_effect = RedisConnectionError("connection refused")
        store = RedisCacheStore(client)

        with pytest.raises(CacheStoreError, match="connection refused"):
            await store.get("cache:k")

    @pytest.mark.asyncio
    async def test_timeout_becomes_store_error(self) -> None:
        client = make_client()

        async def slow_get(key: str) -> bytes:
            await asyncio.sleep(1)
            return b"late"

        client.get = slow_get
        store = RedisCacheStore(client, op_timeout=0.01)

        with pytest.raises(CacheStoreError, match="timed out"):
            await store.get("cache:k")

    @pytest.mark.asyncio
    async def test_delete_matching_scans_and_deletes(self) -> None:
        client = make_client(keys=[b"cache:a", b"cache:b", b"cache:c"])
        store = RedisCacheStore(client)

        assert await store.delete_matching("cache:*") == 3
        assert client.delete.await_count == 3

    @pytest.mark.asyncio
    async def test_delete_matching_failure_mid_scan(self) -> None:
        client = make_client(keys=[b"cache:a", b"cache:b"])
        client.delete.side_effect = [1, RedisConnectionError("lost")]
        store = RedisCacheStore(client)

        with pytest.raises(CacheStoreError):
            await store.delete_matching("cache:*")

    @pytest.mark.asyncio
    async def test_count_matching(self) -> None:
        store = RedisCacheStore(make_client(keys=[b"cache:a", b"cache:b"]))
        assert await store.count_matching("cache:*") == 2

    @pytest.mark.asyncio
    async def test_ping_false_on_error(self) -> None:
        client = make_client()
        client.ping.side_effect = RedisConnectionError("down")
        store = RedisCacheStore(client)

        assert await store.ping() is False

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        client = make_client()
        await RedisCacheStore(client).close()
        client.aclose.assert_awaited_once()
