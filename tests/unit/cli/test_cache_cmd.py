"""Tests for the cache CLI commands."""

from __future__ import annotations

import asyncio

import pytest
from typer.testing import CliRunner

from smartfile.cache.keys import CacheKeys
from smartfile.cache.store import CacheStore, MemoryCacheStore, UnavailableCacheStore
from smartfile.cli import app, cache_cmd
from smartfile.cli.cache_cmd import MEMORY_BACKEND_NOTE

runner = CliRunner()


def use_store(monkeypatch: pytest.MonkeyPatch, store: CacheStore) -> None:
    async def factory() -> CacheStore:
        return store

    monkeypatch.setattr(cache_cmd, "create_cache_store", factory)


@pytest.fixture
def populated() -> MemoryCacheStore:
    store = MemoryCacheStore()
    for key in (
        CacheKeys.response("/api/files/", 1),
        CacheKeys.response("/api/files/", 2),
        "session:abc",
    ):
        asyncio.run(store.set(key, b"{}", 300))
    return store


class TestCacheCommands:
    def test_clear(self, monkeypatch: pytest.MonkeyPatch, populated: MemoryCacheStore) -> None:
        use_store(monkeypatch, populated)

        result = runner.invoke(app, ["cache", "clear"])

        assert result.exit_code == 0
        assert "Cleared 2 cached responses" in result.output
        assert MEMORY_BACKEND_NOTE in result.output
        assert asyncio.run(populated.get("session:abc")) == b"{}"
        assert asyncio.run(populated.count_matching(CacheKeys.invalidation_pattern())) == 0

    def test_clear_unavailable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        use_store(monkeypatch, UnavailableCacheStore())

        result = runner.invoke(app, ["cache", "clear"])

        assert result.exit_code == 1

    def test_stats(self, monkeypatch: pytest.MonkeyPatch, populated: MemoryCacheStore) -> None:
        use_store(monkeypatch, populated)

        result = runner.invoke(app, ["cache", "stats"])

        assert result.exit_code == 0
        assert "Backend: memory" in result.output
        assert "Cached responses: 2" in result.output
        assert MEMORY_BACKEND_NOTE in result.output

    def test_clear_redis_has_no_memory_note(self, monkeypatch: pytest.MonkeyPatch) -> None:
        store = MemoryCacheStore()
        store.name = "redis"
        use_store(monkeypatch, store)

        result = runner.invoke(app, ["cache", "clear"])

        assert result.exit_code == 0
        assert "Cleared 0 cached responses" in result.output
        assert MEMORY_BACKEND_NOTE not in result.output
