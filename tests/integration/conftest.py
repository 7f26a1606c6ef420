"""Integration test fixtures.

Each test gets a fresh application backed by a temporary SQLite database,
a temporary upload directory and the in-process cache store.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from smartfile.api.app import create_app
from smartfile.cache.store import CacheStore, MemoryCacheStore
from smartfile.config import settings
from smartfile.persistence import db as db_module
from tests.integration.helpers import auth_headers


@pytest.fixture
def test_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the application at per-test resources."""
    monkeypatch.setattr(settings, "database_url", f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path / "uploads"))
    monkeypatch.setattr(settings, "log_file", str(tmp_path / "app.log"))
    monkeypatch.setattr(settings, "log_json", True)
    monkeypatch.setattr(settings, "processing_delay", 0.05)

    # Force a new engine for the new database URL
    monkeypatch.setattr(db_module, "_engine", None)
    monkeypatch.setattr(db_module, "_session_factory", None)
    return tmp_path


@pytest.fixture
def cache_store() -> CacheStore:
    return MemoryCacheStore()


@pytest.fixture
def client(test_settings: Path, cache_store: CacheStore) -> Iterator[TestClient]:
    app = create_app(cache_store=cache_store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register_user(client: TestClient) -> Callable[..., str]:
    """Register a user and return their access token."""

    def _register(email: str = "ada@example.com", password: str = "secret123") -> str:
        response = client.post(
            "/api/auth/register",
            json={"name": email.split("@")[0], "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        token: str = response.json()["data"]["token"]
        return token

    return _register


@pytest.fixture
def upload(client: TestClient) -> Callable[..., dict[str, Any]]:
    """Upload a file and return the created record."""

    def _upload(
        token: str, name: str = "notes.txt", content: bytes = b"hello world"
    ) -> dict[str, Any]:
        response = client.post(
            "/api/files/upload",
            files={"file": (name, content, "application/octet-stream")},
            headers=auth_headers(token),
        )
        assert response.status_code == 201, response.text
        record: dict[str, Any] = response.json()["data"]
        return record

    return _upload


