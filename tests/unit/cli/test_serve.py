"""Tests for the serve and version commands."""

from __future__ import annotations

from typing import Any

import pytest
import uvicorn
from typer.testing import CliRunner

from smartfile import __version__
from smartfile.cli import app

runner = CliRunner()


@pytest.fixture
def uvicorn_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def fake_run(target: str, **kwargs: Any) -> None:
        calls.append({"target": target, **kwargs})

    monkeypatch.setattr(uvicorn, "run", fake_run)
    return calls


class TestServe:
    def test_runs_app_factory(self, uvicorn_calls: list[dict[str, Any]]) -> None:
        result = runner.invoke(
            app, ["serve", "--host", "127.0.0.1", "-p", "9001", "--log-level", "DEBUG"]
        )

        assert result.exit_code == 0
        (call,) = uvicorn_calls
        assert call["target"] == "smartfile.api.app:create_app"
        assert call["factory"] is True
        assert call["port"] == 9001
        assert call["log_level"] == "debug"
        assert call["access_log"] is False
        assert "http://127.0.0.1:9001" in result.output

    def test_rejects_unknown_log_level(self, uvicorn_calls: list[dict[str, Any]]) -> None:
        result = runner.invoke(app, ["serve", "--log-level", "verbose"])

        assert result.exit_code != 0
        assert uvicorn_calls == []


def test_version() -> None:
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert result.output.strip() == __version__
