"""Tests for Prometheus metrics."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from smartfile.observability import metrics as metrics_module
from smartfile.observability.metrics import (
    MetricsMiddleware,
    ServiceMetrics,
    record_cache_lookup,
    record_file_uploaded,
)


def sample(registry: CollectorRegistry, name: str, **labels: str) -> float:
    return registry.get_sample_value(name, labels) or 0.0


def install(monkeypatch: pytest.MonkeyPatch, registry: CollectorRegistry) -> ServiceMetrics:
    service_metrics = ServiceMetrics(registry)
    monkeypatch.setattr(metrics_module, "_metrics", service_metrics)
    return service_metrics


class TestMetricsMiddleware:
    """Requests are labelled by route template."""

    def test_route_template_label(self, monkeypatch: pytest.MonkeyPatch) -> None:
        registry = CollectorRegistry()
        install(monkeypatch, registry)

        app = FastAPI()
        app.add_middleware(MetricsMiddleware)

        @app.get("/api/files/{file_id}")
        async def detail(file_id: int) -> dict[str, int]:
            return {"id": file_id}

        client = TestClient(app)
        client.get("/api/files/1")
        client.get("/api/files/2")
        client.get("/nowhere")

        assert sample(
            registry,
            "smartfile_http_requests_total",
            method="GET",
            route="/api/files/{file_id}",
            status="200",
        ) == 2
        assert sample(
            registry, "smartfile_http_requests_total", method="GET", route="unmatched", status="404"
        ) == 1

    def test_health_is_not_counted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        registry = CollectorRegistry()
        install(monkeypatch, registry)

        app = FastAPI()
        app.add_middleware(MetricsMiddleware)

        @app.get("/health")
        async def health() -> dict[str, str]:
            return {"status": "ok"}

        TestClient(app).get("/health")

        assert b'route="/health"' not in metrics_module.exposition()


class TestRecorders:
    def test_cache_lookups(self, monkeypatch: pytest.MonkeyPatch) -> None:
        registry = CollectorRegistry()
        install(monkeypatch, registry)

        record_cache_lookup("/api/files/", hit=True)
        record_cache_lookup("/api/files/", hit=False)
        record_cache_lookup("/api/files/", hit=False)

        name = "smartfile_response_cache_lookups_total"
        assert sample(registry, name, route="/api/files/", result="hit") == 1
        assert sample(registry, name, route="/api/files/", result="miss") == 2

    def test_disabled_metrics_are_noops(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(metrics_module, "_metrics", None)
        monkeypatch.setattr(metrics_module.settings, "enable_metrics", False)

        record_file_uploaded("image")

        assert metrics_module.get_metrics() is None
        assert metrics_module.exposition() == b"# metrics disabled\n"
