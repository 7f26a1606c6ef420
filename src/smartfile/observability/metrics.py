"""Prometheus metrics for Smart File API.

Collectors:
- smartfile_http_requests_total{method, route, status}
- smartfile_http_request_duration_seconds{method, route}
- smartfile_http_requests_in_progress{method}
- smartfile_response_cache_lookups_total{route, result}   result: hit|miss
- smartfile_cache_store_duration_seconds{operation}
- smartfile_files_uploaded_total{file_type}
- smartfile_files_processed_total{status}

Requests are labelled with the matched route template
(``/api/files/{file_id}``) rather than the raw path, which keeps label
cardinality bounded. With ``settings.enable_metrics`` off nothing is
registered and every ``record_*`` helper is a no-op.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from smartfile.config import settings

logger = logging.getLogger(__name__)

UNMATCHED_ROUTE = "unmatched"

# Probes and the scrape endpoint would drown out API traffic
EXCLUDED_PREFIXES = ("/health", "/metrics")


class ServiceMetrics:
    """Collectors for one registry."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        self.registry = registry

        self.http_requests_total = Counter(
            "smartfile_http_requests_total",
            "HTTP requests by route and status",
            ["method", "route", "status"],
            registry=registry,
        )
        self.http_request_duration_seconds = Histogram(
            "smartfile_http_request_duration_seconds",
            "HTTP request latency in seconds",
            ["method", "route"],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
            registry=registry,
        )
        self.http_requests_in_progress = Gauge(
            "smartfile_http_requests_in_progress",
            "HTTP requests being handled",
            ["method"],
            registry=registry,
        )
        self.cache_lookups_total = Counter(
            "smartfile_response_cache_lookups_total",
            "Response cache lookups by route and result",
            ["route", "result"],
            registry=registry,
        )
        self.cache_store_duration_seconds = Histogram(
            "smartfile_cache_store_duration_seconds",
            "Cache store call latency in seconds",
            ["operation"],
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0, 2.0),
            registry=registry,
        )
        self.files_uploaded_total = Counter(
            "smartfile_files_uploaded_total",
            "Files uploaded by detected type",
            ["file_type"],
            registry=registry,
        )
        self.files_processed_total = Counter(
            "smartfile_files_processed_total",
            "Background processing runs by final status",
            ["status"],
            registry=registry,
        )

    def exposition(self) -> bytes:
        return generate_latest(self.registry)


_metrics: ServiceMetrics | None = None


def get_metrics() -> ServiceMetrics | None:
    """The process-wide collectors, created on first use.

    Returns None when metrics are disabled.
    """
    global _metrics
    if _metrics is None and settings.enable_metrics:
        _metrics = ServiceMetrics()
        logger.info("Prometheus metrics initialized")
    return _metrics


def exposition() -> bytes:
    metrics = get_metrics()
    if metrics is None:
        return b"# metrics disabled\n"
    return metrics.exposition()


def route_label(request: Request) -> str:
    """Route template of the matched endpoint, or ``unmatched``."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


class MetricsMiddleware(BaseHTTPMiddleware):
    """Count and time every API request."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        metrics = get_metrics()
        if metrics is None or request.url.path.startswith(EXCLUDED_PREFIXES):
            return await call_next(request)

        method = request.method
        in_progress = metrics.http_requests_in_progress.labels(method=method)
        in_progress.inc()
        start = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            elapsed = time.perf_counter() - start
            in_progress.dec()
            # The route is only known once routing has run
            route = route_label(request)
            metrics.http_requests_total.labels(method=method, route=route, status=status).inc()
            metrics.http_request_duration_seconds.labels(method=method, route=route).observe(
                elapsed
            )


def record_cache_lookup(route: str, hit: bool) -> None:
    metrics = get_metrics()
    if metrics is not None:
        metrics.cache_lookups_total.labels(route=route, result="hit" if hit else "miss").inc()


def record_cache_operation(operation: str, duration: float) -> None:
    """Record the latency of one cache store call (get, set, delete_matching, ...)."""
    metrics = get_metrics()
    if metrics is not None:
        metrics.cache_store_duration_seconds.labels(operation=operation).observe(duration)


def record_file_uploaded(file_type: str) -> None:
    metrics = get_metrics()
    if metrics is not None:
        metrics.files_uploaded_total.labels(file_type=file_type).inc()


def record_file_processed(status: str) -> None:
    metrics = get_metrics()
    if metrics is not None:
        metrics.files_processed_total.labels(status=status).inc()
