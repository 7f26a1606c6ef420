"""Unauthenticated health probes.

    GET /health         status, server time and uptime
    GET /health/live    process is up
    GET /health/ready   database and response cache reachability
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import ORJSONResponse

from smartfile.cache.store import CacheStore
from smartfile.persistence.db import health_check as db_health_check

router = APIRouter(tags=["health"])

PROBE_TIMEOUT = 5.0


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    # Caching switched off or store down at startup; requests still succeed
    DISABLED = "disabled"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    name: str
    status: HealthStatus
    latency_ms: float = 0.0
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.message:
            body["message"] = self.message
        return body


async def _probe(name: str, check: Callable[[], Awaitable[bool]]) -> ComponentHealth:
    """Run one boolean check under a timeout and time it."""
    start = time.perf_counter()
    try:
        ok = await asyncio.wait_for(check(), timeout=PROBE_TIMEOUT)
        message = None if ok else f"{name} check failed"
    except asyncio.TimeoutError:
        ok, message = False, f"{name} check timed out"
    return ComponentHealth(
        name=name,
        status=HealthStatus.HEALTHY if ok else HealthStatus.UNHEALTHY,
        latency_ms=(time.perf_counter() - start) * 1000,
        message=message,
    )


async def check_database() -> ComponentHealth:
    return await _probe("database", db_health_check)


async def check_cache(store: CacheStore | None) -> ComponentHealth:
    if store is None or not store.available:
        return ComponentHealth("cache", HealthStatus.DISABLED, message="Response caching disabled")
    return await _probe("cache", store.ping)


def uptime_seconds(request: Request) -> float:
    started_at = getattr(request.app.state, "started_at", None)
    return 0.0 if started_at is None else time.monotonic() - started_at


@router.get("/health")
async def health(request: Request) -> ORJSONResponse:
    return ORJSONResponse(
        {
            "status": "ok",
            "time": datetime.now(UTC).isoformat(),
            "uptime": round(uptime_seconds(request), 3),
        }
    )


@router.get("/health/live")
async def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
async def ready(request: Request) -> ORJSONResponse:
    """503 when the database, or a cache that should be up, fails its check."""
    store = getattr(request.app.state, "cache_store", None)
    components = await asyncio.gather(check_database(), check_cache(store))

    failed = any(c.status == HealthStatus.UNHEALTHY for c in components)
    status = HealthStatus.UNHEALTHY if failed else HealthStatus.HEALTHY
    return ORJSONResponse(
        {"status": status.value, "components": [c.to_dict() for c in components]},
        status_code=503 if failed else 200,
    )
