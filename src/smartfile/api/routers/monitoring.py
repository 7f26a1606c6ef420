"""Monitoring endpoints for Smart File API.

Provides:
- /metrics      - Prometheus exposition format (unauthenticated, for scrapers)
- /api/profile  - Identity of the calling user
- /api/metrics  - Runtime, database, cache and storage statistics
- /api/logs     - Tail of the JSON log file, optionally filtered by level
"""

from __future__ import annotations

import asyncio
import gc
import os
import sys
import threading
import tracemalloc
from datetime import UTC, datetime
from typing import Any

import aiofiles  # type: ignore[import-untyped]
import aiofiles.os  # type: ignore[import-untyped]
import orjson
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from smartfile.api.deps import AuthenticatedUser, get_cache_store, get_file_storage
from smartfile.api.errors import BadRequestError, InternalServerError
from smartfile.api.responses import success_response
from smartfile.api.routers.health import uptime_seconds
from smartfile.cache.keys import CacheKeys
from smartfile.cache.store import CacheStore, CacheStoreError
from smartfile.config import settings
from smartfile.observability.metrics import exposition
from smartfile.persistence.db import get_session
from smartfile.persistence.repositories import FileRepository, UserRepository
from smartfile.storage.base import FileStorage

router = APIRouter(tags=["observability"])

LOG_LEVELS = ("info", "warning", "error")

MB = 1024 * 1024


@router.get(
    "/metrics",
    response_class=Response,
    summary="Prometheus metrics",
    responses={200: {"content": {"text/plain": {}}}},
)
async def get_prometheus_metrics() -> Response:
    """Return Prometheus metrics in exposition format."""
    return Response(
        content=exposition(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )


@router.get("/api/profile")
async def get_profile(user: AuthenticatedUser) -> Response:
    """Return the authenticated identity."""
    return success_response(
        "Profile retrieved successfully", {"user_id": user.id, "email": user.email}
    )


def _max_rss_mb() -> float | None:
    if sys.platform == "win32":
        return None
    import resource

    max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # Linux reports kilobytes, macOS bytes
    return max_rss / MB if sys.platform == "darwin" else max_rss / 1024


def system_stats(request: Request) -> dict[str, Any]:
    stats: dict[str, Any] = {
        "uptime_seconds": round(uptime_seconds(request), 3),
        "pid": os.getpid(),
        "python_version": sys.version.split()[0],
        "threads": threading.active_count(),
        "asyncio_tasks": len(asyncio.all_tasks()),
        "gc_counts": list(gc.get_count()),
        "max_rss_mb": _max_rss_mb(),
    }
    if tracemalloc.is_tracing():
        current, peak = tracemalloc.get_traced_memory()
        stats["traced_memory_mb"] = round(current / MB, 2)
        stats["traced_peak_mb"] = round(peak / MB, 2)
    return stats


async def cache_stats(store: CacheStore) -> dict[str, Any]:
    connected = store.available and await store.ping()
    cache_keys = 0
    if connected:
        try:
            cache_keys = await store.count_matching(CacheKeys.invalidation_pattern())
        except CacheStoreError:
            connected = False
    return {"backend": store.name, "connected": connected, "cache_keys": cache_keys}


@router.get("/api/metrics")
async def get_runtime_metrics(
    request: Request,
    user: AuthenticatedUser,
    session: AsyncSession = Depends(get_session),
    store: CacheStore = Depends(get_cache_store),
    storage: FileStorage = Depends(get_file_storage),
) -> Response:
    """Runtime, database, cache and storage statistics."""
    total_users = await UserRepository(session).count()
    total_files = await FileRepository(session).count_all()
    uploads_size = await storage.total_size()

    return success_response(
        "Metrics retrieved successfully",
        {
            "system": system_stats(request),
            "database": {"total_users": total_users, "total_files": total_files},
            "cache": await cache_stats(store),
            "storage": {"uploads_size_mb": round(uploads_size / MB, 4)},
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


def filter_log_lines(text: str, level: str | None) -> list[str]:
    """Split a log tail into lines, keeping only ``level`` records if given.

    Lines that are not JSON are kept when no level is requested and dropped
    otherwise.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not level:
        return lines

    wanted = level.upper()
    kept = []
    for line in lines:
        try:
            record = orjson.loads(line)
        except orjson.JSONDecodeError:
            continue
        if isinstance(record, dict) and str(record.get("level", "")).upper() == wanted:
            kept.append(line)
    return kept


async def read_log_tail(path: str, max_bytes: int) -> tuple[str, int]:
    """Read the last ``max_bytes`` of a log file.

    Returns:
        Tuple of (tail text starting at a line boundary, total file size)
    """
    file_size = (await aiofiles.os.stat(path)).st_size
    offset = max(0, file_size - max_bytes)
    async with aiofiles.open(path, "rb") as f:
        await f.seek(offset)
        data = await f.read()

    text = data.decode("utf-8", errors="replace")
    if offset > 0:
        # Drop the partial first line
        _, _, text = text.partition("\n")
    return text, file_size


@router.get("/api/logs")
async def get_logs(
    user: AuthenticatedUser,
    level: str | None = Query(default=None, description="info, warning or error"),
) -> Response:
    """Recent application log records."""
    if level is not None:
        level = level.lower()
        if level not in LOG_LEVELS:
            raise BadRequestError(f"level must be one of: {', '.join(LOG_LEVELS)}")

    if not settings.log_file:
        raise InternalServerError("Failed to read logs")
    try:
        text, file_size = await read_log_tail(settings.log_file, settings.log_tail_bytes)
    except OSError:
        raise InternalServerError("Failed to read logs")

    logs = filter_log_lines(text, level)
    return success_response(
        "Logs retrieved successfully",
        {"logs": logs, "count": len(logs), "file_size": file_size, "level": level},
    )
