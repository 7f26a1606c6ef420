"""Per-request access logging."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("smartfile.access")


def level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request with status, latency and caller details."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        start_time = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            status_code = response.status_code if response is not None else 500
            latency_ms = (time.perf_counter() - start_time) * 1000
            logger.log(
                level_for_status(status_code),
                f"{request.method} {request.url.path} {status_code} {latency_ms:.1f}ms",
                extra={
                    "status": status_code,
                    "latency_ms": round(latency_ms, 3),
                    "method": request.method,
                    "path": request.url.path,
                    "client_ip": request.client.host if request.client else None,
                    "user_agent": request.headers.get("user-agent", ""),
                    "user_id": getattr(request.state, "user_id", None),
                    "cache": response.headers.get("x-cache") if response is not None else None,
                },
            )
