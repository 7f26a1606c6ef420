"""Request id propagation.

Every request gets an id, taken from ``X-Request-ID`` when the client sends a
usable one and generated otherwise. An upstream ``X-Correlation-ID`` is passed
through, defaulting to the request id. Both are bound to the logging context
while the request runs and echoed on the response, so a client can quote them
when reporting a failed upload.
"""

from __future__ import annotations

import re
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from smartfile.observability.logging import LogContext

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_ID_HEADER = "X-Correlation-ID"

MAX_ID_LENGTH = 128
_ID_PATTERN = re.compile(r"[A-Za-z0-9._:-]+")


def client_id(value: str | None) -> str | None:
    """Accept a client supplied id only if it is short and safe to log."""
    if value and len(value) <= MAX_ID_LENGTH and _ID_PATTERN.fullmatch(value):
        return value
    return None


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Bind request and correlation ids for the duration of a request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = client_id(request.headers.get(REQUEST_ID_HEADER)) or uuid.uuid4().hex
        correlation_id = client_id(request.headers.get(CORRELATION_ID_HEADER)) or request_id
        request.state.request_id = request_id

        with LogContext(request_id=request_id, correlation_id=correlation_id):
            response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
