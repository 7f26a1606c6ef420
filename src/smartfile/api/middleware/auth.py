"""Bearer token resolution middleware.

Resolves the ``Authorization: Bearer <token>`` header before routing and
stores the outcome on the request:

- request.state.user_id: authenticated user id, or None
- request.state.user_email: token email, or None
- request.state.auth_error: message for a present but unusable header

The middleware never rejects a request; endpoints that need a user enforce
it with the ``require_user`` dependency. Resolving identity this early lets
the response cache scope its keys per user before the endpoint runs.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from smartfile.observability.logging import LogContext
from smartfile.security.tokens import InvalidTokenError, decode_token

logger = logging.getLogger(__name__)

MISSING_HEADER = "Authorization header required"
INVALID_TOKEN = "Invalid or expired token"


def _bearer_token(header: str) -> str | None:
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class AuthContextMiddleware(BaseHTTPMiddleware):
    """Attach the authenticated identity (if any) to each request."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        request.state.user_id = None
        request.state.user_email = None
        request.state.auth_error = MISSING_HEADER

        header = request.headers.get("authorization")
        if header:
            token = _bearer_token(header)
            if token is None:
                request.state.auth_error = INVALID_TOKEN
            else:
                try:
                    claims = decode_token(token)
                except InvalidTokenError as e:
                    logger.debug(f"Rejected bearer token: {e}")
                    request.state.auth_error = INVALID_TOKEN
                else:
                    request.state.user_id = claims.user_id
                    request.state.user_email = claims.email
                    request.state.auth_error = None

        if request.state.user_id is None:
            return await call_next(request)

        with LogContext(user_id=request.state.user_id):
            return await call_next(request)
