"""Error responses for Smart File API.

Every failure is rendered with the same envelope:

    {"status": "error", "message": "..."}
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ErrorBody(BaseModel):
    """Error envelope."""

    model_config = {"extra": "forbid"}

    status: str = "error"
    message: str


class ApiError(HTTPException):
    """Base exception for API errors."""

    def __init__(self, status_code: int, message: str):
        self.message = message
        super().__init__(status_code=status_code, detail=message)

    def to_body(self) -> ErrorBody:
        return ErrorBody(message=self.message)


class BadRequestError(ApiError):
    """Invalid request (400)."""

    def __init__(self, message: str):
        super().__init__(status_code=400, message=message)


class UnauthorizedError(ApiError):
    """Missing or invalid credentials (401)."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(status_code=401, message=message)


class NotFoundError(ApiError):
    """Resource not found (404)."""

    def __init__(self, message: str = "Not found"):
        super().__init__(status_code=404, message=message)


class ConflictError(ApiError):
    """Resource already exists (409)."""

    def __init__(self, message: str):
        super().__init__(status_code=409, message=message)


class InternalServerError(ApiError):
    """Internal server error (500)."""

    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(status_code=500, message=message)


def error_response(status_code: int, message: str) -> ORJSONResponse:
    return ORJSONResponse(status_code=status_code, content=ErrorBody(message=message).model_dump())


def _request_context(request: Request) -> dict[str, Any]:
    return {
        "path": request.url.path,
        "method": request.method,
        "user_id": getattr(request.state, "user_id", None),
    }


async def api_exception_handler(request: Request, exc: ApiError) -> ORJSONResponse:
    """Exception handler for API errors."""
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(
        level,
        f"API error: {exc.message}",
        extra={"status_code": exc.status_code, **_request_context(request)},
    )
    return error_response(exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: HTTPException) -> ORJSONResponse:
    """Render framework HTTP errors (404 for unknown routes, 405) in the error envelope."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(exc.status_code, message)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    """Render body/query validation failures as 400 with the first problem."""
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg', 'invalid value')}" if field else first.get("msg")
    logger.info(f"Validation failed: {message}", extra=_request_context(request))
    return error_response(400, message)


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    """Exception handler for unexpected errors."""
    logger.exception("Unhandled error", extra=_request_context(request))
    return error_response(500, "An unexpected error occurred")
