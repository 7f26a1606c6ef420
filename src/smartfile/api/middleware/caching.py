"""Read-through response cache for Smart File API endpoints.

Tag an endpoint with ``cache_response`` and register it on a router whose
route class is ``ResponseCacheRoute``:

    router = APIRouter(route_class=ResponseCacheRoute)

    @router.get("/")
    @cache_response()
    async def list_files(...): ...

For tagged GET endpoints the route checks the cache store before running
the endpoint. A hit is answered straight from the stored bytes with
``X-Cache: HIT``; on a miss the endpoint runs, the response is marked
``X-Cache: MISS`` and a 200 body is written back with the TTL. HTTP and
validation errors raised on a miss are rendered here by the app's exception
handlers so they carry the MISS marker too; they are never stored. Store
failures degrade to a miss and are never surfaced to the client. When the
store is unavailable the route is a pass-through and adds no header.

Identity comes from ``request.state.user_id``, set by ``AuthContextMiddleware``
before routing, so each user gets separate entries.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException

from smartfile.cache.keys import CacheKeys
from smartfile.cache.store import CacheStore, CacheStoreError
from smartfile.config import settings
from smartfile.observability.metrics import record_cache_lookup

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

CACHE_HEADER = "X-Cache"

_POLICY_ATTR = "__response_cache__"


@dataclass(frozen=True)
class CachePolicy:
    """Per-endpoint cache settings. ``ttl=None`` uses ``settings.cache_ttl``."""

    ttl: int | None = None

    @property
    def effective_ttl(self) -> int:
        return settings.cache_ttl if self.ttl is None else self.ttl


def cache_response(ttl: int | None = None) -> Callable[[F], F]:
    """Mark an endpoint as cacheable.

    The endpoint itself is returned unchanged, so FastAPI still sees its
    original signature and dependencies.
    """

    def decorator(endpoint: F) -> F:
        setattr(endpoint, _POLICY_ATTR, CachePolicy(ttl=ttl))
        return endpoint

    return decorator


def get_cache_policy(endpoint: Callable[..., Any]) -> CachePolicy | None:
    return getattr(endpoint, _POLICY_ATTR, None)


def response_cache_key(request: Request) -> str:
    """Cache key for a request, scoped to the authenticated user."""
    target = CacheKeys.request_target(request.url.path, request.url.query)
    return CacheKeys.response(target, getattr(request.state, "user_id", None))


def _store_for(request: Request) -> CacheStore | None:
    return getattr(request.app.state, "cache_store", None)


async def _render_error(request: Request, exc: Exception) -> Response:
    """Build the error response the app's registered handler would send."""
    handlers = request.app.exception_handlers
    handler = next((handlers[cls] for cls in type(exc).__mro__ if cls in handlers), None)
    if handler is None:
        raise exc
    response = handler(request, exc)
    if inspect.isawaitable(response):
        response = await response
    return response


class ResponseCacheRoute(APIRoute):
    """Route class that serves tagged endpoints through the response cache."""

    def get_route_handler(self) -> Callable[[Request], Any]:
        original_handler = super().get_route_handler()
        policy = get_cache_policy(self.endpoint)
        if policy is None:
            return original_handler

        async def handler(request: Request) -> Response:
            if request.method != "GET":
                return await original_handler(request)

            store = _store_for(request)
            if store is None or not store.available:
                return await original_handler(request)

            key = response_cache_key(request)

            cached: bytes | None = None
            try:
                cached = await store.get(key)
            except CacheStoreError as e:
                logger.warning(
                    f"Response cache lookup failed: {e}", extra={"path": request.url.path}
                )

            if cached:
                record_cache_lookup(self.path, hit=True)
                return Response(
                    content=cached,
                    status_code=200,
                    media_type="application/json",
                    headers={CACHE_HEADER: "HIT"},
                )

            record_cache_lookup(self.path, hit=False)
            try:
                response = await original_handler(request)
            except (HTTPException, RequestValidationError) as exc:
                response = await _render_error(request, exc)
            response.headers[CACHE_HEADER] = "MISS"

            body = getattr(response, "body", None)
            if response.status_code == 200 and body:
                try:
                    await store.set(key, bytes(body), policy.effective_ttl)
                except CacheStoreError as e:
                    logger.warning(
                        f"Response cache write failed: {e}", extra={"path": request.url.path}
                    )

            return response

        return handler
