"""Shared FastAPI dependencies for Smart File API routers.

Application-scoped services (cache store, invalidator, file processor,
storage) are created in the lifespan and read from ``app.state`` so tests can
swap them per app instance.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request

from smartfile.api.errors import UnauthorizedError
from smartfile.api.middleware.auth import MISSING_HEADER
from smartfile.cache.invalidation import CacheInvalidator
from smartfile.cache.store import CacheStore, UnavailableCacheStore
from smartfile.jobs.processing import FileProcessor
from smartfile.storage.base import FileStorage

# =============================================================================
# Authentication
# =============================================================================


@dataclass
class CurrentUser:
    """Identity resolved from the bearer token."""

    id: int
    email: str


def require_user(request: Request) -> CurrentUser:
    """FastAPI dependency that requires an authenticated user.

    Raises:
        UnauthorizedError: If the header is missing or the token is unusable
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        message = getattr(request.state, "auth_error", None) or MISSING_HEADER
        raise UnauthorizedError(message)
    return CurrentUser(id=user_id, email=getattr(request.state, "user_email", None) or "")


AuthenticatedUser = Annotated[CurrentUser, Depends(require_user)]


# =============================================================================
# Application Services
# =============================================================================


def get_cache_store(request: Request) -> CacheStore:
    store = getattr(request.app.state, "cache_store", None)
    return store if store is not None else UnavailableCacheStore("not configured")


def get_cache_invalidator(request: Request) -> CacheInvalidator:
    invalidator = getattr(request.app.state, "cache_invalidator", None)
    if invalidator is None:
        return CacheInvalidator(get_cache_store(request))
    return invalidator


def get_file_processor(request: Request) -> FileProcessor:
    processor: FileProcessor = request.app.state.file_processor
    return processor


def get_file_storage(request: Request) -> FileStorage:
    storage: FileStorage = request.app.state.file_storage
    return storage
