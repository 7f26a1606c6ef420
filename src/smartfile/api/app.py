"""FastAPI application factory for Smart File API.

Creates the application with:
- Auth, file management and monitoring routers
- Read-through response caching on file reads
- Lifecycle management for database, cache store and background processing
- JWT bearer authentication
- Prometheus metrics and structured logging
- Consistent error envelopes
- ORJSON for fast JSON serialization
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ExceptionHandler

from smartfile import __version__
from smartfile.api.errors import (
    ApiError,
    api_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from smartfile.api.middleware import (
    AuthContextMiddleware,
    CorrelationMiddleware,
    RequestLoggingMiddleware,
)
from smartfile.api.routers import auth, files, health, monitoring
from smartfile.cache import CacheInvalidator, CacheStore, create_cache_store
from smartfile.config import settings
from smartfile.jobs.processing import FileProcessor
from smartfile.observability import configure_logging
from smartfile.observability.metrics import MetricsMiddleware, get_metrics
from smartfile.persistence.db import close_db, init_db
from smartfile.storage.local import LocalFileStorage

logger = logging.getLogger(__name__)

# Grace period for in-flight file processing on shutdown
SHUTDOWN_DRAIN_TIMEOUT = 10.0


def build_lifespan(cache_store: CacheStore | None = None):
    """Build the lifespan handler, optionally with a pre-built cache store."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Manage application lifecycle.

        On startup:
        - Configure structured logging
        - Initialize Prometheus metrics
        - Create database tables
        - Connect the response cache store (degrades to no caching)
        - Create the invalidator, file processor and upload storage

        On shutdown:
        - Wait briefly for background processing
        - Close the cache store
        - Close database connections
        """
        configure_logging(
            json_format=settings.log_json,
            level=settings.log_level,
            log_file=settings.log_file,
        )
        get_metrics()

        logger.info(f"Starting Smart File API ({settings.env})")
        app.state.started_at = time.monotonic()

        await init_db()

        store = cache_store if cache_store is not None else await create_cache_store()
        if store.available:
            logger.info(f"Response cache enabled ({store.name})")
        else:
            logger.warning("Response cache disabled, serving every read from the database")

        app.state.cache_store = store
        app.state.cache_invalidator = CacheInvalidator(store)
        app.state.file_processor = FileProcessor(delay=settings.processing_delay)
        app.state.file_storage = LocalFileStorage(settings.upload_dir)

        yield

        logger.info("Shutting down Smart File API")
        await app.state.file_processor.drain(timeout=SHUTDOWN_DRAIN_TIMEOUT)
        await store.close()
        await close_db()

    return lifespan


def create_app(cache_store: CacheStore | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        cache_store: Store to use instead of the configured backend
    """
    app = FastAPI(
        title="Smart File API",
        description="File management API with read-through response caching",
        version=__version__,
        default_response_class=ORJSONResponse,
        lifespan=build_lifespan(cache_store),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Order matters: the last middleware added runs first.
    # Correlation -> Metrics -> RequestLogging -> AuthContext -> routes
    app.add_middleware(AuthContextMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    if settings.enable_metrics:
        app.add_middleware(MetricsMiddleware)
    app.add_middleware(CorrelationMiddleware)

    app.add_exception_handler(ApiError, cast(ExceptionHandler, api_exception_handler))
    app.add_exception_handler(
        RequestValidationError, cast(ExceptionHandler, validation_exception_handler)
    )
    app.add_exception_handler(
        StarletteHTTPException, cast(ExceptionHandler, http_exception_handler)
    )
    app.add_exception_handler(Exception, cast(ExceptionHandler, generic_exception_handler))

    app.include_router(health.router)
    app.include_router(monitoring.router)
    app.include_router(auth.router)
    app.include_router(files.router)

    return app


app = create_app()
