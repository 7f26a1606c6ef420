"""Database engine and sessions.

The service runs on SQLite through aiosqlite by default. Any SQLAlchemy
async URL (``postgresql+asyncpg://...``) is accepted; server databases get
a bounded connection pool.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from smartfile.config import settings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _engine_options(url: str) -> dict[str, Any]:
    if _is_sqlite(url):
        # Uploads and the processing worker write concurrently
        return {"echo": settings.db_echo, "connect_args": {"timeout": 15}}
    return {
        "echo": settings.db_echo,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_recycle": 1800,
        "pool_pre_ping": True,
    }


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    # Deleting a user must cascade to their file rows
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine() -> AsyncEngine:
    """The process-wide engine, created from ``settings.database_url`` on first use."""
    global _engine
    if _engine is None:
        url = settings.database_url
        _engine = create_async_engine(url, **_engine_options(url))
        if _is_sqlite(url):
            event.listen(_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        # Handlers read record attributes after commit when building responses
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a request-scoped session.

    Routers commit explicitly so cache invalidation can run after the
    commit and before the response is sent.
    """
    async with get_session_factory()() as session:
        yield session


@asynccontextmanager
async def session_context() -> AsyncIterator[AsyncSession]:
    """Session that commits on success and rolls back on error.

    Used outside the request cycle, e.g. by the processing worker.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create the users and files tables if they are missing."""
    from smartfile.persistence.tables import Base

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database ready")


async def close_db() -> None:
    global _engine, _session_factory
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None


async def health_check() -> bool:
    """Run ``SELECT 1``; False if the database cannot be reached."""
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Database health check failed: {e}")
        return False
    return True
