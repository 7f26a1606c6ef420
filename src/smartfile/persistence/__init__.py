"""Persistence layer for Smart File API.

This module provides:
- Async engine and session factory (SQLite by default)
- SQLAlchemy ORM models for users and files with soft delete
- Repository pattern scoped to the owning user
"""

from smartfile.persistence.db import get_engine, get_session, init_db, session_context
from smartfile.persistence.repositories import FileRepository, FileStatistics, UserRepository
from smartfile.persistence.tables import FileStatus, FileTable, UserTable

__all__ = [
    # DB
    "get_engine",
    "get_session",
    "init_db",
    "session_context",
    # Tables
    "FileStatus",
    "FileTable",
    "UserTable",
    # Repositories
    "FileRepository",
    "FileStatistics",
    "UserRepository",
]
