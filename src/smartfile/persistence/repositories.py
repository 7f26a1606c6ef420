"""Repository pattern for Smart File API persistence.

Every file query is scoped to the owning user. Live rows are those with
``deleted_at IS NULL``; soft-deleted rows are only reachable through the
``*_deleted`` methods and ``get_any``.

Repositories flush but never commit: the caller owns the transaction, so a
request either commits all of its changes or none.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from smartfile.persistence.tables import FileStatus, FileTable, UserTable, utcnow


@dataclass
class FileStatistics:
    """Aggregated statistics over a user's live files."""

    total_files: int
    total_storage: int
    files_by_type: list[dict[str, Any]]
    files_by_status: list[dict[str, Any]]
    recent_files_7d: int

    @property
    def total_storage_mb(self) -> float:
        return self.total_storage / (1024 * 1024)


class BaseRepository:
    """Base repository holding the session."""

    def __init__(self, session: AsyncSession):
        self.session = session


class UserRepository(BaseRepository):
    """Repository for user accounts."""

    async def get(self, user_id: int) -> UserTable | None:
        return await self.session.get(UserTable, user_id)

    async def get_by_email(self, email: str) -> UserTable | None:
        stmt = select(UserTable).where(UserTable.email == email)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, name: str, email: str, password_hash: str) -> UserTable:
        user = UserTable(name=name, email=email, password_hash=password_hash)
        self.session.add(user)
        await self.session.flush()
        return user

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(UserTable))
        return int(result.scalar_one())


class FileRepository(BaseRepository):
    """Repository for uploaded file records."""

    def _owned(self, user_id: int) -> Select[tuple[FileTable]]:
        return select(FileTable).where(FileTable.user_id == user_id)

    def _live(self, user_id: int) -> Select[tuple[FileTable]]:
        return self._owned(user_id).where(FileTable.deleted_at.is_(None))

    async def create(
        self,
        user_id: int,
        file_name: str,
        original_name: str,
        file_path: str,
        file_size: int,
        file_type: str,
    ) -> FileTable:
        record = FileTable(
            user_id=user_id,
            file_name=file_name,
            original_name=original_name,
            file_path=file_path,
            file_size=file_size,
            file_type=file_type,
            status=FileStatus.PENDING,
        )
        self.session.add(record)
        await self.session.flush()
        return record

    async def get(self, user_id: int, file_id: int) -> FileTable | None:
        """Get a live file owned by the user."""
        stmt = self._live(user_id).where(FileTable.id == file_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_deleted(self, user_id: int, file_id: int) -> FileTable | None:
        """Get a soft-deleted file owned by the user."""
        stmt = self._owned(user_id).where(
            FileTable.id == file_id, FileTable.deleted_at.is_not(None)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_any(self, user_id: int, file_id: int) -> FileTable | None:
        """Get a file owned by the user whether or not it is soft-deleted."""
        stmt = self._owned(user_id).where(FileTable.id == file_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_page(
        self,
        user_id: int,
        *,
        file_type: str = "",
        status: str = "",
        search: str = "",
        sort_by: str = "created_at",
        sort_order: str = "desc",
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[FileTable], int]:
        """List live files with filtering, sorting and pagination.

        ``sort_by`` must already be validated against the allowed columns.

        Returns:
            Tuple of (files on this page, total matching rows)
        """
        stmt = self._live(user_id)
        if file_type:
            stmt = stmt.where(FileTable.file_type == file_type)
        if status:
            stmt = stmt.where(FileTable.status == status)
        if search:
            term = f"%{search}%"
            stmt = stmt.where(
                or_(FileTable.file_name.like(term), FileTable.original_name.like(term))
            )

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = int((await self.session.execute(count_stmt)).scalar_one())

        column = getattr(FileTable, sort_by)
        ordering = column.asc() if sort_order == "asc" else column.desc()
        tiebreak = FileTable.id.asc() if sort_order == "asc" else FileTable.id.desc()
        page_stmt = stmt.order_by(ordering, tiebreak).limit(limit).offset(offset)

        result = await self.session.execute(page_stmt)
        return list(result.scalars().all()), total

    async def list_deleted(self, user_id: int) -> list[FileTable]:
        """List soft-deleted files, most recently deleted first."""
        stmt = (
            self._owned(user_id)
            .where(FileTable.deleted_at.is_not(None))
            .order_by(FileTable.deleted_at.desc(), FileTable.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def soft_delete(self, record: FileTable) -> None:
        record.deleted_at = utcnow()
        await self.session.flush()

    async def restore(self, record: FileTable) -> None:
        record.deleted_at = None
        await self.session.flush()

    async def hard_delete(self, record: FileTable) -> None:
        await self.session.delete(record)
        await self.session.flush()

    async def set_status(
        self, file_id: int, status: str, processed_at: datetime | None = None
    ) -> bool:
        """Update processing status by id, regardless of owner or deletion state.

        Returns:
            False if the record no longer exists
        """
        record = await self.session.get(FileTable, file_id)
        if record is None:
            return False
        record.status = status
        if processed_at is not None:
            record.processed_at = processed_at
        await self.session.flush()
        return True

    async def count_all(self) -> int:
        """Count every file row, across users and deletion state."""
        result = await self.session.execute(select(func.count()).select_from(FileTable))
        return int(result.scalar_one())

    async def statistics(self, user_id: int) -> FileStatistics:
        """Aggregate statistics over the user's live files."""
        live = (FileTable.user_id == user_id, FileTable.deleted_at.is_(None))

        totals = await self.session.execute(
            select(func.count(FileTable.id), func.coalesce(func.sum(FileTable.file_size), 0)).where(
                *live
            )
        )
        total_files, total_storage = totals.one()

        by_type = await self.session.execute(
            select(FileTable.file_type, func.count(FileTable.id))
            .where(*live)
            .group_by(FileTable.file_type)
            .order_by(FileTable.file_type)
        )
        by_status = await self.session.execute(
            select(FileTable.status, func.count(FileTable.id))
            .where(*live)
            .group_by(FileTable.status)
            .order_by(FileTable.status)
        )

        cutoff = utcnow() - timedelta(days=7)
        recent = await self.session.execute(
            select(func.count(FileTable.id)).where(*live, FileTable.created_at >= cutoff)
        )

        return FileStatistics(
            total_files=int(total_files),
            total_storage=int(total_storage),
            files_by_type=[
                {"file_type": file_type, "count": count} for file_type, count in by_type.all()
            ],
            files_by_status=[
                {"status": status, "count": count} for status, count in by_status.all()
            ],
            recent_files_7d=int(recent.scalar_one()),
        )
