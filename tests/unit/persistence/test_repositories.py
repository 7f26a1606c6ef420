"""Tests for user and file repositories against in-memory SQLite."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from smartfile.persistence.repositories import FileRepository, UserRepository
from smartfile.persistence.tables import Base, FileStatus, FileTable


@pytest_asyncio.fixture
async def session() -> AsyncIterator[AsyncSession]:
    # One shared connection, so every session sees the same in-memory database
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


async def add_user(session: AsyncSession, email: str = "ada@example.com") -> int:
    user = await UserRepository(session).create("Ada", email, "hash")
    return user.id


async def add_file(
    session: AsyncSession,
    user_id: int,
    name: str,
    size: int = 10,
    file_type: str = "document",
) -> FileTable:
    return await FileRepository(session).create(
        user_id=user_id,
        file_name=f"{user_id}_{name}",
        original_name=name,
        file_path=f"/uploads/{user_id}_{name}",
        file_size=size,
        file_type=file_type,
    )


class TestUserRepository:
    @pytest.mark.asyncio
    async def test_create_and_lookup(self, session: AsyncSession) -> None:
        repo = UserRepository(session)
        user_id = await add_user(session)

        assert (await repo.get_by_email("ada@example.com")).id == user_id
        assert await repo.get_by_email("bob@example.com") is None
        assert await repo.count() == 1


class TestFileRepository:
    """Test ownership scoping, soft delete and listing."""

    @pytest.mark.asyncio
    async def test_create_starts_pending(self, session: AsyncSession) -> None:
        user_id = await add_user(session)
        record = await add_file(session, user_id, "a.pdf")

        assert record.id is not None
        assert record.status == FileStatus.PENDING
        assert record.deleted_at is None

    @pytest.mark.asyncio
    async def test_scoped_to_owner(self, session: AsyncSession) -> None:
        ada = await add_user(session, "ada@example.com")
        bob = await add_user(session, "bob@example.com")
        record = await add_file(session, ada, "a.pdf")
        repo = FileRepository(session)

        assert await repo.get(ada, record.id) is not None
        assert await repo.get(bob, record.id) is None
        assert await repo.get_any(bob, record.id) is None

    @pytest.mark.asyncio
    async def test_soft_delete_and_restore(self, session: AsyncSession) -> None:
        user_id = await add_user(session)
        record = await add_file(session, user_id, "a.pdf")
        repo = FileRepository(session)

        await repo.soft_delete(record)
        assert await repo.get(user_id, record.id) is None
        assert (await repo.get_deleted(user_id, record.id)).id == record.id
        assert [r.id for r in await repo.list_deleted(user_id)] == [record.id]

        await repo.restore(record)
        assert await repo.get(user_id, record.id) is not None
        assert await repo.get_deleted(user_id, record.id) is None

    @pytest.mark.asyncio
    async def test_hard_delete(self, session: AsyncSession) -> None:
        user_id = await add_user(session)
        record = await add_file(session, user_id, "a.pdf")
        repo = FileRepository(session)

        await repo.hard_delete(record)

        assert await repo.get_any(user_id, record.id) is None
        assert await repo.count_all() == 0

    @pytest.mark.asyncio
    async def test_list_page_filters_and_counts(self, session: AsyncSession) -> None:
        user_id = await add_user(session)
        for name, file_type in [("b.png", "image"), ("a.png", "image"), ("c.pdf", "document")]:
            await add_file(session, user_id, name, file_type=file_type)
        deleted = await add_file(session, user_id, "d.png", file_type="image")
        repo = FileRepository(session)
        await repo.soft_delete(deleted)

        options = {"file_type": "image", "sort_by": "original_name", "sort_order": "asc"}

        rows, total = await repo.list_page(user_id, limit=1, **options)
        assert total == 2
        assert [r.original_name for r in rows] == ["a.png"]

        rows, _ = await repo.list_page(user_id, limit=1, offset=1, **options)
        assert [r.original_name for r in rows] == ["b.png"]

    @pytest.mark.asyncio
    async def test_list_page_search(self, session: AsyncSession) -> None:
        user_id = await add_user(session)
        await add_file(session, user_id, "quarterly-report.pdf")
        await add_file(session, user_id, "cat.png", file_type="image")

        rows, total = await FileRepository(session).list_page(user_id, search="report")

        assert total == 1
        assert rows[0].original_name == "quarterly-report.pdf"

    @pytest.mark.asyncio
    async def test_set_status(self, session: AsyncSession) -> None:
        user_id = await add_user(session)
        record = await add_file(session, user_id, "a.pdf")
        repo = FileRepository(session)

        assert await repo.set_status(record.id, FileStatus.COMPLETED) is True
        assert record.status == FileStatus.COMPLETED
        assert await repo.set_status(9999, FileStatus.COMPLETED) is False

    @pytest.mark.asyncio
    async def test_statistics_exclude_deleted(self, session: AsyncSession) -> None:
        user_id = await add_user(session)
        await add_file(session, user_id, "a.png", size=100, file_type="image")
        await add_file(session, user_id, "b.pdf", size=50)
        gone = await add_file(session, user_id, "c.pdf", size=1000)
        repo = FileRepository(session)
        await repo.soft_delete(gone)

        stats = await repo.statistics(user_id)

        assert stats.total_files == 2
        assert stats.total_storage == 150
        assert stats.files_by_type == [
            {"file_type": "document", "count": 1},
            {"file_type": "image", "count": 1},
        ]
        assert stats.files_by_status == [{"status": "pending", "count": 2}]
        assert stats.recent_files_7d == 2
