"""File management endpoints.

Read endpoints (list, deleted list, detail) go through the response cache.
Every write commits first, then clears the cache namespace, then responds:

    mutate -> commit -> invalidate -> respond

Statistics are computed live and never cached.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Request, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from smartfile.api.deps import (
    AuthenticatedUser,
    get_cache_invalidator,
    get_file_processor,
    get_file_storage,
)
from smartfile.api.errors import BadRequestError, NotFoundError
from smartfile.api.middleware.caching import ResponseCacheRoute, cache_response
from smartfile.api.pagination import file_filter_from_request, pagination_from_request
from smartfile.api.responses import success_response
from smartfile.api.schemas import FileOut
from smartfile.cache.invalidation import CacheInvalidator
from smartfile.config import settings
from smartfile.jobs.processing import FileProcessor
from smartfile.observability.metrics import record_file_uploaded
from smartfile.persistence.db import get_session
from smartfile.persistence.repositories import FileRepository
from smartfile.persistence.tables import FileTable
from smartfile.storage.base import (
    FileStorage,
    FileTooLargeError,
    detect_file_type,
    generate_file_name,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["Files"], route_class=ResponseCacheRoute)

FILE_NOT_FOUND = "File not found"
DELETED_FILE_NOT_FOUND = "Deleted file not found"


def _file_data(record: FileTable) -> dict[str, object]:
    return FileOut.model_validate(record).model_dump(mode="json")


def _size_limit_message(limit: int) -> str:
    return f"File size exceeds {limit // (1024 * 1024)}MB limit"


# =============================================================================
# Writes
# =============================================================================


@router.post("/upload", status_code=201)
async def upload_file(
    user: AuthenticatedUser,
    file: UploadFile | None = File(default=None),
    session: AsyncSession = Depends(get_session),
    storage: FileStorage = Depends(get_file_storage),
    invalidator: CacheInvalidator = Depends(get_cache_invalidator),
    processor: FileProcessor = Depends(get_file_processor),
) -> Response:
    """Upload a file and queue it for background processing."""
    if file is None or not file.filename:
        raise BadRequestError("File is required")

    if file.size is not None and file.size > settings.max_upload_size:
        raise BadRequestError(_size_limit_message(settings.max_upload_size))

    original_name = file.filename
    file_type = detect_file_type(original_name)

    try:
        stored = await storage.save(
            generate_file_name(user.id, original_name), file, settings.max_upload_size
        )
    except FileTooLargeError as e:
        raise BadRequestError(_size_limit_message(e.limit))
    finally:
        await file.close()

    repo = FileRepository(session)
    try:
        record = await repo.create(
            user_id=user.id,
            file_name=stored.file_name,
            original_name=original_name,
            file_path=stored.file_path,
            file_size=stored.size_bytes,
            file_type=file_type,
        )
        await session.commit()
    except Exception:
        await session.rollback()
        await storage.delete(stored.file_path)
        raise

    await invalidator.invalidate_after_commit("file_uploaded")
    record_file_uploaded(file_type)
    logger.info(f"Uploaded file {record.id} ({stored.size_bytes} bytes, {file_type})")

    response = success_response("File uploaded successfully", _file_data(record), status_code=201)
    processor.submit(record.id)
    return response


@router.delete("/{file_id}")
async def delete_file(
    file_id: int,
    user: AuthenticatedUser,
    session: AsyncSession = Depends(get_session),
    invalidator: CacheInvalidator = Depends(get_cache_invalidator),
) -> Response:
    """Soft delete a file. The stored content is kept so it can be restored."""
    repo = FileRepository(session)
    record = await repo.get(user.id, file_id)
    if record is None:
        raise NotFoundError(FILE_NOT_FOUND)

    await repo.soft_delete(record)
    await session.commit()
    await invalidator.invalidate_after_commit("file_deleted")

    logger.info(f"Soft deleted file {file_id}")
    return success_response("File deleted successfully")


@router.post("/{file_id}/restore")
async def restore_file(
    file_id: int,
    user: AuthenticatedUser,
    session: AsyncSession = Depends(get_session),
    invalidator: CacheInvalidator = Depends(get_cache_invalidator),
) -> Response:
    """Restore a soft-deleted file."""
    repo = FileRepository(session)
    record = await repo.get_deleted(user.id, file_id)
    if record is None:
        raise NotFoundError(DELETED_FILE_NOT_FOUND)

    await repo.restore(record)
    await session.commit()
    await invalidator.invalidate_after_commit("file_restored")

    logger.info(f"Restored file {file_id}")
    return success_response("File restored successfully", _file_data(record))


@router.delete("/{file_id}/permanent")
async def hard_delete_file(
    file_id: int,
    user: AuthenticatedUser,
    session: AsyncSession = Depends(get_session),
    storage: FileStorage = Depends(get_file_storage),
    invalidator: CacheInvalidator = Depends(get_cache_invalidator),
) -> Response:
    """Permanently delete a file record and its stored content."""
    repo = FileRepository(session)
    record = await repo.get_any(user.id, file_id)
    if record is None:
        raise NotFoundError(FILE_NOT_FOUND)

    file_path = record.file_path
    await repo.hard_delete(record)
    await session.commit()

    try:
        removed = await storage.delete(file_path)
    except OSError as e:
        logger.warning(f"Failed to remove stored content for file {file_id}: {e}")
    else:
        if not removed:
            logger.warning(f"Stored content for file {file_id} was already missing: {file_path}")

    await invalidator.invalidate_after_commit("file_permanently_deleted")

    logger.info(f"Permanently deleted file {file_id}")
    return success_response("File permanently deleted")


# =============================================================================
# Reads
# =============================================================================


@router.get("/")
@cache_response()
async def list_files(
    request: Request,
    user: AuthenticatedUser,
    session: AsyncSession = Depends(get_session),
) -> Response:
    """List the user's files with filtering, sorting and pagination."""
    pagination = pagination_from_request(request)
    file_filter = file_filter_from_request(request)

    records, total = await FileRepository(session).list_page(
        user.id,
        file_type=file_filter.type,
        status=file_filter.status,
        search=file_filter.search,
        sort_by=file_filter.sort_by,
        sort_order=file_filter.sort_order,
        limit=pagination.limit,
        offset=pagination.offset,
    )

    return success_response(
        "Files retrieved successfully",
        {
            "files": [_file_data(record) for record in records],
            "pagination": pagination.with_total(total).model_dump(),
            "filter": file_filter.model_dump(),
        },
    )


@router.get("/statistics")
async def file_statistics(
    user: AuthenticatedUser,
    session: AsyncSession = Depends(get_session),
) -> Response:
    """Aggregate statistics over the user's live files."""
    stats = await FileRepository(session).statistics(user.id)
    return success_response(
        "Statistics retrieved successfully",
        {
            "total_files": stats.total_files,
            "total_storage": stats.total_storage,
            "total_storage_mb": round(stats.total_storage_mb, 2),
            "files_by_type": stats.files_by_type,
            "files_by_status": stats.files_by_status,
            "recent_files_7d": stats.recent_files_7d,
        },
    )


@router.get("/deleted")
@cache_response()
async def list_deleted_files(
    user: AuthenticatedUser,
    session: AsyncSession = Depends(get_session),
) -> Response:
    """List the user's soft-deleted files, most recently deleted first."""
    records = await FileRepository(session).list_deleted(user.id)
    return success_response(
        "Deleted files retrieved successfully",
        {"files": [_file_data(record) for record in records], "total": len(records)},
    )


@router.get("/{file_id}")
@cache_response()
async def get_file(
    file_id: int,
    user: AuthenticatedUser,
    session: AsyncSession = Depends(get_session),
) -> Response:
    """Get a single live file owned by the user."""
    record = await FileRepository(session).get(user.id, file_id)
    if record is None:
        raise NotFoundError(FILE_NOT_FOUND)
    return success_response("File retrieved successfully", _file_data(record))
