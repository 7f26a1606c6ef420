"""Post-upload file processing.

Each upload gets a background task that walks the record through
``pending -> processing -> completed`` (or ``failed``). The task is spawned
after the upload commits and is never awaited by the request; failures are
logged and recorded on the row, never propagated.

Processing does not touch the response cache. A cached listing may show
``pending`` until the next write or TTL expiry.

Example:
    processor = FileProcessor(delay=3.0)
    processor.submit(file_id)

    # On shutdown
    await processor.drain(timeout=5.0)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AbstractAsyncContextManager
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from smartfile.observability.metrics import record_file_processed
from smartfile.persistence.db import session_context
from smartfile.persistence.repositories import FileRepository
from smartfile.persistence.tables import FileStatus, utcnow

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class FileProcessor:
    """Runs background processing for uploaded files."""

    def __init__(self, delay: float = 3.0, session_scope: SessionScope = session_context) -> None:
        self.delay = delay
        self._session_scope = session_scope
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of processing tasks still running."""
        return len(self._tasks)

    def submit(self, file_id: int) -> asyncio.Task[None]:
        """Start processing a committed upload without waiting for it."""
        task = asyncio.create_task(self._process(file_id), name=f"process-file-{file_id}")
        # Keep a strong reference until the task finishes
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _set_status(self, file_id: int, status: str, completed: bool = False) -> bool:
        async with self._session_scope() as session:
            repo = FileRepository(session)
            return await repo.set_status(file_id, status, utcnow() if completed else None)

    async def _process(self, file_id: int) -> None:
        try:
            if not await self._set_status(file_id, FileStatus.PROCESSING):
                logger.warning(f"File {file_id} disappeared before processing")
                return

            await asyncio.sleep(self.delay)

            await self._set_status(file_id, FileStatus.COMPLETED, completed=True)
            record_file_processed(FileStatus.COMPLETED)
            logger.info(f"File {file_id} processed")

        except Exception as e:
            logger.error(f"Processing failed for file {file_id}: {e}")
            record_file_processed(FileStatus.FAILED)
            try:
                await self._set_status(file_id, FileStatus.FAILED)
            except Exception as mark_error:
                logger.error(f"Could not mark file {file_id} as failed: {mark_error}")

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight processing to finish.

        Tasks still running after ``timeout`` are left alone and abandoned
        with the event loop.
        """
        if not self._tasks:
            return
        _, still_running = await asyncio.wait(set(self._tasks), timeout=timeout)
        if still_running:
            logger.warning(f"{len(still_running)} file processing tasks still running at shutdown")
