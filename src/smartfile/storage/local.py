"""Local filesystem upload storage.

Stores uploads flat in a single directory:
    {base_path}/{user_id}_{unix_ts}_{random}{ext}
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import cast

import aiofiles  # type: ignore[import-untyped]
import aiofiles.os  # type: ignore[import-untyped]

from smartfile.storage.base import AsyncReadable, FileStorage, FileTooLargeError, StoredFile

logger = logging.getLogger(__name__)


class LocalFileStorage(FileStorage):
    """Local filesystem upload storage backend."""

    CHUNK_SIZE = 64 * 1024  # 64KB chunks for streaming

    def __init__(self, base_path: str | Path = "uploads"):
        self.base_path = Path(base_path)

    async def _ensure_directory(self, path: Path) -> None:
        if not await aiofiles.os.path.exists(path):
            await aiofiles.os.makedirs(path, exist_ok=True)

    async def save(self, file_name: str, source: AsyncReadable, max_bytes: int) -> StoredFile:
        """Stream an upload to disk in chunks, enforcing the size limit."""
        await self._ensure_directory(self.base_path)
        target = self.base_path / file_name

        size_bytes = 0
        try:
            async with aiofiles.open(target, "wb") as f:
                while True:
                    chunk = await source.read(self.CHUNK_SIZE)
                    if not chunk:
                        break
                    size_bytes += len(chunk)
                    if size_bytes > max_bytes:
                        raise FileTooLargeError(max_bytes)
                    await f.write(chunk)
        except BaseException:
            # Never keep a partial file
            if await aiofiles.os.path.exists(target):
                await aiofiles.os.remove(target)
            raise

        logger.debug(f"Stored upload at {target} ({size_bytes} bytes)")
        return StoredFile(file_name=file_name, file_path=str(target), size_bytes=size_bytes)

    async def delete(self, file_path: str) -> bool:
        path = Path(file_path)
        if not await aiofiles.os.path.exists(path):
            return False

        await aiofiles.os.remove(path)
        logger.debug(f"Deleted upload at {path}")
        return True

    async def exists(self, file_path: str) -> bool:
        return cast(bool, await aiofiles.os.path.exists(Path(file_path)))

    async def total_size(self) -> int:
        return await asyncio.to_thread(_directory_size, self.base_path)


def _directory_size(root: Path) -> int:
    total = 0
    if not root.exists():
        return total
    for dirpath, _, filenames in os.walk(root):
        for name in filenames:
            try:
                total += os.path.getsize(os.path.join(dirpath, name))
            except OSError:
                # Removed between listing and stat
                continue
    return total
