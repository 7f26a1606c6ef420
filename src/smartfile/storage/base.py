"""Abstract file storage interface.

Uploaded content is written once under a generated name and later removed on
permanent delete. Metadata lives in the database; storage only holds bytes.
"""

from __future__ import annotations

import os
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Protocol


class AsyncReadable(Protocol):
    """Anything with an async ``read(size)``, e.g. ``UploadFile``."""

    async def read(self, size: int = -1) -> bytes: ...


class FileTooLargeError(Exception):
    """Upload exceeded the configured size limit."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"File exceeds {limit} bytes")


@dataclass
class StoredFile:
    """Result of writing an upload to storage."""

    file_name: str
    file_path: str
    size_bytes: int


FILE_TYPES: dict[str, frozenset[str]] = {
    "image": frozenset({".jpg", ".jpeg", ".png", ".gif", ".bmp"}),
    "audio": frozenset({".mp3", ".wav", ".flac", ".m4a", ".ogg"}),
    "video": frozenset({".mp4", ".avi", ".mkv", ".mov"}),
    "document": frozenset({".pdf", ".doc", ".docx", ".txt"}),
}


def detect_file_type(filename: str) -> str:
    """Classify a file by extension: image, audio, video, document or other."""
    ext = os.path.splitext(filename)[1].lower()
    for file_type, extensions in FILE_TYPES.items():
        if ext in extensions:
            return file_type
    return "other"


def generate_file_name(user_id: int, original_name: str) -> str:
    """Stored name ``{user_id}_{unix_ts}_{random}{ext}``; unique per upload."""
    ext = os.path.splitext(original_name)[1].lower()
    return f"{user_id}_{int(time.time())}_{uuid.uuid4().hex[:8]}{ext}"


class FileStorage(ABC):
    """Abstract base class for upload storage backends."""

    @abstractmethod
    async def save(self, file_name: str, source: AsyncReadable, max_bytes: int) -> StoredFile:
        """Write an upload under ``file_name``.

        Args:
            file_name: Generated stored name
            source: Upload stream
            max_bytes: Reject the upload once it grows past this size

        Returns:
            Where and how much was written

        Raises:
            FileTooLargeError: If the content exceeds max_bytes (nothing is kept)
        """
        pass

    @abstractmethod
    async def delete(self, file_path: str) -> bool:
        """Remove stored content.

        Returns:
            True if deleted, False if it did not exist
        """
        pass

    @abstractmethod
    async def exists(self, file_path: str) -> bool:
        pass

    @abstractmethod
    async def total_size(self) -> int:
        """Total bytes currently held by this storage."""
        pass
