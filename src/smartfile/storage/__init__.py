"""Upload storage for Smart File API."""

from smartfile.storage.base import (
    FileStorage,
    FileTooLargeError,
    StoredFile,
    detect_file_type,
    generate_file_name,
)
from smartfile.storage.local import LocalFileStorage

__all__ = [
    "FileStorage",
    "FileTooLargeError",
    "LocalFileStorage",
    "StoredFile",
    "detect_file_type",
    "generate_file_name",
]
