"""Background jobs for Smart File API."""

from smartfile.jobs.processing import FileProcessor

__all__ = ["FileProcessor"]
