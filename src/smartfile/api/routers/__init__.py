"""API routers for Smart File API."""

from smartfile.api.routers import auth, files, health, monitoring

__all__ = [
    "auth",
    "files",
    "health",
    "monitoring",
]
