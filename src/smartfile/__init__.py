"""Smart File API: file management over HTTP with read-through response caching."""

__version__ = "1.0.0"
