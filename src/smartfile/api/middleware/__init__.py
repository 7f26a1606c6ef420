"""Middleware for Smart File API.

Provides:
- Bearer token resolution into request state
- Correlation context for request tracing
- Access logging
- Read-through response caching (as a route class)
"""

from smartfile.api.middleware.access_log import RequestLoggingMiddleware
from smartfile.api.middleware.auth import AuthContextMiddleware
from smartfile.api.middleware.caching import ResponseCacheRoute, cache_response
from smartfile.api.middleware.correlation import CorrelationMiddleware

__all__ = [
    "AuthContextMiddleware",
    "CorrelationMiddleware",
    "RequestLoggingMiddleware",
    "ResponseCacheRoute",
    "cache_response",
]
