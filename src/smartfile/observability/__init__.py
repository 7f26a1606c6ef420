"""Logging and Prometheus metrics for Smart File API."""

from smartfile.observability.logging import (
    LogContext,
    configure_logging,
    correlation_id_var,
    current_context,
    request_id_var,
    user_id_var,
)
from smartfile.observability.metrics import MetricsMiddleware, get_metrics

__all__ = [
    "LogContext",
    "MetricsMiddleware",
    "configure_logging",
    "correlation_id_var",
    "current_context",
    "get_metrics",
    "request_id_var",
    "user_id_var",
]
