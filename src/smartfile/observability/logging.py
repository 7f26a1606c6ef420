"""Structured logging for Smart File API.

Two outputs are configured at startup:

- stderr: JSON lines in production, a compact colored line in development
- ``settings.log_file``: always JSON lines, one object per record. The
  ``/api/logs`` endpoint tails and filters this file by ``level``.

Request scoped identifiers (request id, correlation id, user id) live in
context variables set by the middleware stack and are stamped on every
record emitted while a request is being handled, including records from
background tasks spawned by that request.
"""

from __future__ import annotations

import contextvars
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import orjson

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)
user_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("user_id", default="")

# Field name -> context variable, in output order
CONTEXT_FIELDS: dict[str, contextvars.ContextVar[str]] = {
    "request_id": request_id_var,
    "correlation_id": correlation_id_var,
    "user_id": user_id_var,
}

# Loggers that are too chatty at INFO for an API log
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "aiosqlite", "multipart")

# Attributes every LogRecord has; anything else came in through ``extra=``
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}


def current_context() -> dict[str, str]:
    """The non-empty request context values."""
    return {name: var.get() for name, var in CONTEXT_FIELDS.items() if var.get()}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Example:
        {"timestamp": "2026-10-18T09:12:01.532+00:00", "level": "INFO",
         "logger": "smartfile.api.routers.files", "message": "Uploaded file 3",
         "source": "files:110", "request_id": "4f0c...", "user_id": "7"}
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        data: dict[str, Any] = {
            "timestamp": timestamp.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.module}:{record.lineno}",
        }
        data.update(current_context())
        data.update(_extra_fields(record))

        if record.exc_info and record.exc_info[0] is not None:
            data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return orjson.dumps(data, default=str).decode()


class ConsoleFormatter(logging.Formatter):
    """Single-line development output.

    Example:
        09:12:01 INFO     smartfile.api.routers.files  Uploaded file 3  [req=4f0c1a2b user=7]
    """

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__(datefmt="%H:%M:%S")
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:<8}"
        if self.use_colors:
            level = f"{self.LEVEL_COLORS.get(record.levelno, '')}{level}{self.RESET}"

        stamp = self.formatTime(record, self.datefmt)
        line = f"{stamp} {level} {record.name}  {record.getMessage()}"

        context = current_context()
        tags = []
        if "request_id" in context:
            tags.append(f"req={context['request_id'][:8]}")
        if "user_id" in context:
            tags.append(f"user={context['user_id']}")
        if tags:
            line += f"  [{' '.join(tags)}]"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _file_handler(log_file: str) -> logging.Handler | None:
    path = Path(log_file)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError as e:
        logging.getLogger(__name__).warning(f"Cannot write log file {log_file}: {e}")
        return None
    handler.setFormatter(JsonFormatter())
    return handler


def configure_logging(
    json_format: bool = True,
    level: str = "INFO",
    use_colors: bool = True,
    log_file: str | None = None,
) -> None:
    """Install the application's handlers on the root logger.

    Safe to call more than once; previously installed handlers are closed
    and replaced.

    Args:
        json_format: JSON lines on stderr instead of console lines
        level: Root log level name
        use_colors: Color console output when stderr is a terminal
        log_file: Path of the JSON log file served by /api/logs
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level.upper())

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(
        JsonFormatter() if json_format else ConsoleFormatter(use_colors=use_colors)
    )
    root.addHandler(stderr_handler)

    if log_file:
        file_handler = _file_handler(log_file)
        if file_handler is not None:
            root.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class LogContext:
    """Temporarily bind request context values.

    Usage:
        with LogContext(user_id="7"):
            logger.info("Processing file")  # record carries user_id=7
    """

    def __init__(self, **values: Any) -> None:
        unknown = set(values) - set(CONTEXT_FIELDS)
        if unknown:
            raise TypeError(f"Unknown log context fields: {', '.join(sorted(unknown))}")
        self.values = {name: str(value) for name, value in values.items()}
        self._tokens: list[tuple[contextvars.ContextVar[str], contextvars.Token[str]]] = []

    def __enter__(self) -> "LogContext":
        for name, value in self.values.items():
            var = CONTEXT_FIELDS[name]
            self._tokens.append((var, var.set(value)))
        return self

    def __exit__(self, *exc: Any) -> None:
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)
