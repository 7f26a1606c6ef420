"""``smartfile serve``: run the API under uvicorn.

    smartfile serve
    smartfile serve --port 8080 --host 0.0.0.0 --log-level debug
"""

from __future__ import annotations

from enum import Enum

import typer

from smartfile import __version__
from smartfile.config import settings

app = typer.Typer(help="Run the Smart File API server")


class LogLevel(str, Enum):
    debug = "debug"
    info = "info"
    warning = "warning"
    error = "error"


def _summary(host: str, port: int, log_level: LogLevel, reload: bool) -> list[str]:
    lines = [
        f"Smart File API {__version__}",
        f"  Listening:  http://{host}:{port}  (docs at /docs)",
        f"  Database:   {settings.database_url}",
        f"  Uploads:    {settings.upload_dir}",
        f"  Cache:      {settings.cache_backend} (ttl {settings.cache_ttl}s)",
        f"  Log level:  {log_level.value}",
    ]
    if reload:
        lines.append("  Reload:     on")
    return lines


@app.callback(invoke_without_command=True)
def serve(
    host: str = typer.Option(settings.host, "--host", "-h", help="Interface to bind"),
    port: int = typer.Option(settings.port, "--port", "-p", help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Restart on code changes"),
    log_level: LogLevel = typer.Option(
        LogLevel.info, "--log-level", "-l", case_sensitive=False, help="Uvicorn log level"
    ),
) -> None:
    """Run the Smart File API server.

    Runs a single worker: processing tasks live in the server's event loop
    and the memory cache backend is private to one process.
    """
    import uvicorn

    for line in _summary(host, port, log_level, reload):
        typer.echo(line)

    uvicorn.run(
        "smartfile.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level.value,
        # RequestLoggingMiddleware writes the access log
        access_log=False,
    )
