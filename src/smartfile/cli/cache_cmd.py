"""CLI commands for the response cache.

Usage:
    smartfile cache clear
    smartfile cache stats
"""

from __future__ import annotations

import asyncio

import typer

from smartfile.cache import CacheInvalidationError, CacheInvalidator, CacheKeys, create_cache_store
from smartfile.cache.store import CacheStoreError, MemoryCacheStore

app = typer.Typer(help="Inspect and clear the response cache", no_args_is_help=True)

MEMORY_BACKEND_NOTE = (
    "Note: the memory backend lives inside the server process; "
    "this command only sees its own empty store"
)


async def _clear() -> tuple[str, int | None]:
    store = await create_cache_store()
    try:
        if not store.available:
            return store.name, None
        return store.name, await CacheInvalidator(store).invalidate()
    finally:
        await store.close()


async def _count() -> tuple[str, bool, int]:
    store = await create_cache_store()
    try:
        if not store.available:
            return store.name, False, 0
        return store.name, True, await store.count_matching(CacheKeys.invalidation_pattern())
    finally:
        await store.close()


def _warn_if_memory(backend: str) -> None:
    if backend == MemoryCacheStore.name:
        typer.echo(MEMORY_BACKEND_NOTE, err=True)


@app.command("clear")
def clear() -> None:
    """Delete every cached response."""
    try:
        backend, deleted = asyncio.run(_clear())
    except CacheInvalidationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if deleted is None:
        typer.echo("Response cache is not available", err=True)
        raise typer.Exit(1)
    typer.echo(f"Cleared {deleted} cached responses")
    _warn_if_memory(backend)


@app.command("stats")
def stats() -> None:
    """Show the configured backend and number of cached responses."""
    try:
        backend, available, count = asyncio.run(_count())
    except CacheStoreError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Backend: {backend}")
    typer.echo(f"Available: {'yes' if available else 'no'}")
    typer.echo(f"Cached responses: {count}")
    _warn_if_memory(backend)
