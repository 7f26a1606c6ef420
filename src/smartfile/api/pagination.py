"""Page-based pagination and list filtering for Smart File API.

Query parameters are parsed leniently: an invalid value falls back to its
default instead of failing the request, so clients always get a page.

- page: 1-based page number (default 1)
- limit: items per page (default 10, capped at 100)
- type, status, search: optional filters
- sort: one of SORT_FIELDS (default created_at)
- order: asc or desc (default desc)
"""

from __future__ import annotations

from fastapi import Request
from pydantic import BaseModel

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

DEFAULT_SORT = "created_at"
DEFAULT_ORDER = "desc"
SORT_FIELDS = frozenset({"created_at", "file_size", "file_name", "original_name", "file_type"})


class Pagination(BaseModel):
    """Pagination state returned alongside list results."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    total_rows: int = 0
    total_pages: int = 0

    @property
    def offset(self) -> int:
        """Row offset of the first item on this page."""
        return (self.page - 1) * self.limit

    def with_total(self, total_rows: int) -> "Pagination":
        """Return a copy with the row count and derived page count filled in."""
        total_pages = (total_rows + self.limit - 1) // self.limit if total_rows > 0 else 0
        return self.model_copy(update={"total_rows": total_rows, "total_pages": total_pages})


class FileFilter(BaseModel):
    """Normalized filter and sort options for file listings."""

    type: str = ""
    status: str = ""
    sort_by: str = DEFAULT_SORT
    sort_order: str = DEFAULT_ORDER
    search: str = ""


def _positive_int(raw: str | None) -> int | None:
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def pagination_from_request(request: Request) -> Pagination:
    """Build pagination from ``page`` and ``limit`` query parameters."""
    page = _positive_int(request.query_params.get("page")) or DEFAULT_PAGE
    limit = _positive_int(request.query_params.get("limit")) or DEFAULT_LIMIT
    return Pagination(page=page, limit=min(limit, MAX_LIMIT))


def file_filter_from_request(request: Request) -> FileFilter:
    """Build a file filter from query parameters, defaulting invalid sort options."""
    params = request.query_params

    sort_by = params.get("sort") or DEFAULT_SORT
    if sort_by not in SORT_FIELDS:
        sort_by = DEFAULT_SORT

    sort_order = params.get("order") or DEFAULT_ORDER
    if sort_order not in ("asc", "desc"):
        sort_order = DEFAULT_ORDER

    return FileFilter(
        type=params.get("type", ""),
        status=params.get("status", ""),
        sort_by=sort_by,
        sort_order=sort_order,
        search=params.get("search", ""),
    )
