"""Cache key schema for Smart File API.

Key format: {prefix}:{digest}

Where:
- prefix: "cache" (namespace shared by every response cache entry)
- digest: hex MD5 of "{request_target}:user:{user_id}"

The digest makes keys opaque and fixed-length. Anything produced here lives
under the namespace prefix, so ``invalidation_pattern()`` always covers it.
"""

from __future__ import annotations

import hashlib
from urllib.parse import parse_qsl, urlencode

# Identity used for requests without an authenticated user
ANONYMOUS_USER_ID = 0


class CacheKeys:
    """Cache key generator following consistent naming convention."""

    PREFIX = "cache"

    @classmethod
    def request_target(cls, path: str, query: str = "") -> str:
        """Canonical request target used as key input.

        Query parameters are sorted so that ``?a=1&b=2`` and ``?b=2&a=1``
        address the same entry. Without a query string this is the path.
        """
        if not query:
            return path
        params = sorted(parse_qsl(query, keep_blank_values=True))
        return f"{path}?{urlencode(params)}"

    @classmethod
    def response(cls, path: str, user_id: int | None = None) -> str:
        """Key for a cached response body."""
        identity = ANONYMOUS_USER_ID if user_id is None else user_id
        data = f"{path}:user:{identity}".encode()
        digest = hashlib.md5(data, usedforsecurity=False).hexdigest()
        return f"{cls.PREFIX}:{digest}"

    @classmethod
    def invalidation_pattern(cls) -> str:
        """Pattern matching every response cache entry.

        Use with Redis SCAN + DEL for cache invalidation.
        """
        return f"{cls.PREFIX}:*"
