"""Tests for cache key generation."""

import hashlib

from smartfile.cache.keys import ANONYMOUS_USER_ID, CacheKeys


class TestCacheKeys:
    """Test cache key generation."""

    def test_response_key_format(self) -> None:
        """Response key is the namespace prefix plus MD5 of path and identity."""
        key = CacheKeys.response("/api/files/", 7)
        expected = hashlib.md5(b"/api/files/:user:7").hexdigest()
        assert key == f"cache:{expected}"

    def test_same_inputs_same_key(self) -> None:
        """Identical path and identity always give the same key."""
        assert CacheKeys.response("/api/files/3", 1) == CacheKeys.response("/api/files/3", 1)

    def test_different_user_different_key(self) -> None:
        """Keys are scoped per user."""
        assert CacheKeys.response("/api/files/", 1) != CacheKeys.response("/api/files/", 2)

    def test_different_path_different_key(self) -> None:
        """Keys differ per path."""
        assert CacheKeys.response("/api/files/", 1) != CacheKeys.response("/api/files/deleted", 1)

    def test_anonymous_uses_sentinel_identity(self) -> None:
        """A missing identity hashes like the sentinel user 0."""
        assert ANONYMOUS_USER_ID == 0
        assert CacheKeys.response("/api/files/") == CacheKeys.response("/api/files/", 0)

    def test_invalidation_pattern(self) -> None:
        """Invalidation pattern covers the whole namespace."""
        assert CacheKeys.invalidation_pattern() == "cache:*"
        assert CacheKeys.response("/any", 99).startswith("cache:")


class TestRequestTarget:
    """Test canonical request targets used as key input."""

    def test_path_without_query(self) -> None:
        """Without a query string the target is the bare path."""
        assert CacheKeys.request_target("/api/files/") == "/api/files/"

    def test_query_parameters_sorted(self) -> None:
        """Parameter order does not change the target."""
        a = CacheKeys.request_target("/api/files/", "page=2&limit=5")
        b = CacheKeys.request_target("/api/files/", "limit=5&page=2")
        assert a == b == "/api/files/?limit=5&page=2"

    def test_different_pages_different_targets(self) -> None:
        """Distinct pages never share a cache entry."""
        page1 = CacheKeys.request_target("/api/files/", "page=1")
        page2 = CacheKeys.request_target("/api/files/", "page=2")
        assert CacheKeys.response(page1, 1) != CacheKeys.response(page2, 1)

    def test_blank_values_kept(self) -> None:
        """Blank parameters are part of the target."""
        assert CacheKeys.request_target("/p", "search=") == "/p?search="
