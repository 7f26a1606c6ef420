"""Response cache invalidation.

Every mutation (upload, delete, restore, permanent delete) clears the whole
response cache namespace. The scope is deliberately coarse: a single pattern
that matches every key ``CacheKeys.response`` can produce, so no write can
leave a stale entry behind as long as the pattern delete succeeds.

Coherency protocol for writes:
    mutate store -> commit -> invalidate(cache:*) -> respond

Invalidation runs after the commit and is never allowed to undo it. A failed
invalidation is logged; stale entries then expire within one TTL.

Example:
    invalidator = CacheInvalidator(store)
    await invalidator.invalidate_after_commit("file_uploaded")
"""

from __future__ import annotations

import logging

from smartfile.cache.keys import CacheKeys
from smartfile.cache.store import CacheStore, CacheStoreError

logger = logging.getLogger(__name__)


class CacheInvalidationError(Exception):
    """Pattern invalidation failed part-way through.

    Some matching entries may survive until their TTL expires.
    """

    def __init__(self, pattern: str, cause: Exception):
        self.pattern = pattern
        self.cause = cause
        super().__init__(f"Cache invalidation for '{pattern}' failed: {cause}")


class CacheInvalidator:
    """Clears the response cache namespace after writes."""

    def __init__(self, store: CacheStore):
        self.store = store
        self.pattern = CacheKeys.invalidation_pattern()

    async def invalidate(self) -> int:
        """Delete every response cache entry.

        Returns:
            Number of entries deleted (0 when the store is unavailable)

        Raises:
            CacheInvalidationError: If enumeration or deletion failed
        """
        if not self.store.available:
            return 0

        try:
            deleted = await self.store.delete_matching(self.pattern)
        except CacheStoreError as e:
            raise CacheInvalidationError(self.pattern, e) from e

        logger.debug(f"Invalidated {deleted} response cache entries")
        return deleted

    async def invalidate_after_commit(self, reason: str) -> bool:
        """Invalidate on behalf of a mutation that has already committed.

        Never raises. A failure is logged as a warning since the write itself
        succeeded.

        Returns:
            True if invalidation succeeded (or there was nothing to do)
        """
        try:
            await self.invalidate()
        except CacheInvalidationError as e:
            logger.warning(
                "Response cache invalidation failed after commit",
                extra={"reason": reason, "pattern": e.pattern, "error": str(e.cause)},
            )
            return False
        return True
