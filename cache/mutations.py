"""
cache/mutations.py
------------------
Optimistic updates over the query cache.

A mutation runs in explicit phases:

    snapshot()  cancel in-flight fetches, deep-copy every matching entry
    apply()     write the optimistic value into the cache
    commit()    remote call succeeded: mark the prefix stale
    rollback()  remote call failed: restore the snapshot verbatim
"""

from typing import Any, Awaitable, Callable

from cache.query_cache import CacheEntry, QueryCache, QueryKey
from utils.errors import RemoteCallFailed
from utils.logger import get_logger

logger = get_logger(__name__)


class OptimisticMutation:
    """One optimistic change to every cached query under ``prefix``."""

    def __init__(self, cache: QueryCache, prefix: QueryKey):
        self.cache = cache
        self.prefix = prefix
        self._snapshot: dict[QueryKey, CacheEntry] | None = None

    async def snapshot(self) -> None:
        await self.cache.cancel_queries(self.prefix)
        self._snapshot = self.cache.dump(self.prefix)

    def apply(self, updater: Callable[[Any], Any]) -> None:
        """Run ``updater(old_data)`` on every matching key that holds data."""
        if self._snapshot is None:
            raise RuntimeError("snapshot() must run before apply()")
        for key, entry in self._snapshot.items():
            if entry.has_data:
                self.cache.set_query_data(key, updater)

    def commit(self) -> None:
        self.cache.invalidate_queries(self.prefix)

    def rollback(self) -> None:
        if self._snapshot is None:
            return
        self.cache.restore(self.prefix, self._snapshot)
        logger.info(f"Rolled back optimistic update under {self.prefix}")


async def run_mutation(
    cache: QueryCache,
    prefix: QueryKey,
    updater: Callable[[Any], Any],
    remote: Callable[[], Awaitable[Any]],
) -> Any:
    """
    Apply ``updater`` optimistically, then await ``remote()``.

    Only one mutation per prefix runs at a time. On failure the cache is
    restored and the error surfaces as RemoteCallFailed.
    """
    async with cache.mutation_lock(prefix):
        mutation = OptimisticMutation(cache, prefix)
        await mutation.snapshot()
        mutation.apply(updater)
        try:
            result = await remote()
        except RemoteCallFailed:
            mutation.rollback()
            raise
        except Exception as e:
            mutation.rollback()
            logger.error(f"Mutation under {prefix} failed: {e}")
            raise RemoteCallFailed(f"mutation failed: {e}") from e
        mutation.commit()
        return result
