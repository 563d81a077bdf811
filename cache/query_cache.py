"""
cache/query_cache.py
--------------------
Keyed cache of server data for one bot process.

Keys are tuples such as ``("transactions", user_id, limit)``. Operations that
take a *prefix* affect every key whose leading elements equal the prefix, so
``("transactions", user_id)`` covers all list variants for that user.
"""

import asyncio
import copy
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Optional

from config import CACHE_GC_SECONDS, CACHE_STALE_SECONDS
from utils.logger import get_logger

logger = get_logger(__name__)

QueryKey = tuple
Fetcher = Callable[[], Awaitable[Any]]

EMPTY = "empty"
FETCHING = "fetching"
FRESH = "fresh"
STALE = "stale"


@dataclass
class CacheEntry:
    """
    One cached query.

    Attributes:
        data: Last successfully fetched (or optimistically written) value.
        updated_at: Clock reading when ``data`` was written; None if never.
        stale_time: Seconds ``data`` stays fresh after ``updated_at``.
        invalidated: Forced stale regardless of age.
        last_access: Clock reading of the last read or write, for GC.
        task: The in-flight fetch, if any.
    """
    data: Any = None
    updated_at: Optional[float] = None
    stale_time: float = CACHE_STALE_SECONDS
    invalidated: bool = False
    last_access: float = 0.0
    task: Optional[asyncio.Task] = None

    @property
    def has_data(self) -> bool:
        return self.updated_at is not None

    def is_fresh(self, now: float) -> bool:
        return (
            self.has_data
            and not self.invalidated
            and now - self.updated_at <= self.stale_time
        )

    def is_fetching(self) -> bool:
        return self.task is not None and not self.task.done()


def matches(key: QueryKey, prefix: QueryKey) -> bool:
    """True when the key's leading elements equal the prefix."""
    return tuple(key[:len(prefix)]) == tuple(prefix)


class QueryCache:
    """
    Stale-while-revalidate cache shared by the services of one process.

    Args:
        clock: Monotonic seconds source; injectable for tests.
        gc_time: Seconds an untouched entry is kept before collect_garbage drops it.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic,
                 gc_time: float = CACHE_GC_SECONDS):
        self.clock = clock
        self.gc_time = gc_time
        self._entries: dict[QueryKey, CacheEntry] = {}
        self._locks: dict[QueryKey, asyncio.Lock] = {}
        self._lock_users: dict[QueryKey, int] = {}

    # ── READ ──────────────────────────────────────────────

    async def fetch_query(self, key: QueryKey, fetcher: Fetcher,
                          stale_time: float = CACHE_STALE_SECONDS) -> Any:
        """
        Return fresh cached data, or fetch it.

        Concurrent callers for the same key share one fetch. If a mutation cancels
        that fetch, callers get the cache's current value; a key that never held
        data is fetched again once the mutation has finished.
        """
        while True:
            now = self.clock()
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = CacheEntry(stale_time=stale_time, last_access=now)
            entry.stale_time = stale_time
            entry.last_access = now

            if entry.is_fresh(now):
                return entry.data

            if not entry.is_fetching():
                logger.debug(f"Fetching {key}")
                entry.task = asyncio.ensure_future(self._run_fetch(key, entry, fetcher))

            task = entry.task
            try:
                return await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
            if entry.has_data:
                logger.debug(f"Fetch for {key} was cancelled, serving cached value")
                return entry.data
            logger.debug(f"Fetch for {key} was cancelled before any data, waiting to refetch")
            await self._wait_for_mutations(key)

    async def prefetch_query(self, key: QueryKey, fetcher: Fetcher,
                             stale_time: float = CACHE_STALE_SECONDS) -> None:
        """Warm a key; failures are logged and never raised."""
        try:
            await self.fetch_query(key, fetcher, stale_time)
        except Exception as e:
            logger.warning(f"Prefetch of {key} failed: {e}")

    def get_query_data(self, key: QueryKey) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return None
        entry.last_access = self.clock()
        return entry.data

    def state(self, key: QueryKey) -> str:
        """One of ``empty``, ``fetching``, ``fresh`` or ``stale``."""
        entry = self._entries.get(key)
        if entry is None:
            return EMPTY
        if entry.is_fetching():
            return FETCHING
        if not entry.has_data:
            return EMPTY
        return FRESH if entry.is_fresh(self.clock()) else STALE

    def keys(self, prefix: QueryKey = ()) -> list[QueryKey]:
        return [key for key in self._entries if matches(key, prefix)]

    # ── WRITE ─────────────────────────────────────────────

    def set_query_data(self, key: QueryKey, value: Any) -> Any:
        """
        Write a value directly (optimistic updates).

        ``value`` may be a callable receiving the current data and returning
        the new data.
        """
        now = self.clock()
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = CacheEntry(last_access=now)
        new_data = value(entry.data) if callable(value) else value
        entry.data = new_data
        entry.updated_at = now
        entry.invalidated = False
        entry.last_access = now
        return new_data

    def invalidate_queries(self, prefix: QueryKey) -> int:
        """Mark every matching entry stale; the next read re-fetches."""
        keys = self.keys(prefix)
        for key in keys:
            self._entries[key].invalidated = True
        if keys:
            logger.debug(f"Invalidated {len(keys)} quer(ies) under {prefix}")
        return len(keys)

    async def cancel_queries(self, prefix: QueryKey) -> None:
        """Cancel in-flight fetches under the prefix and wait for them to stop."""
        tasks = []
        for key in self.keys(prefix):
            entry = self._entries[key]
            if entry.is_fetching():
                entry.task.cancel()
                tasks.append(entry.task)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.debug(f"Cancelled {len(tasks)} fetch(es) under {prefix}")

    def remove_queries(self, prefix: QueryKey) -> int:
        keys = self.keys(prefix)
        for key in keys:
            entry = self._entries.pop(key)
            if entry.is_fetching():
                entry.task.cancel()
        return len(keys)

    def collect_garbage(self) -> int:
        """Drop entries untouched for longer than ``gc_time``."""
        now = self.clock()
        expired = [
            key for key, entry in self._entries.items()
            if not entry.is_fetching() and now - entry.last_access > self.gc_time
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info(f"Garbage-collected {len(expired)} cache entr(ies)")
        return len(expired)

    # ── SNAPSHOTS ─────────────────────────────────────────

    def dump(self, prefix: QueryKey) -> dict[QueryKey, CacheEntry]:
        """Deep copy of every matching entry, without its fetch task."""
        return {
            key: replace(self._entries[key], data=copy.deepcopy(self._entries[key].data), task=None)
            for key in self.keys(prefix)
        }

    def restore(self, prefix: QueryKey, saved: dict[QueryKey, CacheEntry]) -> None:
        """Put matching entries back exactly as dumped; keys created since are removed."""
        for key in self.keys(prefix):
            if key not in saved:
                del self._entries[key]
        for key, entry in saved.items():
            self._entries[key] = replace(entry)

    @asynccontextmanager
    async def mutation_lock(self, prefix: QueryKey):
        """Serialize mutations on one prefix. The lock is dropped once nobody holds or waits on it."""
        lock = self._locks.get(prefix)
        if lock is None:
            lock = self._locks[prefix] = asyncio.Lock()
        self._lock_users[prefix] = self._lock_users.get(prefix, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[prefix] -= 1
            if not self._lock_users[prefix]:
                del self._lock_users[prefix]
                del self._locks[prefix]

    async def _wait_for_mutations(self, key: QueryKey) -> None:
        for prefix, lock in list(self._locks.items()):
            if matches(key, prefix) and lock.locked():
                async with lock:
                    pass

    # ── HELPERS ───────────────────────────────────────────

    async def _run_fetch(self, key: QueryKey, entry: CacheEntry, fetcher: Fetcher) -> Any:
        try:
            data = await fetcher()
        finally:
            if self._entries.get(key) is entry:
                entry.task = None
        if self._entries.get(key) is entry:
            entry.data = data
            entry.updated_at = self.clock()
            entry.invalidated = False
        return data
