"""
tests/conftest.py
-----------------
In-memory stand-ins for the data store and the clock.
"""

import copy
import itertools
import threading
from collections import defaultdict

import pytest

from cache.query_cache import QueryCache
from utils.errors import RemoteCallFailed


class FakeStore:
    """Dict-backed DataStore with the same method signatures."""

    def __init__(self):
        self.tables: dict[str, list[dict]] = defaultdict(list)
        self.fail = False
        self.rpc_result = True
        self.rpc_calls: list[tuple[str, dict]] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def seed(self, table: str, rows: list[dict]) -> list[dict]:
        return self.insert(table, rows)

    def select(self, table, filters=None, *, ranges=None, order_by=None, descending=False, limit=None):
        self._maybe_fail(f"select from {table}")
        rows = [
            r for r in self.tables[table]
            if all(r.get(k) == v for k, v in (filters or {}).items())
        ]
        for column, (low, high) in (ranges or {}).items():
            rows = [
                r for r in rows
                if (low is None or str(r[column]) >= low) and (high is None or str(r[column]) <= high)
            ]
        if order_by:
            rows = sorted(rows, key=lambda r: r.get(order_by) or 0, reverse=descending)
        if limit:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    def insert(self, table, rows):
        batch = [rows] if isinstance(rows, dict) else list(rows)
        if not batch:
            return []
        return self.insert_batches([(table, batch)])[table]

    def insert_batches(self, batches):
        self._maybe_fail("insert")
        staged = {name: [] for name, _ in batches}
        for name, rows in batches:
            for row in rows:
                n = next(self._ids)
                staged[name].append({"id": str(n), "created_at": n, **row})
        with self._lock:
            for name, rows in staged.items():
                self.tables[name].extend(rows)
        return copy.deepcopy(staged)

    def update(self, table, row_id, user_id, fields):
        self._maybe_fail(f"update {table}")
        for row in self.tables[table]:
            if row["id"] == row_id and row["user_id"] == user_id:
                row.update(fields)
                return copy.deepcopy(row)
        return None

    def delete(self, table, row_id, user_id):
        self._maybe_fail(f"delete {table}")
        with self._lock:
            before = len(self.tables[table])
            self.tables[table] = [
                r for r in self.tables[table]
                if not (r["id"] == row_id and r["user_id"] == user_id)
            ]
            return len(self.tables[table]) < before

    def rpc(self, function, params):
        self.rpc_calls.append((function, params))
        if isinstance(self.rpc_result, Exception):
            raise self.rpc_result
        return self.rpc_result

    def _maybe_fail(self, what: str) -> None:
        if self.fail:
            raise RemoteCallFailed(f"{what} failed: connection refused")


class FakeClock:
    """Manually advanced seconds counter."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return QueryCache(clock=clock, gc_time=300)
