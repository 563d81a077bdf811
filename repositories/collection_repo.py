"""
repositories/collection_repo.py
-------------------------------
Plain-dict access to the user-scoped tables that have no domain model of
their own (budget goals, portfolio holdings, profiles, chat history,
achievements, streaks). Used by backups, prefetching and the AI context.
"""

import asyncio
from typing import Optional

from db.store import DataStore
from utils.logger import get_logger

logger = get_logger(__name__)


class CollectionRepository:
    """Generic list/insert over one named table."""

    def __init__(self, table: str, store: Optional[DataStore] = None,
                 order_by: Optional[str] = "created_at", descending: bool = True):
        self.table = table
        self.store = store or DataStore()
        self.order_by = order_by
        self.descending = descending

    async def get_all(self, user_id: str, limit: Optional[int] = None, **filters) -> list[dict]:
        rows = await asyncio.to_thread(
            self.store.select, self.table, {"user_id": user_id, **filters},
            order_by=self.order_by, descending=self.descending, limit=limit,
        )
        return rows

    async def insert(self, rows: dict | list[dict]) -> list[dict]:
        return await asyncio.to_thread(self.store.insert, self.table, rows)
