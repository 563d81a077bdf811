"""
repositories/backup_repo.py
---------------------------
Whole-account reads and atomic multi-table writes for backups.
"""

import asyncio
from typing import Optional

from db.store import DataStore
from utils.logger import get_logger

logger = get_logger(__name__)


class BackupRepository:
    """Reads every backed-up table for a user; restores several tables at once."""

    def __init__(self, store: Optional[DataStore] = None):
        self.store = store or DataStore()

    async def fetch_tables(self, user_id: str, tables: list[str]) -> dict[str, list[dict]]:
        results = await asyncio.gather(*(
            asyncio.to_thread(self.store.select, table, {"user_id": user_id}, order_by="created_at")
            for table in tables
        ))
        return dict(zip(tables, results))

    async def restore(self, batches: list[tuple[str, list[dict]]]) -> dict[str, int]:
        """Insert all batches in one database transaction; returns row counts."""
        inserted = await asyncio.to_thread(self.store.insert_batches, batches)
        return {table: len(rows) for table, rows in inserted.items()}
