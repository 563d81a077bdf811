"""
repositories/recurring_repo.py
------------------------------
Data access layer for recurring transactions.
"""

import asyncio
from datetime import date, timedelta
from typing import Optional

from db.store import DataStore
from models.recurring import RecurringTransaction
from utils.logger import get_logger

logger = get_logger(__name__)

TABLE = "recurring_transactions"


class RecurringRepository:
    """Repository for CRUD operations on the recurring_transactions table."""

    def __init__(self, store: Optional[DataStore] = None):
        self.store = store or DataStore()

    async def add(self, item: RecurringTransaction) -> RecurringTransaction:
        rows = await asyncio.to_thread(self.store.insert, TABLE, item.to_row())
        saved = RecurringTransaction.from_row(rows[0])
        logger.info(f"Added recurring #{saved.id} '{saved.name}' for user {saved.user_id}")
        return saved

    async def get_all(self, user_id: str, active_only: bool = False) -> list[RecurringTransaction]:
        """Schedules for a user, soonest due first."""
        filters = {"user_id": user_id}
        if active_only:
            filters["is_active"] = True
        rows = await asyncio.to_thread(
            self.store.select, TABLE, filters, order_by="next_due_date"
        )
        return [RecurringTransaction.from_row(r) for r in rows]

    async def get_due_soon(self, days_ahead: int = 2) -> list[RecurringTransaction]:
        """
        Active schedules, across all users, due within the next N days.
        Used by the daily reminder job.
        """
        target = (date.today() + timedelta(days=days_ahead)).isoformat()
        rows = await asyncio.to_thread(
            self.store.select, TABLE, {"is_active": True},
            ranges={"next_due_date": (None, target)}, order_by="next_due_date",
        )
        return [RecurringTransaction.from_row(r) for r in rows]

    async def get_by_id(self, item_id: str, user_id: str) -> Optional[RecurringTransaction]:
        rows = await asyncio.to_thread(
            self.store.select, TABLE, {"id": item_id, "user_id": user_id}
        )
        return RecurringTransaction.from_row(rows[0]) if rows else None

    async def update(self, item: RecurringTransaction) -> Optional[RecurringTransaction]:
        fields = item.to_row()
        fields.pop("user_id")
        row = await asyncio.to_thread(self.store.update, TABLE, item.id, item.user_id, fields)
        return RecurringTransaction.from_row(row) if row else None

    async def set_active(self, item_id: str, user_id: str, active: bool) -> bool:
        row = await asyncio.to_thread(
            self.store.update, TABLE, item_id, user_id, {"is_active": active}
        )
        return row is not None

    async def delete(self, item_id: str, user_id: str) -> bool:
        return await asyncio.to_thread(self.store.delete, TABLE, item_id, user_id)
