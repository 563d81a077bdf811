"""
repositories/transaction_repo.py
--------------------------------
Data access layer for income/expense transactions.
All reads and writes against the `transactions` table live here.
"""

import asyncio
from datetime import date
from typing import Optional

from db.store import DataStore
from models.transaction import Transaction
from utils.logger import get_logger

logger = get_logger(__name__)

TABLE = "transactions"


class TransactionRepository:
    """Repository for CRUD operations on the transactions table."""

    def __init__(self, store: Optional[DataStore] = None):
        self.store = store or DataStore()

    # ── CREATE ────────────────────────────────────────────

    async def add(self, tx: Transaction) -> Transaction:
        """
        Insert a single transaction.

        Returns:
            The stored Transaction with its server id and timestamps.
        """
        rows = await asyncio.to_thread(self.store.insert, TABLE, tx.to_insert())
        saved = Transaction.from_row(rows[0])
        logger.info(f"Added {saved.type} #{saved.id} for user {saved.user_id}")
        return saved

    async def bulk_add(self, txs: list[Transaction]) -> list[Transaction]:
        """Insert a batch in one database transaction, preserving order."""
        rows = await asyncio.to_thread(
            self.store.insert, TABLE, [t.to_insert() for t in txs]
        )
        return [Transaction.from_row(r) for r in rows]

    # ── READ ──────────────────────────────────────────────

    async def get_recent(self, user_id: str, limit: Optional[int] = None) -> list[Transaction]:
        """Most recent transactions first."""
        rows = await asyncio.to_thread(
            self.store.select, TABLE, {"user_id": user_id},
            order_by="date", descending=True, limit=limit,
        )
        return [Transaction.from_row(r) for r in rows]

    async def get_by_date_range(
        self, user_id: str, start: date, end: date
    ) -> list[Transaction]:
        """Transactions within [start, end], most recent first."""
        rows = await asyncio.to_thread(
            self.store.select, TABLE, {"user_id": user_id},
            ranges={"date": (start.isoformat(), end.isoformat())},
            order_by="date", descending=True,
        )
        return [Transaction.from_row(r) for r in rows]

    # ── UPDATE ────────────────────────────────────────────

    async def update(self, tx_id: str, user_id: str, fields: dict) -> Optional[Transaction]:
        row = await asyncio.to_thread(self.store.update, TABLE, tx_id, user_id, fields)
        return Transaction.from_row(row) if row else None

    # ── DELETE ────────────────────────────────────────────

    async def delete(self, tx_id: str, user_id: str) -> bool:
        return await asyncio.to_thread(self.store.delete, TABLE, tx_id, user_id)
