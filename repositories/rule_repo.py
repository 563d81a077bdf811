"""
repositories/rule_repo.py
-------------------------
Data access layer for categorization rules.
"""

import asyncio
from typing import Optional

from db.store import DataStore
from models.rule import CategorizationRule
from utils.logger import get_logger

logger = get_logger(__name__)

TABLE = "categorization_rules"


class RuleRepository:
    """Repository for the categorization_rules table."""

    def __init__(self, store: Optional[DataStore] = None):
        self.store = store or DataStore()

    async def get_active(self, user_id: str) -> list[CategorizationRule]:
        """Active rules for a user, highest priority first."""
        rows = await asyncio.to_thread(
            self.store.select, TABLE, {"user_id": user_id, "is_active": True},
            order_by="priority", descending=True,
        )
        return [CategorizationRule.from_row(r) for r in rows]

    async def get_all(self, user_id: str) -> list[CategorizationRule]:
        rows = await asyncio.to_thread(
            self.store.select, TABLE, {"user_id": user_id},
            order_by="priority", descending=True,
        )
        return [CategorizationRule.from_row(r) for r in rows]

    async def add(self, rule: CategorizationRule) -> CategorizationRule:
        rows = await asyncio.to_thread(self.store.insert, TABLE, {
            "user_id": rule.user_id,
            "keyword": rule.keyword,
            "category": rule.category,
            "priority": rule.priority,
            "is_active": rule.is_active,
        })
        saved = CategorizationRule.from_row(rows[0])
        logger.info(f"Added rule #{saved.id} '{saved.keyword}' → {saved.category}")
        return saved

    async def set_active(self, rule_id: str, user_id: str, active: bool) -> bool:
        row = await asyncio.to_thread(
            self.store.update, TABLE, rule_id, user_id, {"is_active": active}
        )
        return row is not None

    async def delete(self, rule_id: str, user_id: str) -> bool:
        return await asyncio.to_thread(self.store.delete, TABLE, rule_id, user_id)
