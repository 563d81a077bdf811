"""
services/transaction_service.py
-------------------------------
Cache-backed access to transactions and reference data.

Reads go through the shared QueryCache. Writes are optimistic: the cached
lists change at once and are restored if the database call fails.
"""

import asyncio
import dataclasses
import uuid
from typing import Optional

from cache.mutations import run_mutation
from cache.query_cache import QueryCache
from config import CACHE_STALE_SECONDS, STATIC_STALE_SECONDS
from models.transaction import Transaction
from repositories.collection_repo import CollectionRepository
from repositories.recurring_repo import RecurringRepository
from repositories.transaction_repo import TransactionRepository
from utils.errors import RemoteCallFailed, ValidationFailed
from utils.logger import get_logger
from utils.validation import clean_description, require_amount, require_date, require_type

logger = get_logger(__name__)

EDITABLE_FIELDS = ("date", "category", "type", "amount", "description")


def transactions_prefix(user_id: str) -> tuple:
    return ("transactions", user_id)


def validate_fields(fields: dict) -> dict:
    """Validate and clean a (partial) set of transaction fields."""
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationFailed(f"Unknown field(s): {', '.join(sorted(unknown))}")
    cleaned = {}
    if "date" in fields:
        cleaned["date"] = require_date(fields["date"])
    if "type" in fields:
        cleaned["type"] = require_type(fields["type"])
    if "amount" in fields:
        cleaned["amount"] = require_amount(fields["amount"])
    if "category" in fields:
        category = clean_description(fields["category"])
        if not category:
            raise ValidationFailed("Category is required")
        cleaned["category"] = category[:50]
    if "description" in fields:
        cleaned["description"] = clean_description(fields["description"])
    return cleaned


class TransactionService:
    """
    Lists and mutates a user's transactions through the query cache.

    Args:
        cache: The process-wide QueryCache.
        repo: Data access; a fresh TransactionRepository by default.
    """

    def __init__(self, cache: QueryCache, repo: Optional[TransactionRepository] = None):
        self.cache = cache
        self.repo = repo or TransactionRepository()

    # ── READ ──────────────────────────────────────────────

    async def list_transactions(self, user_id: str, limit: Optional[int] = None) -> list[Transaction]:
        """Most recent first; served from cache for CACHE_STALE_SECONDS."""
        return await self.cache.fetch_query(
            (*transactions_prefix(user_id), limit),
            lambda: self.repo.get_recent(user_id, limit),
            CACHE_STALE_SECONDS,
        )

    # ── WRITE ─────────────────────────────────────────────

    async def create(self, user_id: str, date: str, category: str, type: str,
                     amount, description: Optional[str] = None) -> Transaction:
        """
        Create a transaction; cached lists show it immediately under a
        ``temp-`` id until the next refetch.
        """
        fields = validate_fields({
            "date": date, "category": category, "type": type,
            "amount": amount, "description": description,
        })
        tx = Transaction(user_id=user_id, **fields)
        optimistic = dataclasses.replace(tx, id=f"temp-{uuid.uuid4()}")

        def prepend(old):
            return [optimistic, *(old or [])]

        saved = await run_mutation(
            self.cache, transactions_prefix(user_id), prepend, lambda: self.repo.add(tx)
        )
        logger.info(f"Created transaction #{saved.id} for user {user_id}")
        return saved

    async def update(self, user_id: str, tx_id: str, **fields) -> Transaction:
        changes = validate_fields(fields)
        if not changes:
            raise ValidationFailed("Nothing to update")

        def patch(old):
            return [dataclasses.replace(t, **changes) if t.id == tx_id else t for t in old or []]

        async def remote():
            updated = await self.repo.update(tx_id, user_id, changes)
            if updated is None:
                raise RemoteCallFailed(
                    f"transaction {tx_id} not found",
                    user_message=f"⚠️ Transaction #{tx_id} not found.",
                )
            return updated

        return await run_mutation(self.cache, transactions_prefix(user_id), patch, remote)

    async def delete(self, user_id: str, tx_id: str) -> bool:
        async def remote():
            if not await self.repo.delete(tx_id, user_id):
                raise RemoteCallFailed(
                    f"transaction {tx_id} not found",
                    user_message=f"⚠️ Transaction #{tx_id} not found.",
                )
            return True

        return await run_mutation(
            self.cache, transactions_prefix(user_id),
            lambda old: [t for t in old or [] if t.id != tx_id],
            remote,
        )

    async def bulk_delete(self, user_id: str, tx_ids: list[str]) -> int:
        """Delete several transactions concurrently; returns how many existed."""
        ids = set(tx_ids)
        if not ids:
            return 0

        async def remote():
            results = await asyncio.gather(*(self.repo.delete(i, user_id) for i in ids))
            return sum(1 for deleted in results if deleted)

        deleted = await run_mutation(
            self.cache, transactions_prefix(user_id),
            lambda old: [t for t in old or [] if t.id not in ids],
            remote,
        )
        logger.info(f"Bulk-deleted {deleted}/{len(ids)} transaction(s) for user {user_id}")
        return deleted

    def invalidate(self, user_id: str) -> None:
        self.cache.invalidate_queries(transactions_prefix(user_id))


class ReferenceDataService:
    """Budget goals, portfolio holdings and recurring schedules; change rarely."""

    def __init__(self, cache: QueryCache,
                 goals_repo: Optional[CollectionRepository] = None,
                 holdings_repo: Optional[CollectionRepository] = None,
                 recurring_repo: Optional[RecurringRepository] = None):
        self.cache = cache
        self.goals_repo = goals_repo or CollectionRepository("budget_goals")
        self.holdings_repo = holdings_repo or CollectionRepository("portfolio_holdings")
        self.recurring_repo = recurring_repo or RecurringRepository()

    async def budget_goals(self, user_id: str) -> list[dict]:
        return await self.cache.fetch_query(
            ("budget_goals", user_id), lambda: self.goals_repo.get_all(user_id), STATIC_STALE_SECONDS
        )

    async def portfolio_holdings(self, user_id: str) -> list[dict]:
        return await self.cache.fetch_query(
            ("portfolio_holdings", user_id), lambda: self.holdings_repo.get_all(user_id), STATIC_STALE_SECONDS
        )

    async def recurring_transactions(self, user_id: str) -> list:
        return await self.cache.fetch_query(
            ("recurring_transactions", user_id), lambda: self.recurring_repo.get_all(user_id), STATIC_STALE_SECONDS
        )

    async def prefetch(self, user_id: str) -> None:
        """Warm all three so the next command that needs them is served from cache."""
        await asyncio.gather(
            self.cache.prefetch_query(("budget_goals", user_id), lambda: self.goals_repo.get_all(user_id), STATIC_STALE_SECONDS),
            self.cache.prefetch_query(("portfolio_holdings", user_id), lambda: self.holdings_repo.get_all(user_id), STATIC_STALE_SECONDS),
            self.cache.prefetch_query(("recurring_transactions", user_id), lambda: self.recurring_repo.get_all(user_id), STATIC_STALE_SECONDS),
        )
        logger.debug(f"Prefetched reference data for user {user_id}")

    # ── SUMMARIES ─────────────────────────────────────────

    async def goals_summary(self, user_id: str) -> str:
        """Active budget goals, one line each."""
        goals = [g for g in await self.budget_goals(user_id) if g.get("is_active", True)]
        if not goals:
            return "📭 No budget goals yet."
        lines = ["🎯 Budget goals:\n"]
        for goal in goals:
            lines.append(
                f"  • {goal['category']}: {float(goal['target_amount']):.2f} ({goal.get('period') or 'monthly'})"
            )
        return "\n".join(lines)

    async def portfolio_summary(self, user_id: str) -> str:
        """Holdings with their cost basis and the portfolio total."""
        holdings = await self.portfolio_holdings(user_id)
        if not holdings:
            return "📭 No portfolio holdings yet."
        lines = ["📈 Portfolio:\n"]
        total = 0.0
        for holding in holdings:
            cost = float(holding["quantity"]) * float(holding["purchase_price"])
            total += cost
            lines.append(
                f"  • {holding['symbol']}: {float(holding['quantity']):g} @ "
                f"{float(holding['purchase_price']):.2f} = {cost:.2f}"
            )
        lines.append(f"\n💼 Total invested: {total:.2f}")
        return "\n".join(lines)
