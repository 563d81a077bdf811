"""
services/recurring_service.py
------------------------------
Business logic for recurring transactions: due-date calculation,
validated CRUD and the daily reminder job.
"""

import dataclasses
from datetime import date, timedelta
from typing import Optional

from cache.query_cache import QueryCache
from models.recurring import FREQUENCIES, RecurringTransaction
from repositories.recurring_repo import RecurringRepository
from services.transaction_service import ReferenceDataService
from utils.date_helpers import add_months, add_years, today as current_date
from utils.errors import ValidationFailed
from utils.logger import get_logger
from utils.validation import clean_description, require_amount, require_date, require_type, sanitize_string

logger = get_logger(__name__)

NAME_MAX_LENGTH = 200


def calculate_next_due_date(start_date: date, frequency: str, today: Optional[date] = None) -> date:
    """
    Next occurrence of a schedule on or after today.

    Monthly and yearly schedules count elapsed periods with 30- and 365-day
    divisors, then step the calendar month/year; the day is clamped to the
    target month's length (Jan 31 + 1 month → Feb 28/29).

    Args:
        start_date: First occurrence.
        frequency: 'daily' | 'weekly' | 'monthly' | 'yearly'.
        today: Reference day; defaults to the current date.
    """
    if frequency not in FREQUENCIES:
        raise ValidationFailed(f"Unknown frequency: {frequency!r}")
    today = today or current_date()
    if start_date > today:
        return start_date

    elapsed = (today - start_date).days
    if frequency == "daily":
        return start_date + timedelta(days=elapsed + 1)
    if frequency == "weekly":
        return start_date + timedelta(weeks=elapsed // 7 + 1)
    if frequency == "monthly":
        return add_months(start_date, elapsed // 30 + 1)
    return add_years(start_date, elapsed // 365 + 1)


# Lower bounds on a period's length, so the first guess never overshoots.
_MIN_PERIOD_DAYS = {"daily": 1, "weekly": 7, "monthly": 31, "yearly": 366}


def _occurrence(start_date: date, frequency: str, n: int) -> date:
    if frequency == "daily":
        return start_date + timedelta(days=n)
    if frequency == "weekly":
        return start_date + timedelta(weeks=n)
    if frequency == "monthly":
        return add_months(start_date, n)
    return add_years(start_date, n)


def following_due_date(start_date: date, frequency: str, after: date) -> date:
    """
    First occurrence of a schedule strictly after ``after``.

    Occurrences stay anchored on ``start_date``, so a schedule starting on
    Jan 31 falls due on Feb 28 and then on Mar 31.
    """
    if frequency not in FREQUENCIES:
        raise ValidationFailed(f"Unknown frequency: {frequency!r}")
    n = max((after - start_date).days // _MIN_PERIOD_DAYS[frequency], 0)
    while _occurrence(start_date, frequency, n) <= after:
        n += 1
    return _occurrence(start_date, frequency, n)


class RecurringService:
    """
    Handles all business logic for recurring transactions.

    Responsibilities:
        - Validate and store schedules, keeping next_due_date in sync.
        - List, toggle and delete schedules.
        - Feed the reminder job and advance schedules after a reminder.
    """

    def __init__(self, repo: Optional[RecurringRepository] = None, cache: Optional[QueryCache] = None,
                 reference: Optional[ReferenceDataService] = None):
        self.repo = repo or RecurringRepository()
        self.cache = cache
        self.reference = reference

    def _invalidate(self, user_id: str) -> None:
        if self.cache is not None:
            self.cache.invalidate_queries(("recurring_transactions", user_id))

    # ── CREATE / UPDATE ───────────────────────────────────

    async def create(self, user_id: str, name: str, amount, type: str, frequency: str,
                     start_date: str, category: str = "Other", end_date: Optional[str] = None,
                     description: Optional[str] = None) -> RecurringTransaction:
        """
        Validate and save a new schedule.

        Raises:
            ValidationFailed: Any field is invalid; nothing is written.
        """
        item = RecurringTransaction(
            user_id=user_id,
            name=name,
            amount=amount,
            type=type,
            category=category,
            frequency=frequency,
            start_date=start_date,
            end_date=end_date,
            next_due_date=start_date,
            description=description,
        )
        item = self._validated(item)
        saved = await self.repo.add(item)
        self._invalidate(user_id)
        logger.info(f"Created recurring '{saved.name}' ({saved.frequency}) next due {saved.next_due_date}")
        return saved

    async def update(self, user_id: str, item_id: str, **changes) -> RecurringTransaction:
        """Patch a schedule; next_due_date is recomputed from the new values."""
        item = await self.repo.get_by_id(item_id, user_id)
        if item is None:
            raise ValidationFailed(f"Recurring transaction #{item_id} not found")
        fields = {
            "start_date": item.start_date.isoformat(),
            "end_date": item.end_date.isoformat() if item.end_date else None,
            **changes,
        }
        for key in ("start_date", "end_date"):
            if isinstance(fields[key], date):
                fields[key] = fields[key].isoformat()
        updated = await self.repo.update(self._validated(dataclasses.replace(item, **fields)))
        if updated is None:
            raise ValidationFailed(f"Recurring transaction #{item_id} not found")
        self._invalidate(user_id)
        return updated

    def _validated(self, item: RecurringTransaction) -> RecurringTransaction:
        """Check every field and return a clean copy with dates and next_due_date set."""
        name = sanitize_string(item.name or "")
        if not name or len(name) > NAME_MAX_LENGTH:
            raise ValidationFailed("Invalid name")
        if item.frequency not in FREQUENCIES:
            raise ValidationFailed(f"Invalid frequency: {item.frequency!r} (daily, weekly, monthly or yearly)")
        start = date.fromisoformat(require_date(item.start_date))
        end = date.fromisoformat(require_date(item.end_date)) if item.end_date else None
        if end and end < start:
            raise ValidationFailed("End date must be on or after the start date")
        return dataclasses.replace(
            item,
            name=name,
            amount=require_amount(item.amount),
            type=require_type(item.type),
            category=(clean_description(item.category) or "Other")[:50],
            start_date=start,
            end_date=end,
            next_due_date=calculate_next_due_date(start, item.frequency),
            description=clean_description(item.description),
        )

    # ── READ ──────────────────────────────────────────────

    async def list_active(self, user_id: str) -> str:
        """
        Formatted list of active schedules, soonest first. Served from the
        reference-data cache when one is wired in.

        Returns:
            Formatted string or a "nothing yet" message.
        """
        if self.reference is not None:
            items = [i for i in await self.reference.recurring_transactions(user_id) if i.is_active]
        else:
            items = await self.repo.get_all(user_id, active_only=True)
        if not items:
            return "📭 No recurring transactions yet."

        lines = ["🔁 Active recurring transactions:\n"]
        monthly = 0.0
        for item in items:
            lines.append(f"  #{item.id} {item}")
            if item.frequency == "monthly" and item.type == "expense":
                monthly += item.amount
        if monthly > 0:
            lines.append(f"\n💶 Monthly commitments: {monthly:.2f}")
        return "\n".join(lines)

    # ── TOGGLE / DELETE ───────────────────────────────────

    async def toggle(self, user_id: str, item_id: str, active: bool) -> bool:
        updated = await self.repo.set_active(item_id, user_id, active)
        self._invalidate(user_id)
        return updated

    async def delete(self, user_id: str, item_id: str) -> bool:
        deleted = await self.repo.delete(item_id, user_id)
        self._invalidate(user_id)
        return deleted

    # ── REMINDERS ─────────────────────────────────────────

    async def get_due_reminders(self, days_ahead: int = 2) -> list[RecurringTransaction]:
        """Schedules due within ``days_ahead`` days. Called by the scheduler."""
        return await self.repo.get_due_soon(days_ahead=days_ahead)

    async def advance_due_date(self, item: RecurringTransaction) -> Optional[RecurringTransaction]:
        """
        Move a schedule to its following occurrence after a reminder.
        Schedules past their end date are deactivated instead.
        """
        following = following_due_date(item.start_date, item.frequency, item.next_due_date)
        if item.end_date and following > item.end_date:
            await self.repo.set_active(item.id, item.user_id, False)
            self._invalidate(item.user_id)
            logger.info(f"Recurring '{item.name}' reached its end date; deactivated")
            return None
        advanced = await self.repo.update(dataclasses.replace(item, next_due_date=following))
        self._invalidate(item.user_id)
        logger.info(f"Advanced '{item.name}' next due date to {following}")
        return advanced
