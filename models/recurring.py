"""
models/recurring.py
-------------------
Domain model for recurring (scheduled) transactions.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

FREQUENCIES = ("daily", "weekly", "monthly", "yearly")


@dataclass
class RecurringTransaction:
    """
    Represents a recurring income or expense (salary, rent, subscription…).

    Attributes:
        id: Server-assigned identifier (None for new records).
        user_id: Opaque id of the owning user.
        name: Friendly name (e.g. 'Netflix', 'Rent').
        amount: Non-negative amount per occurrence.
        type: 'income' or 'expense'.
        category: Label applied to generated transactions.
        frequency: 'daily' | 'weekly' | 'monthly' | 'yearly'.
        start_date: First occurrence.
        end_date: Optional last day the schedule applies.
        next_due_date: Computed on the client from start_date + frequency.
        is_active: Whether the schedule is currently active.
    """
    user_id: str
    name: str
    amount: float
    type: str
    category: str
    frequency: str
    start_date: date
    next_due_date: date
    end_date: Optional[date] = None
    description: Optional[str] = None
    is_active: bool = True
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_row(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.name,
            "amount": self.amount,
            "type": self.type,
            "category": self.category,
            "frequency": self.frequency,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "next_due_date": self.next_due_date.isoformat(),
            "description": self.description,
            "is_active": self.is_active,
        }

    @classmethod
    def from_row(cls, row: dict) -> "RecurringTransaction":
        def _as_date(value):
            if value is None or isinstance(value, date):
                return value
            return date.fromisoformat(str(value))

        return cls(
            id=str(row["id"]) if row.get("id") is not None else None,
            user_id=str(row["user_id"]),
            name=row["name"],
            amount=float(row["amount"]),
            type=row.get("type") or "expense",
            category=row.get("category") or "Other",
            frequency=row["frequency"],
            start_date=_as_date(row["start_date"]),
            end_date=_as_date(row.get("end_date")),
            next_due_date=_as_date(row["next_due_date"]),
            description=row.get("description"),
            is_active=bool(row.get("is_active", True)),
            created_at=row.get("created_at"),
        )

    def __str__(self) -> str:
        status = "✅" if self.is_active else "❌"
        return (
            f"{status} {self.name}: {self.amount:.2f} ({self.frequency}) "
            f"- Next: {self.next_due_date}"
        )
