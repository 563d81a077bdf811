"""
models/transaction.py
---------------------
Domain models for income/expense transactions.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class Transaction:
    """
    Represents a single persisted financial transaction.

    Attributes:
        id: Server-assigned identifier (a ``temp-…`` id while optimistic).
        user_id: Opaque id of the owning user.
        date: Calendar date, ISO 8601 ``YYYY-MM-DD``.
        category: Free-form label, usually one of the suggested categories.
        type: Either 'expense' or 'income'.
        amount: Non-negative magnitude; direction is carried by ``type``.
        description: Optional note, at most 200 characters.
        created_at / updated_at: Server timestamps.
    """
    user_id: str
    date: str
    category: str
    type: str  # 'expense' | 'income'
    amount: float
    description: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_expense(self) -> bool:
        """Returns True if this is an expense transaction."""
        return self.type == "expense"

    def is_income(self) -> bool:
        """Returns True if this is an income transaction."""
        return self.type == "income"

    def to_insert(self) -> dict:
        """Row payload for an insert; server-managed fields are left out."""
        return {
            "user_id": self.user_id,
            "date": self.date,
            "category": self.category,
            "type": self.type,
            "amount": self.amount,
            "description": self.description,
        }

    @classmethod
    def from_row(cls, row: dict) -> "Transaction":
        return cls(
            id=str(row["id"]) if row.get("id") is not None else None,
            user_id=str(row["user_id"]),
            date=str(row["date"]),
            category=row.get("category") or "Other",
            type=row["type"],
            amount=float(row["amount"]),
            description=row.get("description"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def __str__(self) -> str:
        sign = "-" if self.is_expense() else "+"
        return f"{sign}{self.amount:.2f} | {self.category} | {self.date}"


@dataclass
class ParsedTransaction:
    """
    A candidate transaction produced by a file parser.

    Lives only between parsing and user confirmation. ``date`` is still the
    raw statement string; the categorizer fills ``category`` in place.
    """
    date: str
    description: str
    amount: float
    type: str
    category: str = field(default="Other")

    def to_dict(self) -> dict:
        return asdict(self)
