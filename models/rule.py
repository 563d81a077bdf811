"""
models/rule.py
--------------
Domain model for user-defined categorization rules.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class CategorizationRule:
    """
    Keyword → category mapping used to auto-label imported transactions.

    Attributes:
        keyword: Case-insensitive substring matched against descriptions.
        category: Label assigned on match.
        priority: Higher priorities are checked first.
        is_active: Inactive rules are ignored by the categorizer.
    """
    user_id: str
    keyword: str
    category: str
    priority: int = 0
    is_active: bool = True
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def matches(self, description: str) -> bool:
        return bool(self.keyword) and self.keyword.lower() in (description or "").lower()

    @classmethod
    def from_row(cls, row: dict) -> "CategorizationRule":
        return cls(
            id=str(row["id"]) if row.get("id") is not None else None,
            user_id=str(row["user_id"]),
            keyword=row["keyword"],
            category=row["category"],
            priority=int(row.get("priority") or 0),
            is_active=bool(row.get("is_active", True)),
            created_at=row.get("created_at"),
        )

    def __str__(self) -> str:
        status = "✅" if self.is_active else "❌"
        return f"{status} \"{self.keyword}\" → {self.category} (priority {self.priority})"
