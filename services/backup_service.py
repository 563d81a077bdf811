"""
services/backup_service.py
--------------------------
Full-account JSON backup and restore.

Backup document:

    {
      "version": "1.0",
      "exportDate": "<ISO timestamp>",
      "userId": "<owner>",
      "data": {
        "transactions": [...], "budgetGoals": [...], "portfolioHoldings": [...],
        "recurringTransactions": [...], "achievements": [...], "streaks": [...]
      }
    }

Restore re-owns every row to the importing user and lets the database assign
new ids. A document without ``version`` or ``data`` is rejected before
anything is written.
"""

import io
import json
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import UUID

from cache.query_cache import QueryCache
from repositories.backup_repo import BackupRepository
from utils.errors import InvalidBackupFormat
from utils.logger import get_logger

logger = get_logger(__name__)

BACKUP_VERSION = "1.0"

# backup key → table
SECTIONS = {
    "transactions": "transactions",
    "budgetGoals": "budget_goals",
    "portfolioHoldings": "portfolio_holdings",
    "recurringTransactions": "recurring_transactions",
    "achievements": "user_achievements",
    "streaks": "user_streaks",
}

# Columns copied back on restore; achievements and streaks are export-only.
RESTORABLE_COLUMNS = {
    "transactions": ("date", "category", "type", "amount", "description"),
    "budget_goals": ("category", "target_amount", "period", "is_active"),
    "portfolio_holdings": ("symbol", "quantity", "purchase_price"),
    "recurring_transactions": (
        "name", "amount", "type", "category", "frequency", "start_date",
        "end_date", "next_due_date", "description", "is_active",
    ),
}


def _json_default(value):
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    raise TypeError(f"Cannot serialize {type(value).__name__}")


def parse_backup(raw: bytes | str) -> dict:
    """
    Decode and check a backup document.

    Raises:
        InvalidBackupFormat: Not JSON, or missing ``version``/``data``.
    """
    try:
        payload = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise InvalidBackupFormat(f"backup is not valid JSON: {e}") from e
    if not isinstance(payload, dict) or not payload.get("version") or not isinstance(payload.get("data"), dict):
        raise InvalidBackupFormat("backup is missing 'version' or 'data'")
    for key in SECTIONS:
        rows = payload["data"].get(key) or []
        if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
            raise InvalidBackupFormat(f"backup section {key!r} must be a list of objects")
    return payload


def reown_rows(user_id: str, table: str, rows: list[dict]) -> list[dict]:
    """Keep known columns only, drop ids, assign the importing user."""
    columns = RESTORABLE_COLUMNS[table]
    return [
        {"user_id": user_id, **{c: row[c] for c in columns if c in row}}
        for row in rows
    ]


class BackupService:
    """Builds and restores full-account backups."""

    def __init__(self, cache: QueryCache, repo: Optional[BackupRepository] = None):
        self.cache = cache
        self.repo = repo or BackupRepository()

    async def create_backup(self, user_id: str) -> io.BytesIO:
        """Serialize every table of the account into a JSON document."""
        tables = await self.repo.fetch_tables(user_id, list(SECTIONS.values()))
        document = {
            "version": BACKUP_VERSION,
            "exportDate": datetime.now(timezone.utc).isoformat(),
            "userId": user_id,
            "data": {key: tables[table] for key, table in SECTIONS.items()},
        }
        buffer = io.BytesIO(json.dumps(document, default=_json_default, indent=2).encode("utf-8"))
        logger.info(
            f"Built backup for user {user_id}: "
            + ", ".join(f"{k}={len(v)}" for k, v in document["data"].items())
        )
        return buffer

    async def restore_backup(self, user_id: str, raw: bytes | str) -> dict[str, int]:
        """
        Restore a backup into the user's account.

        Returns:
            {table: rows inserted}
        """
        payload = parse_backup(raw)
        batches = []
        for key, table in SECTIONS.items():
            if table not in RESTORABLE_COLUMNS:
                continue
            rows = payload["data"].get(key) or []
            if rows:
                batches.append((table, reown_rows(user_id, table, rows)))
        if not batches:
            return {}

        counts = await self.repo.restore(batches)
        for table in counts:
            self.cache.invalidate_queries((table, user_id))
        logger.info(f"Restored backup v{payload['version']} for user {user_id}: {counts}")
        return counts
