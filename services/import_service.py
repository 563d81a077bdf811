"""
services/import_service.py
--------------------------
Bank-statement import: detect → parse → categorize → preview → confirm.

Nothing is written until the user confirms the preview. Cancelling a
preview has no side effects.
"""

from dataclasses import dataclass, field
from typing import Optional

from cache.query_cache import QueryCache
from config import IMPORT_MAX_FILE_MB, PREVIEW_ROWS
from models.transaction import ParsedTransaction, Transaction
from parsers.detector import parse_file
from repositories.transaction_repo import TransactionRepository
from services.categorizer import Categorizer
from services.transaction_service import transactions_prefix
from utils.date_helpers import format_date, parse_date
from utils.errors import ValidationFailed
from utils.logger import get_logger

logger = get_logger(__name__)

PENDING = "pending"
CONFIRMED = "confirmed"
CANCELLED = "cancelled"


@dataclass
class ImportPreview:
    """
    Parsed, categorized transactions awaiting the user's decision.

    Attributes:
        user_id: Owner of the upload.
        filename: Original file name, for messages.
        transactions: Candidates in source order.
        state: 'pending' until confirmed or cancelled.
    """
    user_id: str
    filename: str
    transactions: list[ParsedTransaction] = field(default_factory=list)
    state: str = PENDING

    @property
    def count(self) -> int:
        return len(self.transactions)

    def sample(self, n: int = PREVIEW_ROWS) -> list[ParsedTransaction]:
        return self.transactions[:n]

    def summary(self, n: int = PREVIEW_ROWS) -> str:
        """Text shown to the user under the Confirm/Cancel buttons."""
        lines = [f"📄 {self.filename}: found {self.count} transaction(s).\n"]
        for tx in self.sample(n):
            sign = "🔴" if tx.type == "expense" else "🟢"
            lines.append(f"  {sign} {tx.date} | {tx.amount:.2f} | {tx.category} | {tx.description}")
        if self.count > n:
            lines.append(f"  … and {self.count - n} more")
        lines.append("\nImport these transactions?")
        return "\n".join(lines)


class ImportService:
    """
    Orchestrates the import pipeline for one uploaded statement.

    Args:
        cache: Shared QueryCache; transaction lists are invalidated after a confirm.
        repo: Transaction data access.
        categorizer: Rule-based categorizer.
    """

    def __init__(self, cache: QueryCache,
                 repo: Optional[TransactionRepository] = None,
                 categorizer: Optional[Categorizer] = None):
        self.cache = cache
        self.repo = repo or TransactionRepository()
        self.categorizer = categorizer or Categorizer()

    async def prepare(self, user_id: str, filename: str, content_type: Optional[str],
                      content: bytes) -> ImportPreview:
        """
        Parse and categorize an upload into a pending preview.

        Raises:
            ValidationFailed: The file is larger than IMPORT_MAX_FILE_MB.
            UnsupportedFormat: No parser understands the file.
            NoTransactionsFound: No row survived validation.
        """
        max_bytes = IMPORT_MAX_FILE_MB * 1024 * 1024
        if len(content) > max_bytes:
            raise ValidationFailed(f"File is too large (max {IMPORT_MAX_FILE_MB} MB)")

        parsed = parse_file(filename, content_type, content)
        await self.categorizer.categorize_batch(user_id, parsed)
        logger.info(f"Prepared import of {len(parsed)} transaction(s) from {filename!r} for user {user_id}")
        return ImportPreview(user_id=user_id, filename=filename, transactions=parsed)

    async def confirm(self, preview: ImportPreview) -> int:
        """
        Persist a pending preview in one batch and return the number saved.

        Every date is checked before anything is written. On a database
        failure the preview stays pending so the user can retry.
        """
        if preview.state != PENDING:
            raise ValidationFailed(f"This import was already {preview.state}")

        rows = [to_transaction(preview.user_id, tx) for tx in preview.transactions]
        saved = await self.repo.bulk_add(rows)
        preview.state = CONFIRMED
        self.cache.invalidate_queries(transactions_prefix(preview.user_id))
        logger.info(f"Imported {len(saved)} transaction(s) for user {preview.user_id}")
        return len(saved)

    def cancel(self, preview: ImportPreview) -> None:
        if preview.state == PENDING:
            preview.state = CANCELLED
            logger.info(f"Import of {preview.filename!r} cancelled by user {preview.user_id}")


def to_transaction(user_id: str, tx: ParsedTransaction) -> Transaction:
    """Convert a candidate to a storable row; the date must parse."""
    parsed_date = parse_date(tx.date)
    if parsed_date is None:
        raise ValidationFailed(f"Unrecognized date {tx.date!r} in row {tx.description!r}")
    return Transaction(
        user_id=user_id,
        date=format_date(parsed_date),
        category=tx.category,
        type=tx.type,
        amount=tx.amount,
        description=tx.description,
    )
