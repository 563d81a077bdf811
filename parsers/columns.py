"""
parsers/columns.py
------------------
Column mapper: resolves heterogeneous statement headers to semantic fields
through ranked synonym lists, then builds a ParsedTransaction from one row.
"""

from typing import Optional

from models.transaction import ParsedTransaction
from parsers.normalize import (
    clean_amount,
    is_valid_row,
    normalize_date,
    normalize_description,
)
from utils.logger import get_logger

logger = get_logger(__name__)

# Listed in priority order; the first synonym with a non-empty cell wins.
SYNONYMS: dict[str, tuple[str, ...]] = {
    "date": ("post date", "date", "transaction date", "value date", "posting date", "txn date"),
    "description": ("narration", "description", "transaction details", "particulars", "remarks", "details"),
    "debit": ("debit", "withdrawal", "withdrawal amt", "debit amt"),
    "credit": ("credit", "deposit", "deposit amt", "credit amt"),
    "amount": ("amount", "transaction amount", "txn amount"),
}

DATE_HEADER_TOKENS = ("date", "post date")
AMOUNT_HEADER_TOKENS = SYNONYMS["debit"] + SYNONYMS["credit"] + SYNONYMS["amount"]


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and value != value:  # NaN
        return True
    return str(value).strip() == ""


def _normalize_key(key) -> str:
    return " ".join(str(key).strip().lower().replace(".", " ").replace("_", " ").split())


def resolve_column(row: dict, field: str) -> Optional[object]:
    """
    Return the raw cell for a semantic field, or None.

    For each synonym in priority order, a header equal to it is preferred over
    a header merely containing it; the first non-empty cell wins.
    """
    keys = [(key, _normalize_key(key)) for key in row]
    for synonym in SYNONYMS[field]:
        exact = [key for key, norm in keys if norm == synonym]
        partial = [key for key, norm in keys if norm != synonym and synonym in norm]
        for key in exact + partial:
            value = row[key]
            if not _is_blank(value):
                return value
    return None


def resolve_amount(row: dict) -> tuple[float, str]:
    """
    Resolve (amount, type) with debit > credit > signed generic amount precedence.
    """
    debit = clean_amount(resolve_column(row, "debit"))
    if debit > 0:
        return debit, "expense"
    credit = clean_amount(resolve_column(row, "credit"))
    if credit > 0:
        return credit, "income"
    signed = clean_amount(resolve_column(row, "amount"))
    if signed == 0:
        return 0.0, "expense"
    return abs(signed), "expense" if signed < 0 else "income"


def map_row(row: dict) -> Optional[ParsedTransaction]:
    """Build a ParsedTransaction from one row; None if it fails validation."""
    amount, tx_type = resolve_amount(row)
    tx = ParsedTransaction(
        date=normalize_date(resolve_column(row, "date")),
        description=normalize_description(resolve_column(row, "description")),
        amount=amount,
        type=tx_type,
    )
    if not is_valid_row(tx):
        logger.debug(f"Dropped invalid row: {row}")
        return None
    return tx


def map_rows(rows) -> list[ParsedTransaction]:
    """Map rows in source order, dropping invalid ones."""
    parsed = []
    dropped = 0
    for row in rows:
        tx = map_row(row)
        if tx is None:
            dropped += 1
            continue
        parsed.append(tx)
    if dropped:
        logger.info(f"Dropped {dropped} invalid row(s), kept {len(parsed)}")
    return parsed


def is_header_row(cells) -> bool:
    """True when a row carries both a date-like and an amount-like header token."""
    tokens = [_normalize_key(c) for c in cells if not _is_blank(c)]
    has_date = any(t in DATE_HEADER_TOKENS or "date" in t for t in tokens)
    has_amount = any(
        any(word in t for word in AMOUNT_HEADER_TOKENS) for t in tokens
    )
    return has_date and has_amount


def find_header_index(rows, scan_limit: int) -> int:
    """Index of the true header within the first ``scan_limit`` rows, else 0."""
    for index, cells in enumerate(rows[:scan_limit]):
        if is_header_row(cells):
            return index
    return 0
