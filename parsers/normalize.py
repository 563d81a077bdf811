"""
parsers/normalize.py
--------------------
Row normalizer: amount cleaning, date normalization and the row validity filter.
"""

import math
import numbers
import re
from datetime import date, datetime, timedelta

from config import DESCRIPTION_MAX_LENGTH
from models.transaction import ParsedTransaction
from utils.validation import limit_length, sanitize_file_input

# Spreadsheet serial day 0 in the 1900 date system (Lotus leap-year bug included).
SPREADSHEET_EPOCH = date(1899, 12, 30)

_CURRENCY_WORD_RE = re.compile(r"\b(?:rs|inr)\.?", re.IGNORECASE)
_NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")
_LEADING_NUMBER_RE = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")


def _is_number(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def clean_amount(raw) -> float:
    """
    Parse a currency-like cell into a float.

    Currency words (``Rs.``, ``INR``) are removed, then every character
    that is not a digit, '.' or '-' is dropped, so ``"₹1,234.56 Dr"``
    becomes ``1234.56``. The longest leading number wins
    (``"1.234.5"`` → ``1.234``). Empty or unparsable input yields ``0.0``.
    """
    if raw is None:
        return 0.0
    if _is_number(raw):
        return 0.0 if math.isnan(raw) else float(raw)
    cleaned = _NON_NUMERIC_RE.sub("", _CURRENCY_WORD_RE.sub("", str(raw)))
    match = _LEADING_NUMBER_RE.match(cleaned)
    if not match:
        return 0.0
    return float(match.group(0))


def serial_to_date(serial: float) -> date:
    """Convert a spreadsheet date serial (days since 1899-12-30) to a date."""
    return SPREADSHEET_EPOCH + timedelta(days=int(serial))


def normalize_date(value) -> str:
    """
    Normalize a raw date cell.

    Numeric serials and date objects become ``YYYY-MM-DD``; strings are passed
    through (stripped) for later validation; empty cells become ``""``.
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if _is_number(value):
        if math.isnan(value) or value <= 0:
            return ""
        return serial_to_date(value).isoformat()
    return str(value).strip()


def normalize_description(value) -> str:
    """Sanitize an imported description and cap its length."""
    if value is None:
        return ""
    if _is_number(value) and math.isnan(value):
        return ""
    return limit_length(sanitize_file_input(str(value)), DESCRIPTION_MAX_LENGTH)


def is_valid_row(tx: ParsedTransaction) -> bool:
    """A row survives only with a date, a description and a positive amount."""
    return bool(tx.date) and bool(tx.description) and tx.amount > 0
