"""
utils/validation.py
-------------------
Input sanitization and validation helpers.
Used before any write so that bad input never reaches the database.
"""

import math
import re
from datetime import date

from config import DESCRIPTION_MAX_LENGTH
from utils.errors import ValidationFailed

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_EVENT_HANDLER_RE = re.compile(r"on\w+=", re.IGNORECASE)
_JS_PROTOCOL_RE = re.compile(r"javascript:", re.IGNORECASE)


def sanitize_string(value: str) -> str:
    """Strip angle brackets, `javascript:` and inline event handlers."""
    value = re.sub(r"[<>]", "", value or "")
    value = _JS_PROTOCOL_RE.sub("", value)
    value = _EVENT_HANDLER_RE.sub("", value)
    return value.strip()


def sanitize_file_input(value: str) -> str:
    """Sanitize a cell read from an imported file (quotes, formula injection)."""
    value = re.sub(r"[<>'\"]", "", value or "")
    value = re.sub(r"^\s*=", "", value)
    return value.strip()


def limit_length(value: str, max_length: int = DESCRIPTION_MAX_LENGTH) -> str:
    return value[:max_length]


def is_valid_amount(amount) -> bool:
    """True for finite, non-negative numbers (or numeric strings)."""
    try:
        num = float(amount)
    except (TypeError, ValueError):
        return False
    return math.isfinite(num) and num >= 0


def is_valid_date(value: str) -> bool:
    """True for a real calendar date in YYYY-MM-DD form."""
    if not isinstance(value, str) or not _ISO_DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def require_amount(amount) -> float:
    if not is_valid_amount(amount):
        raise ValidationFailed(f"Invalid amount: {amount!r}")
    return float(amount)


def require_date(value: str) -> str:
    if not is_valid_date(value):
        raise ValidationFailed(f"Invalid date: {value!r} (expected YYYY-MM-DD)")
    return value


def require_type(tx_type: str) -> str:
    if tx_type not in ("income", "expense"):
        raise ValidationFailed(f"Invalid type: {tx_type!r} (expected income or expense)")
    return tx_type


def clean_description(value: str | None) -> str | None:
    """Sanitize and cap a free-text description; empty → None."""
    if value is None:
        return None
    cleaned = limit_length(sanitize_string(value))
    return cleaned or None
