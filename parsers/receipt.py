"""
parsers/receipt.py
------------------
Pulls an amount, date, merchant and category guess out of OCR'd receipt text.
The result is only a suggestion; the user confirms it before anything is saved.
"""

import re
from dataclasses import dataclass

from utils.date_helpers import format_date, parse_date, today

_AMOUNT_PATTERNS = (
    re.compile(r"(?:rs\.?|₹|inr)\s*([\d,]+(?:\.\d{2})?)", re.IGNORECASE),
    re.compile(r"([\d,]+(?:\.\d{2})?)\s*(?:rs\.?|₹|inr)", re.IGNORECASE),
    re.compile(r"total[:\s]*(?:rs\.?|₹)?\s*([\d,]+(?:\.\d{2})?)", re.IGNORECASE),
    re.compile(r"amount[:\s]*(?:rs\.?|₹)?\s*([\d,]+(?:\.\d{2})?)", re.IGNORECASE),
)

_DATE_PATTERNS = (
    re.compile(r"(\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4})"),
    re.compile(r"(\d{2,4}[/\-]\d{1,2}[/\-]\d{1,2})"),
    re.compile(r"(\d{1,2}\s+(?:jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)\s+\d{2,4})", re.IGNORECASE),
)

_MERCHANT_HINTS = ("store", "mart", "shop")
_MERCHANT_NAME_RE = re.compile(r"^[a-zA-Z\s&]+$")

# Checked in order against the whole receipt text.
_CATEGORY_HINTS = (
    ("Food", ("food", "restaurant", "cafe")),
    ("Transportation", ("fuel", "petrol", "gas")),
    ("Healthcare", ("medical", "pharmacy", "hospital")),
    ("Groceries", ("grocery", "supermarket", "mart")),
    ("Shopping", ("shopping", "mall", "store")),
)

DEFAULT_DESCRIPTION = "Receipt expense"


@dataclass
class ReceiptData:
    amount: float
    date: str
    description: str
    category: str


def extract_amount(text: str) -> float:
    for pattern in _AMOUNT_PATTERNS:
        match = pattern.search(text)
        if match:
            return float(match.group(1).replace(",", "") or 0)
    return 0.0


def extract_date(text: str) -> str:
    """First parseable date on the receipt, else today."""
    for pattern in _DATE_PATTERNS:
        match = pattern.search(text)
        if match:
            parsed = parse_date(match.group(1))
            if parsed:
                return format_date(parsed)
    return format_date(today())


def extract_merchant(text: str) -> str:
    lines = [line.strip() for line in text.splitlines() if len(line.strip()) > 2]
    for line in lines[:5]:
        lowered = line.lower()
        if any(hint in lowered for hint in _MERCHANT_HINTS):
            return line
        if 5 < len(line) < 30 and _MERCHANT_NAME_RE.match(line):
            return line
    return DEFAULT_DESCRIPTION


def guess_category(text: str) -> str:
    lowered = text.lower()
    for category, words in _CATEGORY_HINTS:
        if any(word in lowered for word in words):
            return category
    return "Other"


def parse_receipt_text(text: str) -> ReceiptData:
    return ReceiptData(
        amount=extract_amount(text),
        date=extract_date(text),
        description=extract_merchant(text),
        category=guess_category(text),
    )
