"""
parsers/text_parser.py
----------------------
Free-text statements, matched line by line against a small set of layouts:

    {date} {description} {amount}
    {description} {amount} {date}
    {amount} {description} {date}

Lines matching none of them are ignored.
"""

import re

from models.transaction import ParsedTransaction
from parsers.delimited import decode_text
from parsers.normalize import clean_amount, is_valid_row, normalize_description
from utils.logger import get_logger

logger = get_logger(__name__)

_DATE = r"(?P<date>\d{4}[-/.]\d{1,2}[-/.]\d{1,2}|\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4}|\d{1,2}[ -][A-Za-z]{3}[ -]\d{2,4})"
_AMOUNT = r"(?P<amount>[-+]?\s?(?:Rs\.?|INR|₹|\$|€|£)?\s?[-+]?\d[\d,]*(?:\.\d+)?)(?:\s?(?P<marker>Cr|Dr|CR|DR))?"
_DESC = r"(?P<description>.+?)"

LINE_PATTERNS = (
    re.compile(rf"^{_DATE}\s+{_DESC}\s+{_AMOUNT}$"),
    re.compile(rf"^{_DESC}\s+{_AMOUNT}\s+{_DATE}$"),
    re.compile(rf"^{_AMOUNT}\s+{_DESC}\s+{_DATE}$"),
)


def parse_line(line: str) -> ParsedTransaction | None:
    """Match one line against the layouts in order; None if nothing matches."""
    text = line.strip()
    if not text:
        return None
    for pattern in LINE_PATTERNS:
        match = pattern.match(text)
        if not match:
            continue
        raw_amount = match.group("amount")
        signed = clean_amount(raw_amount)
        marker = (match.group("marker") or "").lower()
        if marker == "dr":
            tx_type = "expense"
        elif marker == "cr":
            tx_type = "income"
        else:
            tx_type = "expense" if signed < 0 else "income"
        tx = ParsedTransaction(
            date=match.group("date"),
            description=normalize_description(match.group("description")),
            amount=abs(signed),
            type=tx_type,
        )
        return tx if is_valid_row(tx) else None
    return None


def parse_text(content: bytes | str) -> list[ParsedTransaction]:
    """Parse a plain-text statement, keeping matching lines in order."""
    lines = decode_text(content).splitlines()
    parsed = [tx for tx in (parse_line(line) for line in lines) if tx is not None]
    logger.info(f"Text parser matched {len(parsed)} of {len(lines)} line(s)")
    return parsed
