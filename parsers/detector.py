"""
parsers/detector.py
-------------------
Picks a parser for an uploaded statement and runs it.

Detection looks at the file extension and declared content type first and
only falls back to sniffing the content when both are inconclusive.
"""

from enum import Enum

from models.transaction import ParsedTransaction
from parsers.delimited import parse_delimited
from parsers.json_parser import parse_json
from parsers.spreadsheet import parse_spreadsheet
from parsers.text_parser import parse_text
from utils.errors import NoTransactionsFound, UnsupportedFormat
from utils.logger import get_logger

logger = get_logger(__name__)


class ImportFormat(str, Enum):
    DELIMITED = "delimited"
    SPREADSHEET = "spreadsheet"
    JSON = "json"
    TEXT = "text"


_EXTENSIONS = {
    ".csv": ImportFormat.DELIMITED,
    ".tsv": ImportFormat.DELIMITED,
    ".xlsx": ImportFormat.SPREADSHEET,
    ".xls": ImportFormat.SPREADSHEET,
    ".json": ImportFormat.JSON,
    ".txt": ImportFormat.TEXT,
}

_CONTENT_TYPES = {
    "text/csv": ImportFormat.DELIMITED,
    "text/tab-separated-values": ImportFormat.DELIMITED,
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": ImportFormat.SPREADSHEET,
    "application/vnd.ms-excel": ImportFormat.SPREADSHEET,
    "application/json": ImportFormat.JSON,
    "text/plain": ImportFormat.TEXT,
}

# Workbook signatures: zip container (.xlsx) and OLE2 compound file (.xls).
_SPREADSHEET_MAGIC = (b"PK\x03\x04", b"\xd0\xcf\x11\xe0")


def _sniff(content: bytes) -> ImportFormat:
    if content.startswith(_SPREADSHEET_MAGIC):
        return ImportFormat.SPREADSHEET
    if b"\x00" in content[:1024]:
        raise UnsupportedFormat("binary content with no known signature")
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise UnsupportedFormat("content is not valid text") from e
    stripped = text.lstrip()
    if stripped[:1] in ("[", "{"):
        return ImportFormat.JSON
    first_line = next((line for line in text.splitlines() if line.strip()), "")
    if "," in first_line:
        return ImportFormat.DELIMITED
    return ImportFormat.TEXT


def detect_format(filename: str, content_type: str | None, content: bytes) -> ImportFormat:
    """
    Decide which parser handles the upload.

    Raises:
        UnsupportedFormat: The content is binary and not a workbook.
    """
    name = (filename or "").lower()
    for extension, fmt in _EXTENSIONS.items():
        if name.endswith(extension):
            return fmt
    mime = (content_type or "").split(";")[0].strip().lower()
    if mime in _CONTENT_TYPES:
        return _CONTENT_TYPES[mime]
    fmt = _sniff(content)
    logger.info(f"Sniffed format {fmt.value} for {filename!r}")
    return fmt


def parse_file(filename: str, content_type: str | None, content: bytes) -> list[ParsedTransaction]:
    """
    Detect the format and parse the upload into valid candidates.

    Raises:
        UnsupportedFormat: Unknown format or content the parser cannot read.
        NoTransactionsFound: The parser ran but no row survived validation.
    """
    fmt = detect_format(filename, content_type, content)
    try:
        if fmt is ImportFormat.DELIMITED:
            parsed = parse_delimited(content)
        elif fmt is ImportFormat.SPREADSHEET:
            parsed = parse_spreadsheet(content, filename)
        elif fmt is ImportFormat.JSON:
            parsed = parse_json(content)
        else:
            parsed = parse_text(content)
    except Exception as e:
        logger.warning(f"Failed to parse {filename!r} as {fmt.value}: {e}")
        raise UnsupportedFormat(f"{fmt.value} parser failed: {e}") from e

    if not parsed:
        raise NoTransactionsFound(f"no valid rows in {filename!r}")
    logger.info(f"Parsed {len(parsed)} transaction(s) from {filename!r} ({fmt.value})")
    return parsed
