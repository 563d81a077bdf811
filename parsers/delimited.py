"""
parsers/delimited.py
--------------------
CSV/TSV statements, including bank exports that prepend metadata or
disclaimer rows before the real column header.
"""

import csv
import io

from config import PREAMBLE_SCAN_LINES
from models.transaction import ParsedTransaction
from parsers.columns import find_header_index, is_header_row, map_rows
from utils.logger import get_logger

logger = get_logger(__name__)

DELIMITERS = (",", "\t", ";", "|")


def decode_text(content: bytes | str) -> str:
    """Decode uploaded bytes (UTF-8 with or without BOM, else Latin-1)."""
    if isinstance(content, str):
        return content.lstrip("\ufeff")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def _read_rows(text: str, delimiter: str) -> list[list[str]]:
    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    return [[cell.strip() for cell in row] for row in reader]


def _guess_delimiter(text: str) -> str:
    first_line = next((line for line in text.splitlines() if line.strip()), "")
    counts = {d: first_line.count(d) for d in DELIMITERS}
    best = max(counts, key=counts.get)
    return best if counts[best] > 0 else ","


def _unique_headers(cells: list[str]) -> list[str]:
    seen: dict[str, int] = {}
    headers = []
    for cell in cells:
        name = cell or "column"
        if name in seen:
            seen[name] += 1
            name = f"{name} ({seen[name]})"
        else:
            seen[name] = 1
        headers.append(name)
    return headers


def rows_to_records(rows: list[list], scan_limit: int = PREAMBLE_SCAN_LINES) -> list[dict]:
    """
    Locate the header among the leading rows and zip the rest into dicts.

    Rows before the header (preamble) are discarded; blank rows are skipped.
    """
    non_empty = [r for r in rows if any(str(c).strip() for c in r if c is not None)]
    if not non_empty:
        return []
    header_index = find_header_index(non_empty, scan_limit)
    if header_index:
        logger.info(f"Skipped {header_index} preamble row(s) before the header")
    headers = _unique_headers([str(c).strip() for c in non_empty[header_index]])
    records = []
    for row in non_empty[header_index + 1:]:
        cells = list(row) + [""] * (len(headers) - len(row))
        records.append(dict(zip(headers, cells)))
    return records


def split_rows(text: str) -> list[list[str]]:
    """
    Split delimited text into rows, choosing the delimiter that exposes a
    recognizable header within the scan window.
    """
    for delimiter in DELIMITERS:
        rows = _read_rows(text, delimiter)
        head = [r for r in rows if any(r)][:PREAMBLE_SCAN_LINES]
        if any(len(r) > 1 and is_header_row(r) for r in head):
            return rows
    return _read_rows(text, _guess_delimiter(text))


def parse_delimited(content: bytes | str) -> list[ParsedTransaction]:
    """Parse a delimited statement into candidates, in source order."""
    text = decode_text(content)
    records = rows_to_records(split_rows(text))
    logger.info(f"Delimited parser read {len(records)} data row(s)")
    return map_rows(records)
