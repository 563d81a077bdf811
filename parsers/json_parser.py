"""
parsers/json_parser.py
----------------------
JSON statements: an array of objects, a {"transactions": [...]} or
{"data": [...]} wrapper, or a single object.
"""

import json

from models.transaction import ParsedTransaction
from parsers.columns import map_rows
from parsers.delimited import decode_text
from utils.logger import get_logger

logger = get_logger(__name__)

WRAPPER_KEYS = ("transactions", "data")


def extract_records(payload) -> list[dict]:
    """Unwrap the supported JSON shapes into a list of row dicts."""
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict):
        wrapped = next(
            (payload[k] for k in WRAPPER_KEYS if isinstance(payload.get(k), list)), None
        )
        items = wrapped if wrapped is not None else [payload]
    else:
        raise ValueError(f"Unsupported JSON root: {type(payload).__name__}")
    return [item for item in items if isinstance(item, dict)]


def parse_json(content: bytes | str) -> list[ParsedTransaction]:
    """Parse a JSON statement; raises ValueError on malformed JSON."""
    payload = json.loads(decode_text(content))
    records = extract_records(payload)
    logger.info(f"JSON parser read {len(records)} record(s)")
    return map_rows(records)
