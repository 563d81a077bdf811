"""
parsers/spreadsheet.py
----------------------
Excel workbooks (.xlsx via openpyxl, .xls via xlrd). Only the first sheet is read.
"""

import io

import pandas as pd

from models.transaction import ParsedTransaction
from parsers.columns import map_rows
from parsers.delimited import rows_to_records
from utils.logger import get_logger

logger = get_logger(__name__)


def _engine_for(filename: str) -> str | None:
    name = (filename or "").lower()
    if name.endswith(".xls"):
        return "xlrd"
    if name.endswith(".xlsx"):
        return "openpyxl"
    return None


def parse_spreadsheet(content: bytes, filename: str = "") -> list[ParsedTransaction]:
    """
    Parse the first worksheet of a workbook.

    The sheet is read without a header so that preamble rows can be skipped
    exactly as for CSV input. Date cells arrive as Timestamps or serial
    numbers and are normalized by the column mapper.
    """
    frame = pd.read_excel(
        io.BytesIO(content),
        sheet_name=0,
        header=None,
        dtype=object,
        engine=_engine_for(filename),
    )
    frame = frame.where(pd.notna(frame), "")
    rows = frame.values.tolist()
    records = rows_to_records(rows)
    logger.info(f"Spreadsheet parser read {len(records)} data row(s) from the first sheet")
    return map_rows(records)
