"""
services/export_service.py
---------------------------
Generates CSV and Excel exports of a month's transactions.
"""

import io
from typing import Optional

import pandas as pd

from models.transaction import Transaction
from repositories.transaction_repo import TransactionRepository
from utils.date_helpers import month_bounds
from utils.logger import get_logger

logger = get_logger(__name__)

COLUMNS = ["Date", "Type", "Amount", "Category", "Description"]


def transactions_frame(txs: list[Transaction]) -> pd.DataFrame:
    data = [
        {
            "Date": t.date,
            "Type": "Expense" if t.is_expense() else "Income",
            "Amount": t.amount,
            "Category": t.category,
            "Description": t.description or "",
        }
        for t in txs
    ]
    return pd.DataFrame(data, columns=COLUMNS)


class ExportService:
    """Generates downloadable financial reports in CSV and Excel formats."""

    def __init__(self, repo: Optional[TransactionRepository] = None):
        self.repo = repo or TransactionRepository()

    async def _month(self, user_id: str, year: int, month: int) -> list[Transaction]:
        start, end = month_bounds(year, month)
        return await self.repo.get_by_date_range(user_id, start, end)

    async def export_month_csv(self, user_id: str, year: int, month: int) -> io.BytesIO:
        """
        Export a month's transactions as a CSV file.

        Args:
            user_id: Owner of the data.
            year: Year number.
            month: Month number (1-12).

        Returns:
            A BytesIO buffer containing the CSV data.
        """
        df = transactions_frame(await self._month(user_id, year, month))
        buffer = io.BytesIO()
        df.to_csv(buffer, index=False, encoding="utf-8-sig")
        buffer.seek(0)
        logger.info(f"Exported {len(df)} records as CSV for user {user_id}")
        return buffer

    async def export_month_excel(self, user_id: str, year: int, month: int) -> io.BytesIO:
        """
        Export a month's transactions as an Excel (.xlsx) file with a
        per-category summary sheet.
        """
        df = transactions_frame(await self._month(user_id, year, month))

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Transactions", index=False)

            if not df.empty:
                expenses = df[df["Type"] == "Expense"]
                summary = expenses.groupby("Category")["Amount"].sum().reset_index()
                summary.columns = ["Category", "Total"]
                summary.to_excel(writer, sheet_name="Summary", index=False)

        buffer.seek(0)
        logger.info(f"Exported {len(df)} records as Excel for user {user_id}")
        return buffer
