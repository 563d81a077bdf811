"""
services/receipt_service.py
---------------------------
Receipt scanning: photo → OCR text → suggested expense → saved on confirm.
"""

import base64
from typing import Awaitable, Callable

from ai import gemini_client
from models.transaction import Transaction
from parsers.receipt import ReceiptData, parse_receipt_text
from services.transaction_service import TransactionService
from utils.errors import ValidationFailed
from utils.logger import get_logger

logger = get_logger(__name__)


class ReceiptService:
    """
    Args:
        transactions: Used to save the confirmed expense.
        ocr_fn: Remote OCR call taking a base64 image; Gemini by default.
    """

    def __init__(self, transactions: TransactionService,
                 ocr_fn: Callable[..., Awaitable[dict]] = gemini_client.extract_text):
        self.transactions = transactions
        self.ocr_fn = ocr_fn

    async def scan(self, image: bytes, mime_type: str = "image/jpeg") -> ReceiptData:
        """OCR a photo and extract the suggested expense."""
        result = await self.ocr_fn(base64.b64encode(image).decode("ascii"), mime_type)
        data = parse_receipt_text(result.get("text", ""))
        logger.info(f"Receipt scanned: {data.amount:.2f} on {data.date} ({data.category})")
        return data

    async def save(self, user_id: str, data: ReceiptData) -> Transaction:
        """Store a confirmed receipt as an expense."""
        if data.amount <= 0:
            raise ValidationFailed("No amount was found on the receipt")
        return await self.transactions.create(
            user_id=user_id,
            date=data.date,
            category=data.category,
            type="expense",
            amount=data.amount,
            description=data.description,
        )

    @staticmethod
    def format(data: ReceiptData) -> str:
        return (
            "🧾 Receipt scanned:\n"
            f"  🏪 {data.description}\n"
            f"  💶 Amount: {data.amount:.2f}\n"
            f"  📅 Date: {data.date}\n"
            f"  📂 Category: {data.category}\n\n"
            "Save this expense?"
        )
