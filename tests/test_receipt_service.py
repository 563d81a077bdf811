import pytest

from parsers.receipt import ReceiptData
from repositories.transaction_repo import TransactionRepository
from services.receipt_service import ReceiptService
from services.transaction_service import TransactionService
from utils.errors import ValidationFailed


class FakeOCR:
    def __init__(self, text):
        self.text = text
        self.calls = []

    async def __call__(self, image_b64, mime_type):
        self.calls.append((image_b64, mime_type))
        return {"text": self.text}


@pytest.fixture
def transactions(cache, store):
    return TransactionService(cache, TransactionRepository(store))


async def test_scan_sends_base64_image(transactions):
    ocr = FakeOCR("City Cafe\n02/03/2024\nTotal: 340.00")
    receipts = ReceiptService(transactions, ocr_fn=ocr)

    data = await receipts.scan(b"\x89PNG", "image/png")

    assert ocr.calls == [("iVBORw==", "image/png")]
    assert data == ReceiptData(amount=340.0, date="2024-03-02", description="City Cafe", category="Food")


async def test_save_creates_expense(transactions, store):
    receipts = ReceiptService(transactions, ocr_fn=FakeOCR(""))

    tx = await receipts.save("u1", ReceiptData(amount=340.0, date="2024-03-02",
                                               description="City Cafe", category="Food"))

    assert (tx.type, tx.amount, tx.category) == ("expense", 340.0, "Food")
    assert store.tables["transactions"][0]["description"] == "City Cafe"


async def test_save_requires_an_amount(transactions, store):
    receipts = ReceiptService(transactions, ocr_fn=FakeOCR(""))

    with pytest.raises(ValidationFailed):
        await receipts.save("u1", ReceiptData(amount=0.0, date="2024-03-02",
                                              description="Receipt expense", category="Other"))
    assert store.tables["transactions"] == []
