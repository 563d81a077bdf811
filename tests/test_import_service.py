import json

import pytest

from cache.query_cache import STALE
from models.transaction import ParsedTransaction
from repositories.rule_repo import RuleRepository
from repositories.transaction_repo import TransactionRepository
from services.categorizer import Categorizer
from services.import_service import CANCELLED, CONFIRMED, ImportPreview, ImportService
from services.transaction_service import TransactionService
from utils.errors import ValidationFailed


@pytest.fixture
def imports(cache, store):
    return ImportService(cache, TransactionRepository(store), Categorizer(RuleRepository(store)))


def statement(valid: int, invalid_rows: list[str]) -> bytes:
    lines = ["Date,Description,Amount"]
    lines += [f"2024-02-{i % 28 + 1:02d},Purchase {i},-{i + 1}.50" for i in range(valid)]
    lines += invalid_rows
    return "\n".join(lines).encode("utf-8")


INVALID = [
    "2024-01-10,,100",
    "2024-01-11,Nothing,0",
    ",No date,50",
    "2024-01-12,Bad amount,abc",
    "2024-01-13,Zero,0.00",
]


async def test_bulk_import_counts_only_valid_rows(imports, store):
    preview = await imports.prepare("u1", "feb.csv", "text/csv", statement(120, INVALID))

    assert preview.count == 120
    assert len(preview.sample()) == 10
    assert "found 120 transaction(s)" in preview.summary()

    assert await imports.confirm(preview) == 120
    assert preview.state == CONFIRMED
    assert len(store.tables["transactions"]) == 120
    assert store.tables["transactions"][0]["description"] == "Purchase 0"


async def test_json_upload_is_categorized(imports):
    content = json.dumps([{"amount": -45.5, "date": "2024-03-01", "description": "Coffee Shop"}]).encode()

    preview = await imports.prepare("u1", "export.json", None, content)

    assert preview.transactions == [
        ParsedTransaction(date="2024-03-01", description="Coffee Shop", amount=45.5,
                          type="expense", category="Food"),
    ]


async def test_nothing_is_written_before_confirm_or_after_cancel(imports, store):
    preview = await imports.prepare("u1", "feb.csv", "text/csv", statement(3, []))
    imports.cancel(preview)

    assert preview.state == CANCELLED
    assert store.tables["transactions"] == []
    with pytest.raises(ValidationFailed):
        await imports.confirm(preview)


async def test_confirm_twice_is_rejected(imports, store):
    preview = await imports.prepare("u1", "feb.csv", "text/csv", statement(2, []))
    await imports.confirm(preview)

    with pytest.raises(ValidationFailed):
        await imports.confirm(preview)
    assert len(store.tables["transactions"]) == 2


async def test_dates_are_stored_as_iso(imports, store):
    content = b"Post Date,Narration,Debit,Credit\n05/03/2024,Rent,15000,\n"
    preview = await imports.prepare("u1", "hdfc.csv", None, content)
    await imports.confirm(preview)

    row = store.tables["transactions"][0]
    assert (row["date"], row["type"], row["category"]) == ("2024-03-05", "expense", "Housing")


async def test_unparseable_date_blocks_the_whole_batch(imports, store):
    preview = ImportPreview(user_id="u1", filename="x.txt", transactions=[
        ParsedTransaction(date="2024-03-01", description="Ok", amount=1.0, type="expense"),
        ParsedTransaction(date="32/13/2024", description="Bad", amount=1.0, type="expense"),
    ])

    with pytest.raises(ValidationFailed):
        await imports.confirm(preview)
    assert store.tables["transactions"] == []


async def test_confirm_invalidates_transaction_lists(imports, cache, store):
    transactions = TransactionService(cache, TransactionRepository(store))
    await transactions.list_transactions("u1", 10)

    preview = await imports.prepare("u1", "feb.csv", "text/csv", statement(1, []))
    await imports.confirm(preview)

    assert cache.state(("transactions", "u1", 10)) == STALE


async def test_oversized_file_is_rejected(imports):
    with pytest.raises(ValidationFailed):
        await imports.prepare("u1", "big.csv", "text/csv", b"x" * (10 * 1024 * 1024 + 1))
