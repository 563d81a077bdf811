import asyncio

import pytest

from cache.mutations import run_mutation
from cache.query_cache import STALE
from repositories.transaction_repo import TransactionRepository
from services.transaction_service import TransactionService
from utils.errors import RemoteCallFailed, ValidationFailed

KEY = ("transactions", "u1", None)


@pytest.fixture
def service(cache, store):
    store.seed("transactions", [
        {"user_id": "u1", "date": "2024-03-01", "category": "Food", "type": "expense",
         "amount": 120.0, "description": "Lunch"},
        {"user_id": "u1", "date": "2024-03-02", "category": "Income", "type": "income",
         "amount": 5000.0, "description": "Freelance"},
    ])
    return TransactionService(cache, TransactionRepository(store))


async def test_list_is_most_recent_first(service):
    txs = await service.list_transactions("u1")
    assert [t.description for t in txs] == ["Freelance", "Lunch"]


async def test_create_shows_optimistic_row_then_invalidates(service, cache):
    await service.list_transactions("u1")

    saved = await service.create("u1", "2024-03-03", "Transport", "expense", 250, "Cab")

    cached = cache.get_query_data(KEY)
    assert cached[0].id.startswith("temp-")
    assert cached[0].description == "Cab"
    assert len(cached) == 3
    assert cache.state(KEY) == STALE
    assert not saved.id.startswith("temp-")


async def test_failed_create_restores_cache(service, cache, store):
    before = await service.list_transactions("u1")
    store.fail = True

    with pytest.raises(RemoteCallFailed):
        await service.create("u1", "2024-03-03", "Transport", "expense", 250, "Cab")

    assert cache.get_query_data(KEY) == before
    assert cache.state(KEY) != STALE


async def test_invalid_fields_never_touch_the_cache(service, cache):
    before = await service.list_transactions("u1")

    with pytest.raises(ValidationFailed):
        await service.create("u1", "03/03/2024", "Food", "expense", 10)
    with pytest.raises(ValidationFailed):
        await service.create("u1", "2024-03-03", "Food", "spending", 10)
    with pytest.raises(ValidationFailed):
        await service.create("u1", "2024-03-03", "Food", "expense", -5)

    assert cache.get_query_data(KEY) == before


async def test_update_patches_cached_row(service, cache, store):
    txs = await service.list_transactions("u1")
    lunch = next(t for t in txs if t.description == "Lunch")

    updated = await service.update("u1", lunch.id, amount="99.5", category="Dining")

    assert (updated.amount, updated.category) == (99.5, "Dining")
    cached = next(t for t in cache.get_query_data(KEY) if t.id == lunch.id)
    assert cached.amount == 99.5


async def test_update_missing_row_rolls_back(service, cache):
    before = await service.list_transactions("u1")

    with pytest.raises(RemoteCallFailed) as exc:
        await service.update("u1", "404", amount=1)

    assert "not found" in exc.value.user_message
    assert cache.get_query_data(KEY) == before


async def test_bulk_delete_counts_existing_rows(service, cache, store):
    txs = await service.list_transactions("u1")

    deleted = await service.bulk_delete("u1", [t.id for t in txs] + ["999"])

    assert deleted == 2
    assert cache.get_query_data(KEY) == []
    assert store.tables["transactions"] == []


async def test_run_mutation_wraps_unexpected_errors(cache):
    cache.set_query_data(("items",), [1, 2])

    async def remote():
        raise ValueError("boom")

    with pytest.raises(RemoteCallFailed):
        await run_mutation(cache, ("items",), lambda old: old + [3], remote)

    assert cache.get_query_data(("items",)) == [1, 2]


async def test_list_started_before_a_create_still_returns_a_list(service):
    reader = asyncio.create_task(service.list_transactions("u1"))
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    await service.create("u1", "2024-03-03", "Transport", "expense", 250, "Cab")
    result = await reader

    assert isinstance(result, list)
    assert {"Lunch", "Freelance"} <= {t.description for t in result}
