from datetime import date, timedelta

import pytest

from cache.query_cache import FRESH, STALE
from repositories.collection_repo import CollectionRepository
from repositories.recurring_repo import RecurringRepository
from services.recurring_service import RecurringService
from services.transaction_service import ReferenceDataService


@pytest.fixture
def reference(cache, store):
    store.seed("budget_goals", [
        {"user_id": "u1", "category": "Food", "target_amount": 8000, "period": "monthly", "is_active": True},
        {"user_id": "u1", "category": "Travel", "target_amount": 5000, "period": "monthly", "is_active": False},
    ])
    store.seed("portfolio_holdings", [
        {"user_id": "u1", "symbol": "INFY", "quantity": 10, "purchase_price": 1500},
        {"user_id": "u1", "symbol": "TCS", "quantity": 2, "purchase_price": 3500.5},
    ])
    return ReferenceDataService(
        cache,
        goals_repo=CollectionRepository("budget_goals", store),
        holdings_repo=CollectionRepository("portfolio_holdings", store),
        recurring_repo=RecurringRepository(store),
    )


async def test_prefetch_warms_every_reference_key(reference, cache, store):
    await reference.prefetch("u1")

    for key in (("budget_goals", "u1"), ("portfolio_holdings", "u1"), ("recurring_transactions", "u1")):
        assert cache.state(key) == FRESH

    store.fail = True
    assert len(await reference.budget_goals("u1")) == 2
    assert len(await reference.portfolio_holdings("u1")) == 2
    assert await reference.recurring_transactions("u1") == []


async def test_prefetch_failure_is_not_raised(reference, cache, store):
    store.fail = True
    await reference.prefetch("u1")
    assert cache.get_query_data(("budget_goals", "u1")) is None


async def test_goals_summary_lists_active_goals_only(reference):
    text = await reference.goals_summary("u1")

    assert "Food: 8000.00 (monthly)" in text
    assert "Travel" not in text
    assert "No budget goals" in await reference.goals_summary("u2")


async def test_portfolio_summary_totals_cost_basis(reference):
    text = await reference.portfolio_summary("u1")

    assert "INFY: 10 @ 1500.00 = 15000.00" in text
    assert "TCS: 2 @ 3500.50 = 7001.00" in text
    assert "Total invested: 22001.00" in text


async def test_recurring_listing_reads_through_the_cache(reference, cache, store):
    recurring = RecurringService(RecurringRepository(store), cache, reference=reference)
    start = (date.today() + timedelta(days=3)).isoformat()
    await recurring.create("u1", "Netflix", 499, "expense", "monthly", start)

    assert "Netflix" in await recurring.list_active("u1")
    assert cache.state(("recurring_transactions", "u1")) == FRESH

    await recurring.create("u1", "Gym", 1200, "expense", "monthly", start)
    assert cache.state(("recurring_transactions", "u1")) == STALE
    assert "Gym" in await recurring.list_active("u1")
