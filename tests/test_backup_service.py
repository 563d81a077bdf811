import json

import pytest

from cache.query_cache import STALE
from repositories.backup_repo import BackupRepository
from services.backup_service import BACKUP_VERSION, BackupService, parse_backup
from utils.errors import InvalidBackupFormat


@pytest.fixture
def backups(cache, store):
    return BackupService(cache, BackupRepository(store))


def seed_account(store):
    store.seed("transactions", [
        {"user_id": "u1", "date": "2024-03-01", "category": "Food", "type": "expense",
         "amount": 120.0, "description": "Lunch"},
        {"user_id": "u2", "date": "2024-03-01", "category": "Food", "type": "expense",
         "amount": 5.0, "description": "Someone else"},
    ])
    store.seed("budget_goals", [
        {"user_id": "u1", "category": "Food", "target_amount": 5000, "period": "monthly", "is_active": True},
    ])
    store.seed("user_streaks", [{"user_id": "u1", "current_streak": 4, "longest_streak": 9}])


async def test_backup_contains_only_the_users_rows(backups, store):
    seed_account(store)

    document = json.loads((await backups.create_backup("u1")).getvalue())

    assert document["version"] == BACKUP_VERSION
    assert document["userId"] == "u1"
    assert [t["description"] for t in document["data"]["transactions"]] == ["Lunch"]
    assert len(document["data"]["budgetGoals"]) == 1
    assert document["data"]["streaks"][0]["longest_streak"] == 9
    assert document["data"]["portfolioHoldings"] == []


async def test_restore_reowns_rows_and_drops_ids(backups, store):
    seed_account(store)
    raw = (await backups.create_backup("u1")).getvalue()

    counts = await backups.restore_backup("u3", raw)

    assert counts == {"transactions": 1, "budget_goals": 1}
    restored = [r for r in store.tables["transactions"] if r["user_id"] == "u3"]
    assert len(restored) == 1
    assert restored[0]["description"] == "Lunch"
    assert restored[0]["id"] not in {r["id"] for r in store.tables["transactions"] if r["user_id"] == "u1"}
    assert not any(r["user_id"] == "u3" for r in store.tables["user_streaks"])


async def test_restore_invalidates_cached_tables(backups, cache, store):
    cache.set_query_data(("budget_goals", "u1"), [])
    raw = json.dumps({"version": "1.0", "data": {"budgetGoals": [
        {"category": "Travel", "target_amount": 900, "period": "monthly", "is_active": True},
    ]}})

    assert await backups.restore_backup("u1", raw) == {"budget_goals": 1}
    assert cache.state(("budget_goals", "u1")) == STALE


@pytest.mark.parametrize("raw", [
    b"not json",
    b"[]",
    b'{"data": {}}',
    b'{"version": "1.0"}',
    b'{"version": "1.0", "data": {"transactions": "oops"}}',
])
def test_parse_backup_rejects_bad_documents(raw):
    with pytest.raises(InvalidBackupFormat):
        parse_backup(raw)


async def test_invalid_backup_writes_nothing(backups, store):
    with pytest.raises(InvalidBackupFormat):
        await backups.restore_backup("u1", b'{"data": {"transactions": [{"amount": 1}]}}')
    assert store.tables["transactions"] == []


async def test_empty_backup_restores_nothing(backups):
    assert await backups.restore_backup("u1", '{"version": "1.0", "data": {}}') == {}
