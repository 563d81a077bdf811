import pytest

from models.rule import CategorizationRule
from models.transaction import ParsedTransaction
from repositories.rule_repo import RuleRepository
from services.categorizer import Categorizer, categorize, fallback_category
from utils.errors import ValidationFailed


def rule(keyword, category, priority=0, active=True):
    return CategorizationRule(user_id="u1", keyword=keyword, category=category,
                              priority=priority, is_active=active)


def test_higher_priority_wins_regardless_of_case():
    rules = [rule("uber", "Transport", 5), rule("uber", "Food", 1)]
    assert categorize("UBER EATS order", rules) == "Transport"
    assert categorize("UBER EATS order", list(reversed(rules))) == "Transport"


def test_equal_priority_keeps_fetch_order():
    rules = [rule("eats", "Food", 2), rule("uber", "Transport", 2)]
    assert categorize("Uber Eats", rules) == "Food"


def test_inactive_rules_are_ignored():
    assert categorize("uber ride", [rule("uber", "Travel", 9, active=False)]) == "Transportation"


def test_categorize_is_pure():
    rules = [rule("rent", "Housing", 1), rule("flat", "Home", 3)]
    before = list(rules)
    first = categorize("Flat rent March", rules)
    second = categorize("Flat rent March", rules)
    assert first == second == "Home"
    assert rules == before


@pytest.mark.parametrize("description, category", [
    ("Coffee Shop", "Food"),
    ("Swiggy order 1234", "Food"),
    ("Petrol pump", "Transportation"),
    ("Amazon.in purchase", "Shopping"),
    ("SALARY MARCH", "Income"),
    ("Electricity bill", "Utilities"),
    ("Transfer to savings", "Other"),
])
def test_fallback_buckets(description, category):
    assert fallback_category(description) == category


async def test_categorize_batch_uses_stored_rules(store):
    store.seed("categorization_rules", [
        {"user_id": "u1", "keyword": "netflix", "category": "Entertainment", "priority": 1, "is_active": True},
        {"user_id": "u2", "keyword": "coffee", "category": "Treats", "priority": 1, "is_active": True},
    ])
    categorizer = Categorizer(RuleRepository(store))
    txs = [
        ParsedTransaction(date="2024-01-01", description="NETFLIX.COM", amount=499.0, type="expense"),
        ParsedTransaction(date="2024-01-02", description="Coffee Shop", amount=80.0, type="expense"),
    ]

    await categorizer.categorize_batch("u1", txs)

    assert [t.category for t in txs] == ["Entertainment", "Food"]


async def test_add_rule_sanitizes_and_requires_fields(store):
    categorizer = Categorizer(RuleRepository(store))

    saved = await categorizer.add_rule("u1", " <uber> ", "Transportation", 5)
    assert (saved.keyword, saved.category, saved.priority) == ("uber", "Transportation", 5)

    with pytest.raises(ValidationFailed):
        await categorizer.add_rule("u1", "   ", "Food")
