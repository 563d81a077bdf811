"""
services/categorizer.py
-----------------------
Assigns a category to each imported transaction.

User rules are tried first (highest priority wins, ties keep the order the
rules were fetched in); descriptions matching no rule fall back to a fixed
keyword table.
"""

from typing import Optional

from models.rule import CategorizationRule
from models.transaction import ParsedTransaction
from repositories.rule_repo import RuleRepository
from utils.errors import ValidationFailed
from utils.logger import get_logger
from utils.validation import limit_length, sanitize_string

logger = get_logger(__name__)

DEFAULT_CATEGORY = "Other"

# Checked in this order; first bucket with a matching keyword wins.
FALLBACK_BUCKETS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Food", ("food", "restaurant", "zomato", "swiggy", "cafe", "coffee")),
    ("Transportation", ("uber", "ola", "transport", "fuel", "petrol")),
    ("Shopping", ("shopping", "amazon", "flipkart")),
    ("Income", ("salary", "bonus", "income")),
    ("Housing", ("rent", "maintenance")),
    ("Utilities", ("electricity", "water", "gas", "internet")),
)


def fallback_category(description: str) -> str:
    text = (description or "").lower()
    for category, keywords in FALLBACK_BUCKETS:
        if any(keyword in text for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def categorize(description: str, rules: list[CategorizationRule]) -> str:
    """
    Pick a category for one description.

    Pure: the same description and rules always give the same result.
    """
    active = sorted((r for r in rules if r.is_active), key=lambda r: r.priority, reverse=True)
    for rule in active:
        if rule.matches(description):
            return rule.category
    return fallback_category(description)


class Categorizer:
    """Categorizes whole import batches and manages the user's rules."""

    def __init__(self, rule_repo: Optional[RuleRepository] = None):
        self.repo = rule_repo or RuleRepository()

    async def categorize_batch(self, user_id: str, txs: list[ParsedTransaction]) -> list[ParsedTransaction]:
        """
        Label every transaction in place, fetching the rules once per batch.
        """
        rules = await self.repo.get_active(user_id)
        for tx in txs:
            tx.category = categorize(tx.description, rules)
        logger.info(f"Categorized {len(txs)} transaction(s) with {len(rules)} rule(s) for user {user_id}")
        return txs

    # ── RULES ─────────────────────────────────────────────

    async def add_rule(self, user_id: str, keyword: str, category: str, priority: int = 0) -> CategorizationRule:
        keyword = limit_length(sanitize_string(keyword), 100)
        category = limit_length(sanitize_string(category), 50)
        if not keyword or not category:
            raise ValidationFailed("Keyword and category are required")
        return await self.repo.add(CategorizationRule(
            user_id=user_id, keyword=keyword, category=category, priority=int(priority),
        ))

    async def list_rules(self, user_id: str) -> str:
        """Formatted list of all rules, highest priority first."""
        rules = await self.repo.get_all(user_id)
        if not rules:
            return "📭 No categorization rules yet. Add one with /addrule keyword category [priority]."
        lines = ["🏷️ Categorization rules:\n"]
        for rule in rules:
            lines.append(f"  #{rule.id} {rule}")
        return "\n".join(lines)

    async def toggle_rule(self, user_id: str, rule_id: str, active: bool) -> bool:
        return await self.repo.set_active(rule_id, user_id, active)

    async def delete_rule(self, user_id: str, rule_id: str) -> bool:
        return await self.repo.delete(rule_id, user_id)
