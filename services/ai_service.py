"""
services/ai_service.py
----------------------
AI financial advisor chat.

Builds the financial context from the user's recent transactions, sends the
request through the Gemini client with bounded exponential backoff and keeps
the conversation history in chat_conversations.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from ai import gemini_client
from config import AI_MAX_RETRIES, AI_PROVIDER, AI_RETRY_DELAY_MS
from models.transaction import Transaction
from repositories.collection_repo import CollectionRepository
from services.transaction_service import TransactionService
from utils.errors import RemoteCallFailed, ValidationFailed
from utils.logger import get_logger
from utils.validation import sanitize_string

logger = get_logger(__name__)

MESSAGE_MAX_LENGTH = 1000
CONTEXT_TRANSACTIONS = 50
HISTORY_TURNS = 5
TOP_CATEGORIES = 5


def build_financial_data(transactions: list[Transaction]) -> dict:
    """Totals, category breakdown and savings rate over the given transactions."""
    income = sum(t.amount for t in transactions if t.is_income())
    expenses = sum(t.amount for t in transactions if t.is_expense())

    breakdown: dict[str, float] = {}
    for t in transactions:
        if t.is_expense():
            breakdown[t.category] = breakdown.get(t.category, 0) + t.amount
    top = [c for c, _ in sorted(breakdown.items(), key=lambda x: -x[1])[:TOP_CATEGORIES]]

    return {
        "totalIncome": income,
        "totalExpenses": expenses,
        "savingsRate": (income - expenses) / income * 100 if income > 0 else 0.0,
        "topCategories": top,
        "categoryBreakdown": breakdown,
        "recentTransactionsCount": min(len(transactions), 10),
    }


class AIService:
    """
    Chat with the AI advisor.

    Args:
        transactions: Cache-backed transaction access for the context.
        chat_fn: Remote chat call; Gemini by default.
        sleep: Awaitable sleep used between retries.
        max_retries: Retries after the first attempt.
        retry_delay_ms: Base delay; attempt n waits ``retry_delay_ms * 2**n``.
    """

    def __init__(self, transactions: TransactionService,
                 chat_fn: Callable[[dict], Awaitable[dict]] = gemini_client.chat,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                 conversations: Optional[CollectionRepository] = None,
                 profiles: Optional[CollectionRepository] = None,
                 max_retries: int = AI_MAX_RETRIES,
                 retry_delay_ms: int = AI_RETRY_DELAY_MS):
        self.transactions = transactions
        self.chat_fn = chat_fn
        self.sleep = sleep
        self.conversations = conversations or CollectionRepository("chat_conversations")
        self.profiles = profiles or CollectionRepository("profiles")
        self.max_retries = max_retries
        self.retry_delay_ms = retry_delay_ms

    async def send_chat_message(self, request: dict) -> dict:
        """
        Call the chat endpoint, retrying retryable failures.

        At most ``max_retries + 1`` calls are made. Non-retryable failures
        are raised immediately.
        """
        attempt = 0
        while True:
            try:
                return await self.chat_fn(request)
            except RemoteCallFailed as e:
                if not e.retryable or attempt >= self.max_retries:
                    raise
                delay_ms = self.retry_delay_ms * 2 ** attempt
                attempt += 1
                logger.warning(f"AI call failed, retry {attempt}/{self.max_retries} in {delay_ms} ms: {e}")
                await self.sleep(delay_ms / 1000)

    async def ask(self, user_id: str, message: str) -> str:
        """
        Answer one user question with their financial context.

        Raises:
            ValidationFailed: Empty or overlong message.
            RemoteCallFailed: The AI call still failed after all retries.
        """
        text = sanitize_string(message or "")
        if not 1 <= len(text) <= MESSAGE_MAX_LENGTH:
            raise ValidationFailed(f"Message must be between 1 and {MESSAGE_MAX_LENGTH} characters")

        request = {
            "message": text,
            "financialData": await self._financial_data(user_id),
            "userProfile": await self._profile(user_id),
            "conversationHistory": await self.history(user_id),
            "provider": AI_PROVIDER,
        }
        result = await self.send_chat_message(request)
        answer = result["response"]

        try:
            await self.conversations.insert({
                "user_id": user_id,
                "message": text,
                "response": answer,
                "provider": result.get("provider", AI_PROVIDER),
            })
        except RemoteCallFailed as e:
            logger.warning(f"Could not save conversation for user {user_id}: {e}")
        return answer

    async def history(self, user_id: str) -> list[dict]:
        """Last few turns, oldest first."""
        try:
            rows = await self.conversations.get_all(user_id, limit=HISTORY_TURNS)
        except RemoteCallFailed:
            return []
        return [{"message": r["message"], "response": r["response"]} for r in reversed(rows)]

    async def _financial_data(self, user_id: str) -> dict:
        try:
            txs = await self.transactions.list_transactions(user_id, CONTEXT_TRANSACTIONS)
        except RemoteCallFailed as e:
            logger.warning(f"No financial context for user {user_id}: {e}")
            return {}
        return build_financial_data(txs) if txs else {}

    async def _profile(self, user_id: str) -> dict:
        try:
            rows = await self.profiles.get_all(user_id, limit=1)
        except RemoteCallFailed:
            return {}
        return rows[0] if rows else {}
