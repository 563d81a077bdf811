import pytest

from models.transaction import Transaction
from repositories.collection_repo import CollectionRepository
from repositories.transaction_repo import TransactionRepository
from services.ai_service import AIService, build_financial_data
from services.transaction_service import TransactionService
from utils.errors import RemoteCallFailed, ValidationFailed


class FakeChat:
    """Fails the first ``failures`` calls, then answers."""

    def __init__(self, failures=0, retryable=True):
        self.failures = failures
        self.retryable = retryable
        self.requests = []

    async def __call__(self, request):
        self.requests.append(request)
        if len(self.requests) <= self.failures:
            raise RemoteCallFailed("upstream busy", retryable=self.retryable)
        return {"response": "Spend less on food.", "provider": "gemini"}


class FakeSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def make_service(cache, store):
    def make(chat, sleep=None, max_retries=3):
        return AIService(
            TransactionService(cache, TransactionRepository(store)),
            chat_fn=chat,
            sleep=sleep or FakeSleep(),
            conversations=CollectionRepository("chat_conversations", store),
            profiles=CollectionRepository("profiles", store),
            max_retries=max_retries,
            retry_delay_ms=1000,
        )
    return make


async def test_retries_with_exponential_backoff(make_service):
    chat, sleep = FakeChat(failures=2), FakeSleep()
    service = make_service(chat, sleep)

    result = await service.send_chat_message({"message": "hi"})

    assert result["response"] == "Spend less on food."
    assert len(chat.requests) == 3
    assert sleep.delays == [1.0, 2.0]


async def test_gives_up_after_max_retries(make_service):
    chat, sleep = FakeChat(failures=10), FakeSleep()
    service = make_service(chat, sleep, max_retries=3)

    with pytest.raises(RemoteCallFailed):
        await service.send_chat_message({"message": "hi"})

    assert len(chat.requests) == 4
    assert sleep.delays == [1.0, 2.0, 4.0]


async def test_non_retryable_error_is_raised_at_once(make_service):
    chat, sleep = FakeChat(failures=1, retryable=False), FakeSleep()
    service = make_service(chat, sleep)

    with pytest.raises(RemoteCallFailed):
        await service.send_chat_message({"message": "hi"})

    assert len(chat.requests) == 1
    assert sleep.delays == []


async def test_ask_sends_context_and_saves_conversation(make_service, store):
    store.seed("transactions", [
        {"user_id": "u1", "date": "2024-03-01", "category": "Income", "type": "income",
         "amount": 1000.0, "description": "Salary"},
        {"user_id": "u1", "date": "2024-03-02", "category": "Food", "type": "expense",
         "amount": 250.0, "description": "Dinner"},
    ])
    store.seed("chat_conversations", [{"user_id": "u1", "message": "earlier", "response": "reply"}])
    chat = FakeChat()
    service = make_service(chat)

    answer = await service.ask("u1", "How am I doing?")

    assert answer == "Spend less on food."
    request = chat.requests[0]
    assert request["message"] == "How am I doing?"
    assert request["financialData"]["totalIncome"] == 1000.0
    assert request["financialData"]["savingsRate"] == pytest.approx(75.0)
    assert request["conversationHistory"] == [{"message": "earlier", "response": "reply"}]
    assert request["provider"] == "gemini"
    assert store.tables["chat_conversations"][-1]["message"] == "How am I doing?"


@pytest.mark.parametrize("message", ["", "   ", "x" * 1001])
async def test_ask_validates_message_length(make_service, message):
    chat = FakeChat()
    service = make_service(chat)

    with pytest.raises(ValidationFailed):
        await service.ask("u1", message)
    assert chat.requests == []


def test_build_financial_data():
    txs = [
        Transaction(user_id="u1", date="2024-03-01", category="Income", type="income", amount=2000.0),
        Transaction(user_id="u1", date="2024-03-02", category="Food", type="expense", amount=300.0),
        Transaction(user_id="u1", date="2024-03-03", category="Rent", type="expense", amount=1000.0),
        Transaction(user_id="u1", date="2024-03-04", category="Food", type="expense", amount=200.0),
    ]

    data = build_financial_data(txs)

    assert data["totalExpenses"] == 1500.0
    assert data["savingsRate"] == pytest.approx(25.0)
    assert data["topCategories"] == ["Rent", "Food"]
    assert data["categoryBreakdown"] == {"Food": 500.0, "Rent": 1000.0}
    assert data["recentTransactionsCount"] == 4


def test_no_income_means_zero_savings_rate():
    tx = Transaction(user_id="u1", date="2024-03-01", category="Food", type="expense", amount=10.0)
    assert build_financial_data([tx])["savingsRate"] == 0.0
