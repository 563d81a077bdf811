from types import SimpleNamespace

from security.rate_limiter import RateLimiter, rate_limited


async def test_local_window_counts_without_round_trips(store, clock):
    limiter = RateLimiter(store, clock=clock)

    results = [await limiter.check("u1", "ai-chat", 3, 1) for _ in range(4)]

    assert results == [True, True, True, False]
    assert len(store.rpc_calls) == 1
    name, params = store.rpc_calls[0]
    assert name == "check_rate_limit"
    assert params == {"_user_id": "u1", "_endpoint": "ai-chat", "_max_requests": 3, "_window_minutes": 1}


async def test_expired_window_asks_the_server_again(store, clock):
    limiter = RateLimiter(store, clock=clock)
    for _ in range(3):
        await limiter.check("u1", "ai-chat", 3, 1)

    clock.advance(61)

    assert await limiter.check("u1", "ai-chat", 3, 1) is True
    assert len(store.rpc_calls) == 2


async def test_server_denial_blocks_until_window_ends(store, clock):
    store.rpc_result = False
    limiter = RateLimiter(store, clock=clock)

    assert await limiter.check("u1", "receipt-ocr", 10, 1) is False
    assert await limiter.check("u1", "receipt-ocr", 10, 1) is False
    assert len(store.rpc_calls) == 1


async def test_endpoints_and_users_are_separate(store, clock):
    limiter = RateLimiter(store, clock=clock)

    assert await limiter.check("u1", "ai-chat", 1, 1) is True
    assert await limiter.check("u1", "ai-chat", 1, 1) is False
    assert await limiter.check("u1", "receipt-ocr", 1, 1) is True
    assert await limiter.check("u2", "ai-chat", 1, 1) is True


async def test_fails_open_when_check_errors(store, clock):
    store.rpc_result = ConnectionError("database unreachable")
    limiter = RateLimiter(store, clock=clock)

    assert await limiter.check("u1", "ai-chat", 1, 1) is True
    assert await limiter.check("u1", "ai-chat", 1, 1) is True


class FakeMessage:
    def __init__(self):
        self.replies = []

    async def reply_text(self, text, **kwargs):
        self.replies.append(text)


async def test_decorator_skips_handler_when_limited(store, clock):
    limiter = RateLimiter(store, clock=clock)
    calls = []

    @rate_limited("ai-chat", 1, 1, limiter=limiter)
    async def handler(update, context):
        calls.append(update.effective_user.id)

    message = FakeMessage()
    update = SimpleNamespace(effective_user=SimpleNamespace(id=42), effective_message=message)

    await handler(update, None)
    await handler(update, None)

    assert calls == [42]
    assert len(message.replies) == 1
    assert "Too many requests" in message.replies[0]
