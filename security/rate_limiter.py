"""
security/rate_limiter.py
-------------------------
Per-user, per-endpoint throttling of expensive calls (AI chat, receipt OCR).

A local window answers most checks without a round trip; when it has
expired, the database's ``check_rate_limit`` function decides and the local
window restarts. If that check cannot be reached the request is allowed.
"""

import asyncio
import time
from dataclasses import dataclass
from functools import wraps
from typing import Callable, Optional

from telegram import Update
from telegram.ext import ContextTypes

from db.store import DataStore
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """
    Args:
        store: Data store exposing the ``check_rate_limit`` function.
        clock: Seconds since the epoch; injectable for tests.
    """

    def __init__(self, store: Optional[DataStore] = None, clock: Callable[[], float] = time.time):
        self.store = store or DataStore()
        self.clock = clock
        self._windows: dict[str, _Window] = {}

    async def check(self, user_id: str, endpoint: str, max_requests: int, window_minutes: int) -> bool:
        """Return True if the request may proceed."""
        key = f"{user_id}:{endpoint}"
        now = self.clock()

        window = self._windows.get(key)
        if window and window.reset_at > now:
            if window.count >= max_requests:
                return False
            window.count += 1
            return True

        try:
            allowed = await asyncio.to_thread(self.store.rpc, "check_rate_limit", {
                "_user_id": user_id,
                "_endpoint": endpoint,
                "_max_requests": max_requests,
                "_window_minutes": window_minutes,
            })
        except Exception as e:
            logger.error(f"Rate limit check failed for {key}, allowing: {e}")
            return True

        allowed = bool(allowed)
        # A denied check keeps the user blocked locally until the window ends.
        self._windows[key] = _Window(count=1 if allowed else max_requests, reset_at=now + window_minutes * 60)
        return allowed


_limiter = RateLimiter()


def rate_limited(endpoint: str, max_requests: int, window_minutes: int,
                 limiter: Optional[RateLimiter] = None):
    """
    Decorator that throttles a handler per user for one endpoint.

    Usage:
        @rate_limited("ai-chat", 20, 1)
        async def ask_command(update, context):
            ...

    Behavior:
        - Checks the limiter before running the handler.
        - If exceeded, replies with a warning and skips the handler.
    """
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
            user = update.effective_user
            if not user:
                return

            if not await (limiter or _limiter).check(str(user.id), endpoint, max_requests, window_minutes):
                logger.warning(f"⚠️ Rate limit hit for user {user.id} on {endpoint}")
                await update.effective_message.reply_text(
                    "⚠️ Too many requests. Please wait a moment and try again."
                )
                return

            return await func(update, context, *args, **kwargs)

        return wrapper
    return decorator
