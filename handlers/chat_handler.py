"""
handlers/chat_handler.py
------------------------
/ask - questions to the AI financial advisor.
"""

from telegram import Update
from telegram.constants import ChatAction
from telegram.ext import ContextTypes

from config import AI_CHAT_MAX_REQUESTS, AI_CHAT_WINDOW_MINUTES
from security.auth import authorized_only
from security.rate_limiter import rate_limited
from services.container import from_context
from utils.errors import FinanceError
from utils.logger import get_logger

logger = get_logger(__name__)


@authorized_only
@rate_limited("ai-chat", AI_CHAT_MAX_REQUESTS, AI_CHAT_WINDOW_MINUTES)
async def ask_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /ask <question>.

    Example:
        /ask How much did I spend on food this month?
    """
    user = update.effective_user
    question = " ".join(context.args or [])
    if not question.strip():
        await update.message.reply_text(
            "🤖 Ask me anything about your finances.\n"
            "Example: /ask How can I save more each month?"
        )
        return

    await update.message.chat.send_action(ChatAction.TYPING)
    try:
        answer = await from_context(context).ai.ask(str(user.id), question)
    except FinanceError as e:
        logger.warning(f"AI chat failed for user {user.id}: {e}")
        await update.message.reply_text(e.user_message)
        return

    await update.message.reply_text(f"🤖 {answer}")
