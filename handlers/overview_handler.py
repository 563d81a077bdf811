"""
handlers/overview_handler.py
----------------------------
Read-only views over the reference data: /goals and /portfolio.
"""

from telegram import Update
from telegram.ext import ContextTypes

from security.auth import authorized_only
from services.container import from_context
from utils.errors import FinanceError
from utils.logger import get_logger

logger = get_logger(__name__)


@authorized_only
async def goals_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /goals - list active budget goals."""
    user = update.effective_user
    try:
        msg = await from_context(context).reference.goals_summary(str(user.id))
    except FinanceError as e:
        msg = e.user_message
    await update.message.reply_text(msg)


@authorized_only
async def portfolio_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /portfolio - list holdings and total invested."""
    user = update.effective_user
    try:
        msg = await from_context(context).reference.portfolio_summary(str(user.id))
    except FinanceError as e:
        logger.warning(f"Portfolio view failed for user {user.id}: {e}")
        msg = e.user_message
    await update.message.reply_text(msg)
