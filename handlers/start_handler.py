"""
handlers/start_handler.py
--------------------------
Handles /start, /help and /myid.
Starting the bot also warms the reference-data cache for the user.
"""

from telegram import Update
from telegram.ext import ContextTypes

from security.auth import authorized_only
from services.container import from_context
from utils.logger import get_logger

logger = get_logger(__name__)

HELP_TEXT = """
🤖 *Welcome to Smart Saver!*
Your personal finance assistant 💰

*📥 Import a bank statement:*
Send a CSV, TSV, Excel, JSON or TXT file. You'll get a preview and can
confirm or cancel before anything is saved.

*💸 Transactions:*
/add - add a transaction (`/add expense | 250 | Food | Lunch`)
/list - show recent transactions
/edit - edit a transaction (`/edit <id> amount=75 category=Food`)
/delete - delete one or more transactions (`/delete <id> [id …]`)

*🏷️ Categorization rules:*
/rules - list rules
/addrule - add a rule (`/addrule uber | Transportation | 5`)
/togglerule - enable/disable a rule
/deleterule - delete a rule

*🔁 Recurring:*
/recurring - list active recurring transactions
/add\\_recurring - add one (`/add_recurring Netflix | 499 | monthly | 2024-01-15`)
/toggle\\_recurring - enable/disable one
/delete\\_recurring - delete one

*📊 Overview:*
/goals - budget goals
/portfolio - portfolio holdings

*🤖 AI & receipts:*
/ask - ask the AI financial advisor
Send a receipt photo to scan it.

*💾 Data:*
/backup - full JSON backup
/restore - restore a JSON backup
/export\\_csv - export this month as CSV
/export\\_excel - export this month as Excel
/myid - show your Telegram ID
"""


@authorized_only
async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command - show welcome message and warm the cache."""
    user = update.effective_user
    logger.info(f"User {user.id} ({user.first_name}) started the bot.")

    await update.message.reply_text(
        f"Hi {user.first_name}! 👋\n"
        f"I track your income and expenses and import your bank statements.\n\n"
        f"Type /help to see everything I can do."
    )
    await from_context(context).reference.prefetch(str(user.id))


@authorized_only
async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command - show all available commands."""
    await update.message.reply_text(HELP_TEXT, parse_mode="Markdown")


@authorized_only
async def myid_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /myid command - show user's Telegram ID for whitelisting."""
    user = update.effective_user
    await update.message.reply_text(
        f"🆔 Your ID: `{user.id}`\n"
        f"Add it to `ALLOWED_USER_IDS` in `.env` to lock the bot down.",
        parse_mode="Markdown",
    )
