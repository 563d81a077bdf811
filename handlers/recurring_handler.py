"""
handlers/recurring_handler.py
------------------------------
Handles recurring transaction commands.
Uses a structured, pipe-separated format.
"""

import re

from telegram import Update
from telegram.ext import ContextTypes

from security.auth import authorized_only
from services.container import from_context
from utils.date_helpers import format_date, parse_date, today
from utils.errors import FinanceError
from utils.logger import get_logger

logger = get_logger(__name__)

_FREQ_MAP = {
    "daily": "daily", "day": "daily",
    "weekly": "weekly", "week": "weekly",
    "monthly": "monthly", "month": "monthly",
    "yearly": "yearly", "year": "yearly", "annual": "yearly",
}


def parse_recurring_args(text: str) -> dict | None:
    """
    Parse the structured recurring format:
      name | amount | frequency [| start date [| type [| category]]]

    Examples:
      Netflix | 499 | monthly
      Salary | 50000 | monthly | 2024-01-01 | income | Income
    """
    parts = [p.strip() for p in text.split("|")]
    if len(parts) < 3:
        return None

    amount_str = re.sub(r"[^\d.]", "", parts[1])
    frequency = _FREQ_MAP.get(parts[2].lower())
    if not amount_str or not frequency:
        return None

    start = today()
    if len(parts) >= 4 and parts[3]:
        start = parse_date(parts[3])
        if start is None:
            return None

    return {
        "name": parts[0],
        "amount": amount_str,
        "frequency": frequency,
        "start_date": format_date(start),
        "type": parts[4].lower() if len(parts) >= 5 and parts[4] else "expense",
        "category": parts[5] if len(parts) >= 6 and parts[5] else "Other",
    }


@authorized_only
async def recurring_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /recurring command - list all active recurring transactions."""
    user = update.effective_user
    try:
        msg = await from_context(context).recurring.list_active(str(user.id))
    except FinanceError as e:
        msg = e.user_message
    await update.message.reply_text(msg)


@authorized_only
async def add_recurring_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /add_recurring - add a new recurring transaction.

    Format:
        /add_recurring name | amount | frequency [| start date [| type [| category]]]
    """
    user = update.effective_user
    parsed = parse_recurring_args(" ".join(context.args or []))
    if parsed is None:
        await update.message.reply_text(
            "📝 *Add a recurring transaction*\n\n"
            "*Format:*\n"
            "`/add_recurring name | amount | frequency [| start date [| type [| category]]]`\n\n"
            "*Examples:*\n"
            "• `/add_recurring Netflix | 499 | monthly`\n"
            "• `/add_recurring Rent | 15000 | monthly | 2024-01-05 | expense | Housing`\n"
            "• `/add_recurring Salary | 50000 | monthly | 2024-01-01 | income | Income`\n\n"
            "*Frequency:* daily, weekly, monthly, yearly",
            parse_mode="Markdown",
        )
        return

    try:
        saved = await from_context(context).recurring.create(user_id=str(user.id), **parsed)
    except FinanceError as e:
        await update.message.reply_text(e.user_message)
        return

    await update.message.reply_text(
        f"🔁 Recurring transaction added:\n"
        f"  📌 Name: {saved.name}\n"
        f"  💶 Amount: {saved.amount:.2f} ({saved.type})\n"
        f"  🔄 Frequency: {saved.frequency}\n"
        f"  📅 Next due: {saved.next_due_date}\n"
        f"  🔖 ID: #{saved.id}"
    )


@authorized_only
async def toggle_recurring_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /toggle_recurring <id> on|off."""
    user = update.effective_user
    if not context.args or len(context.args) < 2 or context.args[1].lower() not in ("on", "off"):
        await update.message.reply_text("⚠️ Usage: /toggle_recurring <id> on|off")
        return

    item_id = context.args[0].lstrip("#")
    active = context.args[1].lower() == "on"
    try:
        found = await from_context(context).recurring.toggle(str(user.id), item_id, active)
    except FinanceError as e:
        await update.message.reply_text(e.user_message)
        return
    if found:
        await update.message.reply_text(f"{'✅ Enabled' if active else '❌ Paused'} recurring #{item_id}.")
    else:
        await update.message.reply_text(f"⚠️ Recurring #{item_id} not found.")


@authorized_only
async def delete_recurring_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /delete_recurring <id> - delete a recurring transaction.
    """
    user = update.effective_user
    if not context.args:
        await update.message.reply_text("⚠️ Usage: /delete_recurring <id>")
        return

    item_id = context.args[0].lstrip("#")
    try:
        deleted = await from_context(context).recurring.delete(str(user.id), item_id)
    except FinanceError as e:
        await update.message.reply_text(e.user_message)
        return
    if deleted:
        await update.message.reply_text(f"🗑️ Recurring #{item_id} deleted.")
    else:
        await update.message.reply_text(f"⚠️ Recurring #{item_id} not found.")
