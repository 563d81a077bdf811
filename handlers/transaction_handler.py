"""
handlers/transaction_handler.py
-------------------------------
Handles manual transaction commands: /add, /list, /edit, /delete.
Delegates to TransactionService.
"""

from telegram import Update
from telegram.ext import ContextTypes

from security.auth import authorized_only
from services.container import from_context
from utils.date_helpers import format_date, parse_date, today
from utils.errors import FinanceError, RemoteCallFailed
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_LIST_SIZE = 10
MAX_LIST_SIZE = 50

# /edit key names → transaction fields
_EDIT_KEYS = {
    "amount": "amount",
    "category": "category",
    "cat": "category",
    "description": "description",
    "desc": "description",
    "date": "date",
    "type": "type",
}


def parse_add_args(text: str) -> dict | None:
    """
    Parse ``type | amount | category [| description [| date]]``.
    Returns None when the text does not have that shape.
    """
    parts = [p.strip() for p in text.split("|")]
    if len(parts) < 3:
        return None
    tx_date = today()
    if len(parts) >= 5 and parts[4]:
        tx_date = parse_date(parts[4])
        if tx_date is None:
            return None
    return {
        "type": parts[0].lower(),
        "amount": parts[1].replace(",", ""),
        "category": parts[2],
        "description": parts[3] if len(parts) >= 4 and parts[3] else None,
        "date": format_date(tx_date),
    }


def parse_edit_args(args: list[str]) -> dict:
    """Parse ``key=value`` pairs; values may span several words."""
    fields: dict[str, str] = {}
    current = None
    for token in args:
        key, sep, value = token.partition("=")
        if sep and key.lower() in _EDIT_KEYS:
            current = _EDIT_KEYS[key.lower()]
            fields[current] = value
        elif current is not None:
            fields[current] = f"{fields[current]} {token}".strip()
    if "amount" in fields:
        fields["amount"] = fields["amount"].replace(",", "")
    return fields


@authorized_only
async def add_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /add - record a transaction without AI.

    Format:
        /add type | amount | category [| description [| date]]

    Examples:
        /add expense | 250 | Food | Lunch
        /add income | 50000 | Income | Salary | 2024-03-01
    """
    user = update.effective_user
    parsed = parse_add_args(" ".join(context.args or []))
    if parsed is None:
        await update.message.reply_text(
            "📝 Usage: /add type | amount | category [| description [| date]]\n"
            "Example: /add expense | 250 | Food | Lunch"
        )
        return

    try:
        tx = await from_context(context).transactions.create(user_id=str(user.id), **parsed)
    except FinanceError as e:
        await update.message.reply_text(e.user_message)
        return

    emoji = "💸" if tx.is_expense() else "💰"
    msg = (
        f"{emoji} Saved {tx.type}:\n"
        f"  📂 Category: {tx.category}\n"
        f"  💶 Amount: {tx.amount:.2f}\n"
        f"  📅 Date: {tx.date}\n"
    )
    if tx.description:
        msg += f"  📝 Note: {tx.description}\n"
    msg += f"  🔖 ID: #{tx.id}"
    await update.message.reply_text(msg)


@authorized_only
async def list_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /list [n] - show the n most recent transactions."""
    user = update.effective_user
    limit = DEFAULT_LIST_SIZE
    if context.args:
        try:
            limit = max(1, min(int(context.args[0]), MAX_LIST_SIZE))
        except ValueError:
            await update.message.reply_text("⚠️ Usage: /list [count]")
            return

    try:
        txs = await from_context(context).transactions.list_transactions(str(user.id), limit)
    except RemoteCallFailed as e:
        logger.warning(f"Listing transactions failed for user {user.id}: {e}")
        txs = []

    if not txs:
        await update.message.reply_text("📭 No transactions yet.")
        return

    lines = [f"🧾 Last {len(txs)} transaction(s):\n"]
    for t in txs:
        sign = "🔴" if t.is_expense() else "🟢"
        desc = f" - {t.description}" if t.description else ""
        lines.append(f"  {sign} #{t.id} | {t.date} | {t.amount:.2f} | {t.category}{desc}")
    await update.message.reply_text("\n".join(lines))


@authorized_only
async def edit_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /edit <id> key=value ... - edit an existing transaction.

    Examples:
        /edit 5f2c… amount=75
        /edit 5f2c… category=Food description=Team lunch
    """
    user = update.effective_user
    if not context.args or len(context.args) < 2:
        await update.message.reply_text(
            "✏️ Usage: /edit <id> amount=<value> category=<name> description=<text> date=<YYYY-MM-DD>"
        )
        return

    tx_id = context.args[0].lstrip("#")
    fields = parse_edit_args(context.args[1:])
    if not fields:
        await update.message.reply_text("⚠️ Nothing to change. Example: /edit <id> amount=75")
        return

    try:
        tx = await from_context(context).transactions.update(str(user.id), tx_id, **fields)
    except FinanceError as e:
        await update.message.reply_text(e.user_message)
        return
    await update.message.reply_text(f"✏️ Updated #{tx.id}: {tx}")


@authorized_only
async def delete_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /delete <id> [id ...] - delete one or several transactions.
    """
    user = update.effective_user
    if not context.args:
        await update.message.reply_text("⚠️ Usage: /delete <id> [id ...]")
        return

    ids = [a.lstrip("#") for a in context.args]
    service = from_context(context).transactions
    try:
        if len(ids) == 1:
            await service.delete(str(user.id), ids[0])
            msg = f"🗑️ Transaction #{ids[0]} deleted."
        else:
            deleted = await service.bulk_delete(str(user.id), ids)
            msg = f"🗑️ {deleted} of {len(ids)} transaction(s) deleted."
    except FinanceError as e:
        await update.message.reply_text(e.user_message)
        return
    await update.message.reply_text(msg)
