"""
handlers/rules_handler.py
-------------------------
Categorization rule commands: /rules, /addrule, /togglerule, /deleterule.
"""

from telegram import Update
from telegram.ext import ContextTypes

from security.auth import authorized_only
from services.container import from_context
from utils.errors import FinanceError
from utils.logger import get_logger

logger = get_logger(__name__)


@authorized_only
async def rules_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /rules - list all categorization rules."""
    user = update.effective_user
    try:
        msg = await from_context(context).categorizer.list_rules(str(user.id))
    except FinanceError as e:
        msg = e.user_message
    await update.message.reply_text(msg)


@authorized_only
async def add_rule_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /addrule keyword | category [| priority].

    Examples:
        /addrule uber | Transportation | 5
        /addrule netflix | Entertainment
    """
    user = update.effective_user
    parts = [p.strip() for p in " ".join(context.args or []).split("|")]
    if len(parts) < 2 or not parts[0] or not parts[1]:
        await update.message.reply_text(
            "📝 Usage: /addrule keyword | category [| priority]\n"
            "Example: /addrule uber | Transportation | 5"
        )
        return

    try:
        priority = int(parts[2]) if len(parts) >= 3 and parts[2] else 0
    except ValueError:
        await update.message.reply_text("⚠️ Priority must be a whole number.")
        return

    try:
        rule = await from_context(context).categorizer.add_rule(str(user.id), parts[0], parts[1], priority)
    except FinanceError as e:
        await update.message.reply_text(e.user_message)
        return
    await update.message.reply_text(f"🏷️ Rule #{rule.id} added: {rule}")


@authorized_only
async def toggle_rule_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /togglerule <id> on|off."""
    user = update.effective_user
    if not context.args or len(context.args) < 2 or context.args[1].lower() not in ("on", "off"):
        await update.message.reply_text("⚠️ Usage: /togglerule <id> on|off")
        return

    rule_id = context.args[0].lstrip("#")
    active = context.args[1].lower() == "on"
    try:
        found = await from_context(context).categorizer.toggle_rule(str(user.id), rule_id, active)
    except FinanceError as e:
        await update.message.reply_text(e.user_message)
        return
    if found:
        await update.message.reply_text(f"{'✅ Enabled' if active else '❌ Disabled'} rule #{rule_id}.")
    else:
        await update.message.reply_text(f"⚠️ Rule #{rule_id} not found.")


@authorized_only
async def delete_rule_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /deleterule <id>."""
    user = update.effective_user
    if not context.args:
        await update.message.reply_text("⚠️ Usage: /deleterule <id>")
        return

    rule_id = context.args[0].lstrip("#")
    try:
        deleted = await from_context(context).categorizer.delete_rule(str(user.id), rule_id)
    except FinanceError as e:
        await update.message.reply_text(e.user_message)
        return
    if deleted:
        await update.message.reply_text(f"🗑️ Rule #{rule_id} deleted.")
    else:
        await update.message.reply_text(f"⚠️ Rule #{rule_id} not found.")
