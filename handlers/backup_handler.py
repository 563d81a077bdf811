"""
handlers/backup_handler.py
--------------------------
/backup sends a JSON snapshot of the user's data.
/restore waits for the next uploaded document and imports it.
"""

from datetime import date

from telegram import Update
from telegram.ext import ContextTypes

from security.auth import authorized_only
from services.container import from_context
from utils.errors import FinanceError
from utils.logger import get_logger

logger = get_logger(__name__)

AWAITING_RESTORE = "awaiting_restore"


@authorized_only
async def backup_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /backup command - send every user table as one JSON file."""
    user = update.effective_user
    await update.message.reply_text("💾 Preparing your backup...")
    try:
        buffer = await from_context(context).backups.create_backup(str(user.id))
    except FinanceError as e:
        await update.message.reply_text(e.user_message)
        return

    await update.message.reply_document(
        document=buffer,
        filename=f"backup_{date.today().isoformat()}.json",
        caption="💾 Keep this file safe. Send /restore and upload it to bring your data back.",
    )


@authorized_only
async def restore_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /restore command - the next uploaded document is treated as a backup."""
    context.user_data[AWAITING_RESTORE] = True
    await update.message.reply_text("📤 Send me the backup .json file you want to restore.")


async def restore_document(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Restore a backup from the uploaded document. Called by the document handler."""
    user = update.effective_user
    document = update.message.document

    try:
        file = await document.get_file()
        raw = bytes(await file.download_as_bytearray())
        counts = await from_context(context).backups.restore_backup(str(user.id), raw)
    except FinanceError as e:
        logger.warning(f"Restore failed for user {user.id}: {e}")
        await update.message.reply_text(e.user_message)
        return

    if not counts:
        await update.message.reply_text("📭 The backup did not contain any data to restore.")
        return

    lines = ["✅ Backup restored:"]
    lines += [f"  • {table.replace('_', ' ')}: {count}" for table, count in counts.items()]
    await update.message.reply_text("\n".join(lines))
