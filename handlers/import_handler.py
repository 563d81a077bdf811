"""
handlers/import_handler.py
--------------------------
Statement upload → preview with Confirm/Cancel buttons → bulk import.

The pending preview lives in ``context.user_data`` until the user decides.
A document sent right after /restore is routed to the backup restore instead.
"""

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import ContextTypes

from handlers.backup_handler import AWAITING_RESTORE, restore_document
from security.auth import authorized_only
from services.container import from_context
from utils.errors import FinanceError
from utils.logger import get_logger

logger = get_logger(__name__)

PENDING_IMPORT = "pending_import"
CONFIRM = "import:confirm"
CANCEL = "import:cancel"


def _keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[
        InlineKeyboardButton("✅ Confirm", callback_data=CONFIRM),
        InlineKeyboardButton("❌ Cancel", callback_data=CANCEL),
    ]])


@authorized_only
async def handle_document(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle an uploaded file: parse it and show the preview."""
    if context.user_data.pop(AWAITING_RESTORE, False):
        await restore_document(update, context)
        return

    user = update.effective_user
    document = update.message.document
    services = from_context(context)

    await update.message.reply_text(f"📥 Reading {document.file_name}...")
    try:
        file = await document.get_file()
        content = bytes(await file.download_as_bytearray())
        preview = await services.imports.prepare(
            str(user.id), document.file_name or "statement", document.mime_type, content
        )
    except FinanceError as e:
        logger.warning(f"Import of {document.file_name!r} failed for user {user.id}: {e}")
        await update.message.reply_text(e.user_message)
        return
    except Exception as e:
        logger.error(f"Unexpected import failure for user {user.id}: {e}", exc_info=True)
        await update.message.reply_text("❌ Something went wrong while reading the file. Please try again.")
        return

    context.user_data[PENDING_IMPORT] = preview
    await update.message.reply_text(preview.summary(), reply_markup=_keyboard())


@authorized_only
async def import_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle the Confirm/Cancel buttons under a preview."""
    query = update.callback_query
    await query.answer()

    preview = context.user_data.get(PENDING_IMPORT)
    if preview is None:
        await query.edit_message_text("⚠️ This import has expired. Please upload the file again.")
        return

    services = from_context(context)
    if query.data == CANCEL:
        services.imports.cancel(preview)
        context.user_data.pop(PENDING_IMPORT, None)
        await query.edit_message_text("🚫 Import cancelled. Nothing was saved.")
        return

    try:
        count = await services.imports.confirm(preview)
    except FinanceError as e:
        logger.warning(f"Import confirm failed for user {preview.user_id}: {e}")
        await query.message.reply_text(e.user_message)
        return

    context.user_data.pop(PENDING_IMPORT, None)
    await query.edit_message_text(f"✅ Imported {count} transaction(s) from {preview.filename}.")
