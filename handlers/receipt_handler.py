"""
handlers/receipt_handler.py
---------------------------
Receipt photos → OCR → suggested expense with Save/Discard buttons.
"""

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import ContextTypes

from config import RECEIPT_MAX_REQUESTS, RECEIPT_WINDOW_MINUTES
from security.auth import authorized_only
from security.rate_limiter import rate_limited
from services.container import from_context
from utils.errors import FinanceError
from utils.logger import get_logger

logger = get_logger(__name__)

PENDING_RECEIPT = "pending_receipt"
SAVE = "receipt:save"
DISCARD = "receipt:discard"


@authorized_only
@rate_limited("receipt-ocr", RECEIPT_MAX_REQUESTS, RECEIPT_WINDOW_MINUTES)
async def handle_photo(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle a receipt photo: scan it and offer to save the expense."""
    user = update.effective_user
    photo = update.message.photo[-1]

    await update.message.reply_text("🔍 Scanning your receipt...")
    try:
        file = await photo.get_file()
        image = bytes(await file.download_as_bytearray())
        data = await from_context(context).receipts.scan(image)
    except FinanceError as e:
        logger.warning(f"Receipt scan failed for user {user.id}: {e}")
        await update.message.reply_text(e.user_message)
        return

    if data.amount <= 0:
        await update.message.reply_text(
            "🤔 I couldn't find a total on that receipt. Try a sharper photo, or add it with /add."
        )
        return

    context.user_data[PENDING_RECEIPT] = data
    keyboard = InlineKeyboardMarkup([[
        InlineKeyboardButton("💾 Save", callback_data=SAVE),
        InlineKeyboardButton("🗑️ Discard", callback_data=DISCARD),
    ]])
    await update.message.reply_text(from_context(context).receipts.format(data), reply_markup=keyboard)


@authorized_only
async def receipt_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle the Save/Discard buttons under a scanned receipt."""
    query = update.callback_query
    await query.answer()

    data = context.user_data.pop(PENDING_RECEIPT, None)
    if data is None:
        await query.edit_message_text("⚠️ This receipt has expired. Please send the photo again.")
        return
    if query.data == DISCARD:
        await query.edit_message_text("🗑️ Receipt discarded.")
        return

    user = update.effective_user
    try:
        tx = await from_context(context).receipts.save(str(user.id), data)
    except FinanceError as e:
        await query.message.reply_text(e.user_message)
        return
    await query.edit_message_text(f"✅ Saved: {tx}")
