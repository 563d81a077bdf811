"""
handlers/export_handler.py
---------------------------
Handles monthly report downloads (CSV, Excel).
Delegates to ExportService.
"""

from datetime import date

from telegram import Update
from telegram.ext import ContextTypes

from security.auth import authorized_only
from services.container import from_context
from utils.errors import FinanceError
from utils.logger import get_logger

logger = get_logger(__name__)


def _parse_period(args: list[str]) -> tuple[int, int] | None:
    """Read an optional ``year month`` pair; defaults to the current month."""
    today = date.today()
    if not args or len(args) < 2:
        return today.year, today.month
    try:
        year, month = int(args[0]), int(args[1])
    except ValueError:
        return None
    if not 1 <= month <= 12:
        return None
    return year, month


async def _send_export(update: Update, context: ContextTypes.DEFAULT_TYPE, kind: str) -> None:
    user = update.effective_user
    period = _parse_period(context.args or [])
    if period is None:
        await update.message.reply_text(f"⚠️ Usage: /export_{kind} [year month]\nExample: /export_{kind} 2026 1")
        return
    year, month = period

    exports = from_context(context).exports
    label, extension = ("CSV", "csv") if kind == "csv" else ("Excel", "xlsx")
    await update.message.reply_text(f"📄 Preparing your {label} file...")

    try:
        if kind == "csv":
            buffer = await exports.export_month_csv(str(user.id), year, month)
        else:
            buffer = await exports.export_month_excel(str(user.id), year, month)
    except FinanceError as e:
        await update.message.reply_text(e.user_message)
        return
    except Exception as e:
        logger.error(f"{label} export failed: {e}", exc_info=True)
        await update.message.reply_text("❌ The export failed. Please try again.")
        return

    await update.message.reply_document(
        document=buffer,
        filename=f"transactions_{year}_{month:02d}.{extension}",
        caption=f"📊 Transactions for {month:02d}/{year} - {label}",
    )


@authorized_only
async def export_csv_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /export_csv command - send the current month's data as CSV.
    Optional: /export_csv 2026 1 (for January 2026).
    """
    await _send_export(update, context, "csv")


@authorized_only
async def export_excel_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /export_excel command - send the current month's data as Excel.
    Optional: /export_excel 2026 1 (for January 2026).
    """
    await _send_export(update, context, "excel")
