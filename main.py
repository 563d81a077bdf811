"""
main.py
-------
Entry point for the Smart Saver Telegram bot.

Responsibilities:
    - Initialize the database connection pool and schema.
    - Build the shared services (query cache, import pipeline, AI chat...).
    - Configure and start the Telegram bot with all handlers.
    - Schedule recurring reminders and cache garbage collection.
"""

from datetime import time as dt_time

from telegram import BotCommand
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    MessageHandler,
    filters,
)

from config import CACHE_GC_SECONDS, TELEGRAM_BOT_TOKEN
from db.connection import close_pool, init_pool
from db.init_db import create_tables
from handlers.backup_handler import backup_command, restore_command
from handlers.chat_handler import ask_command
from handlers.export_handler import export_csv_command, export_excel_command
from handlers.import_handler import handle_document, import_callback
from handlers.overview_handler import goals_command, portfolio_command
from handlers.receipt_handler import handle_photo, receipt_callback
from handlers.recurring_handler import (
    add_recurring_command,
    delete_recurring_command,
    recurring_command,
    toggle_recurring_command,
)
from handlers.rules_handler import add_rule_command, delete_rule_command, rules_command, toggle_rule_command
from handlers.start_handler import help_command, myid_command, start_command
from handlers.transaction_handler import add_command, delete_command, edit_command, list_command
from services.container import BOT_DATA_KEY, Services, from_context
from utils.logger import get_logger

logger = get_logger(__name__)


async def send_reminders(context) -> None:
    """
    Scheduled job: remind users of recurring transactions due soon,
    then move each schedule to its next occurrence.
    Runs daily at 09:00 AM.
    """
    recurring = from_context(context).recurring
    try:
        due = await recurring.get_due_reminders()
    except Exception as e:
        logger.error(f"Could not load due reminders: {e}")
        return

    for item in due:
        try:
            verb = "income" if item.type == "income" else "payment"
            await context.bot.send_message(
                chat_id=item.user_id,
                text=(
                    f"⏰ Upcoming {verb}!\n\n"
                    f"📌 {item.name}\n"
                    f"💶 {item.amount:.2f}\n"
                    f"📅 Due: {item.next_due_date}"
                ),
            )
            await recurring.advance_due_date(item)
            logger.info(f"Sent reminder for '{item.name}' to user {item.user_id}")
        except Exception as e:
            logger.error(f"Failed to send reminder for '{item.name}': {e}")


async def collect_cache_garbage(context) -> None:
    """Scheduled job: drop cache entries nobody has read recently."""
    from_context(context).cache.collect_garbage()


async def set_bot_commands(application: Application) -> None:
    """Register bot commands menu in Telegram on startup."""
    commands = [
        BotCommand("start", "🚀 Start the bot"),
        BotCommand("help", "📖 Show help"),
        BotCommand("add", "➕ Add a transaction"),
        BotCommand("list", "📋 Recent transactions"),
        BotCommand("edit", "✏️ Edit a transaction"),
        BotCommand("delete", "🗑️ Delete transactions"),
        BotCommand("rules", "🏷️ Categorization rules"),
        BotCommand("addrule", "➕ Add a rule"),
        BotCommand("recurring", "🔁 Recurring transactions"),
        BotCommand("add_recurring", "➕ Add a recurring transaction"),
        BotCommand("goals", "🎯 Budget goals"),
        BotCommand("portfolio", "📈 Portfolio holdings"),
        BotCommand("ask", "🤖 Ask the AI advisor"),
        BotCommand("backup", "💾 Download a backup"),
        BotCommand("restore", "📤 Restore a backup"),
        BotCommand("export_csv", "📄 Export CSV"),
        BotCommand("export_excel", "📊 Export Excel"),
        BotCommand("myid", "🆔 Your Telegram ID"),
    ]
    await application.bot.set_my_commands(commands)
    logger.info("Bot commands menu registered successfully.")


def main() -> None:
    """Initialize and run the bot."""

    # ── 1. Database setup ─────────────────────────────────
    logger.info("Initializing database...")
    init_pool()
    create_tables()

    # ── 2. Build the Telegram application ─────────────────
    logger.info("Starting Telegram bot...")
    app = Application.builder().token(TELEGRAM_BOT_TOKEN).post_init(set_bot_commands).build()
    app.bot_data[BOT_DATA_KEY] = Services.build()

    # ── 3. Register command handlers ──────────────────────
    app.add_handler(CommandHandler("start", start_command))
    app.add_handler(CommandHandler("help", help_command))
    app.add_handler(CommandHandler("myid", myid_command))
    app.add_handler(CommandHandler("add", add_command))
    app.add_handler(CommandHandler("list", list_command))
    app.add_handler(CommandHandler("edit", edit_command))
    app.add_handler(CommandHandler("delete", delete_command))
    app.add_handler(CommandHandler("rules", rules_command))
    app.add_handler(CommandHandler("addrule", add_rule_command))
    app.add_handler(CommandHandler("togglerule", toggle_rule_command))
    app.add_handler(CommandHandler("deleterule", delete_rule_command))
    app.add_handler(CommandHandler("recurring", recurring_command))
    app.add_handler(CommandHandler("add_recurring", add_recurring_command))
    app.add_handler(CommandHandler("toggle_recurring", toggle_recurring_command))
    app.add_handler(CommandHandler("delete_recurring", delete_recurring_command))
    app.add_handler(CommandHandler("goals", goals_command))
    app.add_handler(CommandHandler("portfolio", portfolio_command))
    app.add_handler(CommandHandler("ask", ask_command))
    app.add_handler(CommandHandler("backup", backup_command))
    app.add_handler(CommandHandler("restore", restore_command))
    app.add_handler(CommandHandler("export_csv", export_csv_command))
    app.add_handler(CommandHandler("export_excel", export_excel_command))

    # ── 4. Register uploads and inline buttons ────────────
    app.add_handler(MessageHandler(filters.Document.ALL, handle_document))
    app.add_handler(MessageHandler(filters.PHOTO, handle_photo))
    app.add_handler(CallbackQueryHandler(import_callback, pattern=r"^import:"))
    app.add_handler(CallbackQueryHandler(receipt_callback, pattern=r"^receipt:"))

    # ── 5. Schedule jobs ──────────────────────────────────
    job_queue = app.job_queue
    if job_queue:
        job_queue.run_daily(
            send_reminders,
            time=dt_time(hour=9, minute=0),
            name="daily_reminders",
        )
        job_queue.run_repeating(
            collect_cache_garbage,
            interval=CACHE_GC_SECONDS,
            first=CACHE_GC_SECONDS,
            name="cache_gc",
        )
        logger.info(f"Scheduled daily reminders (09:00) + cache GC every {CACHE_GC_SECONDS}s")

    # ── 6. Start polling ──────────────────────────────────
    logger.info("🚀 Smart Saver is running! Press Ctrl+C to stop.")
    app.run_polling(drop_pending_updates=True, allowed_updates=["message", "callback_query"])

    # ── 7. Cleanup on shutdown ────────────────────────────
    close_pool()
    logger.info("Smart Saver stopped.")


if __name__ == "__main__":
    main()
