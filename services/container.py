"""
services/container.py
---------------------
Wires the services around one shared QueryCache.

main.py builds a single Services instance and stores it in the bot's
``bot_data``; handlers look it up from their callback context.
"""

from dataclasses import dataclass
from typing import Optional

from cache.query_cache import QueryCache
from services.ai_service import AIService
from services.backup_service import BackupService
from services.categorizer import Categorizer
from services.export_service import ExportService
from services.import_service import ImportService
from services.receipt_service import ReceiptService
from services.recurring_service import RecurringService
from services.transaction_service import ReferenceDataService, TransactionService

BOT_DATA_KEY = "services"


@dataclass
class Services:
    cache: QueryCache
    transactions: TransactionService
    reference: ReferenceDataService
    categorizer: Categorizer
    imports: ImportService
    recurring: RecurringService
    ai: AIService
    receipts: ReceiptService
    backups: BackupService
    exports: ExportService

    @classmethod
    def build(cls, cache: Optional[QueryCache] = None) -> "Services":
        cache = cache or QueryCache()
        transactions = TransactionService(cache)
        reference = ReferenceDataService(cache)
        categorizer = Categorizer()
        return cls(
            cache=cache,
            transactions=transactions,
            reference=reference,
            categorizer=categorizer,
            imports=ImportService(cache, categorizer=categorizer),
            recurring=RecurringService(cache=cache, reference=reference),
            ai=AIService(transactions),
            receipts=ReceiptService(transactions),
            backups=BackupService(cache),
            exports=ExportService(),
        )


def from_context(context) -> Services:
    """The Services stored in a telegram callback context's bot_data."""
    return context.bot_data[BOT_DATA_KEY]
