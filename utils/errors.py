"""
utils/errors.py
---------------
Error taxonomy shared by every layer.

Each error carries a short, user-facing message that handlers send back
verbatim. The technical detail stays in the exception args and the logs.
"""


class FinanceError(Exception):
    """Base class for all expected, user-reportable failures."""

    user_message = "⚠️ Something went wrong. Please try again."

    def __init__(self, detail: str = "", user_message: str | None = None):
        super().__init__(detail or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class UnsupportedFormat(FinanceError):
    """The file's extension/content is not recognized by any parser."""

    user_message = (
        "❌ Unsupported file format. Please upload a CSV, Excel, JSON or TXT statement."
    )


class NoTransactionsFound(FinanceError):
    """A parser ran but every row failed the date/description/amount check."""

    user_message = (
        "📭 No valid transactions found. Make sure the file has Date, Description "
        "and Amount (or Debit/Credit) columns."
    )


class InvalidBackupFormat(FinanceError):
    """A JSON backup is missing its required top-level keys."""

    user_message = "❌ Invalid backup format. Nothing was imported."


class RemoteCallFailed(FinanceError):
    """
    Any data-store or RPC failure.

    ``retryable`` marks transient failures (rate limiting, timeouts,
    unavailable upstream) that a caller may retry.
    """

    user_message = "❌ The server could not complete the request. Please try again."

    def __init__(self, detail: str = "", user_message: str | None = None, retryable: bool = False):
        super().__init__(detail, user_message)
        self.retryable = retryable


class ValidationFailed(FinanceError):
    """User input failed local validation; no remote call was made."""

    user_message = "⚠️ Invalid input."

    def __init__(self, detail: str = "", user_message: str | None = None):
        super().__init__(detail, user_message or (f"⚠️ {detail}" if detail else None))
