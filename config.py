"""
config.py
---------
Central configuration module. Loads all environment variables
from the .env file and exposes them as typed constants.
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ── Telegram ──────────────────────────────────────────────
TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")

# ── Gemini AI ─────────────────────────────────────────────
GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
AI_PROVIDER: str = "gemini"
AI_MAX_RETRIES: int = int(os.getenv("AI_MAX_RETRIES", "3"))
AI_RETRY_DELAY_MS: int = int(os.getenv("AI_RETRY_DELAY_MS", "1000"))

# ── PostgreSQL ────────────────────────────────────────────
DB_HOST: str = os.getenv("DB_HOST", "localhost")
DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
DB_NAME: str = os.getenv("DB_NAME", "smart_saver")
DB_USER: str = os.getenv("DB_USER", "smart_saver")
DB_PASS: str = os.getenv("DB_PASS", "")

DATABASE_URL: str = os.getenv(
    "DATABASE_URL",
    f"postgresql://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)

# ── Security ──────────────────────────────────────────────
_raw_ids = os.getenv("ALLOWED_USER_IDS", "")
ALLOWED_USER_IDS: list[int] = (
    [int(uid.strip()) for uid in _raw_ids.split(",") if uid.strip()]
    if _raw_ids
    else []
)

# ── Rate Limiting ─────────────────────────────────────────
AI_CHAT_MAX_REQUESTS: int = int(os.getenv("AI_CHAT_MAX_REQUESTS", "20"))
AI_CHAT_WINDOW_MINUTES: int = int(os.getenv("AI_CHAT_WINDOW_MINUTES", "1"))
RECEIPT_MAX_REQUESTS: int = int(os.getenv("RECEIPT_MAX_REQUESTS", "10"))
RECEIPT_WINDOW_MINUTES: int = int(os.getenv("RECEIPT_WINDOW_MINUTES", "1"))

# ── Query cache ───────────────────────────────────────────
CACHE_STALE_SECONDS: float = float(os.getenv("CACHE_STALE_SECONDS", "30"))
STATIC_STALE_SECONDS: float = float(os.getenv("STATIC_STALE_SECONDS", "60"))
CACHE_GC_SECONDS: float = float(os.getenv("CACHE_GC_SECONDS", "300"))

# ── File import ───────────────────────────────────────────
IMPORT_MAX_FILE_MB: int = int(os.getenv("IMPORT_MAX_FILE_MB", "10"))
PREAMBLE_SCAN_LINES: int = 30
DESCRIPTION_MAX_LENGTH: int = 200
PREVIEW_ROWS: int = 10

# ── Logging ───────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE: str = os.getenv("LOG_FILE", "")

# ── Currency ──────────────────────────────────────────────
DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "INR")
CURRENCY_SYMBOL: str = "₹"
