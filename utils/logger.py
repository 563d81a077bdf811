"""
utils/logger.py
---------------
Logging setup shared by the bot, the import pipeline and the scheduled jobs.

Call ``get_logger(__name__)`` at module level; the first call configures the
root logger from LOG_LEVEL and, when LOG_FILE is set, adds a rotating file.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler

from config import LOG_FILE, LOG_LEVEL

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO (httpx logs every long poll).
_QUIET_LOGGERS = ("httpx", "telegram.ext.Application", "apscheduler")

_initialized = False


def _init_logging() -> None:
    global _initialized
    if _initialized:
        return
    formatter = logging.Formatter(_LOG_FORMAT, _DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if LOG_FILE:
        handlers.append(RotatingFileHandler(LOG_FILE, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"))

    root = logging.getLogger()
    root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """Named logger; configures logging on first use."""
    _init_logging()
    return logging.getLogger(name)
