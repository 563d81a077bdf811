"""
utils/date_helpers.py
---------------------
Calendar arithmetic and lenient date parsing.
"""

import calendar
from datetime import date, datetime

from dateutil.relativedelta import relativedelta

ISO_FORMAT = "%Y-%m-%d"

# Tried in order when a statement date is not already ISO formatted.
# Day-first layouts come before month-first ones.
_INPUT_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%m/%d/%Y",
    "%d/%m/%y",
    "%d-%m-%y",
    "%m/%d/%y",
    "%d-%b-%Y",
    "%d %b %Y",
    "%d-%b-%y",
    "%d %b %y",
    "%b %d, %Y",
    "%d %B %Y",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
)


def today() -> date:
    return date.today()


def parse_date(value: str) -> date | None:
    """Parse a date in any of the supported statement formats, or return None."""
    if not value:
        return None
    text = str(value).strip()
    for fmt in _INPUT_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def format_date(d: date) -> str:
    return d.strftime(ISO_FORMAT)


def add_months(d: date, n: int) -> date:
    """Add n months to date d, clamping day to month end."""
    return d + relativedelta(months=n)


def add_years(d: date, n: int) -> date:
    """Add n years to date d; Feb 29 becomes Feb 28 in non-leap years."""
    return d + relativedelta(years=n)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return (first_day, last_day) of a month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)
