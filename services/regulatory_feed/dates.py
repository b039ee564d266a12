"""
Date Normalization
==================

Pure helpers turning the date representations found on regulatory
listings into ``datetime.date`` values:

- named-month text: ``Feb 26, 2026`` / ``February 26 2026``
- slash-delimited numeric, day first: ``26/02/2026``
- feed timestamps, already normalized to a UTC ``time.struct_time`` by feedparser
- ISO dates returned by the extraction model: ``2026-02-26``

Version: 0.1.0
"""

import calendar
import re
import time
from datetime import UTC, date, datetime, timedelta


MONTHS: dict[str, int] = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

NAMED_DATE_PATTERN = re.compile(r"([A-Za-z]+)\s+(\d{1,2}),?\s+(\d{4})")
NUMERIC_DATE_PATTERN = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_named_date(text: str) -> date | None:
    """
    Parse the first ``<Month> <day>, <year>`` occurrence in ``text``.

    Only the first candidate is considered: if its month word is not a
    month name the result is ``None``.
    """
    match = NAMED_DATE_PATTERN.search(text)
    if not match:
        return None
    month = MONTHS.get(match.group(1).lower())
    if month is None:
        return None
    return _safe_date(int(match.group(3)), month, int(match.group(2)))


def parse_numeric_date(text: str) -> date | None:
    """Parse the first ``dd/mm/yyyy`` occurrence in ``text``."""
    match = NUMERIC_DATE_PATTERN.search(text)
    if not match:
        return None
    day, month, year = (int(g) for g in match.groups())
    return _safe_date(year, month, day)


def feed_entry_date(value: time.struct_time | None) -> date | None:
    """UTC calendar date of a feedparser ``*_parsed`` timestamp."""
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(calendar.timegm(value), tz=UTC).date()
    except (OverflowError, TypeError, ValueError):
        return None


def parse_iso_date(value: object) -> date | None:
    """Parse ``YYYY-MM-DD``; blanks, ``"null"`` and junk become ``None``."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or value.lower() in {"null", "none", "n/a"}:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def today_utc() -> date:
    """Current calendar date in UTC."""
    return datetime.now(UTC).date()


def is_within_window(
    published: date,
    days: int = 7,
    today: date | None = None,
    future_tolerance_days: int = 1,
) -> bool:
    """
    Check whether ``published`` falls inside the trailing recency window.

    The window is counted in whole calendar days: ``today - days`` is
    inside, ``today - days - 1`` is not. Dates up to
    ``future_tolerance_days`` ahead of today are accepted to absorb clock
    drift between sources and this host.
    """
    today = today or today_utc()
    return today - timedelta(days=days) <= published <= today + timedelta(days=future_tolerance_days)
