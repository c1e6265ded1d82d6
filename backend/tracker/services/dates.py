import re
from datetime import datetime, timedelta, timezone
from typing import Optional

DEFAULT_RETENTION_DAYS = 14

# Rows without a usable relative age are treated as stale
STALE_DEFAULT_DAYS = 180

_MONTHS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

_MONTH_DAY_RE = re.compile(r"([A-Za-z]{3})\s+(\d{1,2})")
_RELATIVE_RE = re.compile(r"(\d+)\s*([a-zA-Z]+)")

_UNIT_DAYS = {"d": 1, "w": 7, "mo": 30}


def resolve_month_day(token: Optional[str], now: datetime) -> datetime:
    """
    "Sep 24" -> midnight UTC on Sep 24 of now's calendar year.

    The year is never rolled back, so a December date scraped in January
    resolves into the future. Unparsable input resolves to now.
    """
    m = _MONTH_DAY_RE.search(token or "")
    if not m:
        return now

    month = _MONTHS.get(m.group(1).lower())
    if month is None:
        return now

    try:
        return datetime(now.year, month, int(m.group(2)), tzinfo=timezone.utc)
    except ValueError:
        # e.g. "Feb 30"
        return now


def resolve_relative_age(token: Optional[str], now: datetime) -> datetime:
    """
    "2d" / "3w" / "1mo" -> now minus that age. Unknown units count as months.
    Unparsable input resolves to STALE_DEFAULT_DAYS before now.
    """
    m = _RELATIVE_RE.search(token or "")
    if not m:
        return now - timedelta(days=STALE_DEFAULT_DAYS)

    value = int(m.group(1))
    unit = m.group(2).lower()
    days_ago = value * _UNIT_DAYS.get(unit, 30)
    return now - timedelta(days=days_ago)


def retention_cutoff(now: datetime, retention_days: int = DEFAULT_RETENTION_DAYS) -> datetime:
    return now - timedelta(days=retention_days)


def is_recent(created_at: datetime, now: datetime, retention_days: int = DEFAULT_RETENTION_DAYS) -> bool:
    return created_at >= retention_cutoff(now, retention_days)
