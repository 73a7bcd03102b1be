"""Canonical date handling.

Every "today" comparison, every upstream timestamp conversion and every
gap-fill range goes through these helpers with the single configured zone
(AppSettings.timezone), so date keys never mix UTC and local days.
Date keys are ISO 8601 strings (YYYY-MM-DD), which sort chronologically.
"""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo


def canonical_today(tz: str) -> str:
    """Return today's date key in the canonical timezone."""
    return datetime.now(ZoneInfo(tz)).date().isoformat()


def date_key_from_ms(timestamp_ms: int, tz: str) -> str:
    """Convert a UTC millisecond timestamp into a canonical date key."""
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=ZoneInfo(tz)).date().isoformat()


def days_ago(today: str, n: int) -> str:
    """Return the date key ``n`` days before ``today``."""
    return (date.fromisoformat(today) - timedelta(days=n)).isoformat()


def date_range(start: str, end: str) -> list[str]:
    """All date keys from ``start`` to ``end`` inclusive, oldest first.

    Returns an empty list when start > end.
    """
    current = date.fromisoformat(start)
    stop = date.fromisoformat(end)
    keys: list[str] = []
    while current <= stop:
        keys.append(current.isoformat())
        current += timedelta(days=1)
    return keys


def start_of_day_ms(date_key: str, tz: str) -> int:
    """Millisecond timestamp of midnight of ``date_key`` in the canonical zone."""
    midnight = datetime.combine(date.fromisoformat(date_key), datetime.min.time(), ZoneInfo(tz))
    return int(midnight.timestamp() * 1000)
