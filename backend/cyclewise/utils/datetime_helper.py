"""
Naive-UTC time helpers.

All timestamps are stored as naive UTC so SQLite and PostgreSQL round-trip
them identically.
"""
from datetime import date, datetime, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today_utc() -> date:
    return utcnow().date()


def trailing_days(count: int, end: date | None = None) -> list[date]:
    """Return `count` calendar days ending at `end` (inclusive), newest first."""
    end = end or today_utc()
    return [end - timedelta(days=offset) for offset in range(count)]
