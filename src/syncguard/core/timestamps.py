"""Timestamp helpers.

Queue rows store UTC datetimes as ``YYYY-MM-DD HH:MM:SS`` strings so they
sort lexically and compare the same way on SQLite and MySQL. Breaker state
stores plain epoch seconds (ints) because it only ever does arithmetic on
them.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime

SQL_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def epoch_now() -> float:
    """Default clock: current epoch seconds."""
    return time.time()


def to_sql_datetime(epoch: float) -> str:
    """Format epoch seconds as a UTC SQL datetime string."""
    return datetime.fromtimestamp(epoch, UTC).strftime(SQL_DATETIME_FORMAT)


def from_sql_datetime(value: str | None) -> datetime | None:
    """Parse a SQL datetime string (UTC) to an aware datetime.

    Returns ``None`` for empty or unparseable input.
    """
    if not value:
        return None
    try:
        parsed = datetime.strptime(str(value), SQL_DATETIME_FORMAT)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
