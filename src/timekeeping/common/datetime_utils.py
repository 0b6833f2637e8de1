from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every date from start to end, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def span_days(start: date, end: date) -> int:
    return (end - start).days + 1


def overlap_days(start: date, end: date, window_start: date, window_end: date) -> int:
    """Number of days of [start, end] that fall inside [window_start, window_end]."""
    lo = max(start, window_start)
    hi = min(end, window_end)
    if hi < lo:
        return 0
    return span_days(lo, hi)
