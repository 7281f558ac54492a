"""Date utilities for the timeline."""

from datetime import date, datetime, timedelta
from typing import Iterator, Optional
from zoneinfo import ZoneInfo

import pandas as pd


def today_in(tz_name: str) -> date:
    """Current calendar date in the given timezone."""
    return datetime.now(ZoneInfo(tz_name)).date()


def as_day(value: Optional[object]) -> Optional[date]:
    """
    Truncate a datetime (or date) to its calendar day.

    Timestamps are stored naive; the day is taken as-is.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f"Expected date or datetime, got {type(value).__name__}")


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every day from start to end, both inclusive."""
    current = start
    one_day = timedelta(days=1)
    while current <= end:
        yield current
        current += one_day


def subtract_months(day: date, months: int) -> date:
    """Same day-of-month `months` earlier, clamped to the month's length."""
    return (pd.Timestamp(day) - pd.DateOffset(months=months)).date()
