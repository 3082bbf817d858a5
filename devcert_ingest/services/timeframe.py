from __future__ import annotations

import calendar
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from enum import Enum

from ..models.metrics import DateWindow

"""Timeframe presets -> DateWindow.

Preset windows start at local midnight and end at the last instant of today
in the configured timezone. Custom ranges are inclusive calendar days.
"""

__all__ = [
    "Timeframe",
    "resolve_timeframe",
    "day_window",
    "month_window",
]


class Timeframe(Enum):
    ALL_TIME = "All Time"
    THIS_YEAR = "This Year"
    LAST_90_DAYS = "Last 90 Days"
    LAST_30_DAYS = "Last 30 Days"
    CUSTOM_RANGE = "Custom Range"


def _start_of(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def _end_of(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.max, tzinfo=tz)


def day_window(start: date | None, end: date | None, tz: tzinfo = UTC) -> DateWindow:
    """Inclusive calendar-day window; either side may be open."""
    return DateWindow(
        start=_start_of(start, tz) if start is not None else None,
        end=_end_of(end, tz) if end is not None else None,
    )


def month_window(year: int, month: int, tz: tzinfo = UTC) -> DateWindow:
    last_day = calendar.monthrange(year, month)[1]
    return day_window(date(year, month, 1), date(year, month, last_day), tz)


def resolve_timeframe(
    option: Timeframe | str,
    *,
    now: datetime | None = None,
    start: date | None = None,
    end: date | None = None,
    tz: tzinfo = UTC,
) -> DateWindow:
    """Translate a preset (or custom start/end dates) into a DateWindow.

    Raises:
        ValueError: unknown preset name.
    """
    option = Timeframe(option)
    today = (now or datetime.now(UTC)).astimezone(tz).date()

    if option is Timeframe.ALL_TIME:
        return DateWindow()
    if option is Timeframe.LAST_30_DAYS:
        return day_window(today - timedelta(days=30), today, tz)
    if option is Timeframe.LAST_90_DAYS:
        return day_window(today - timedelta(days=90), today, tz)
    if option is Timeframe.THIS_YEAR:
        return day_window(date(today.year, 1, 1), today, tz)
    return day_window(start, end, tz)
