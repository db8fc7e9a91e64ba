"""UTC calendar helpers shared by ingestion, retention and scheduling."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta

Clock = Callable[[], datetime]
DateProvider = Callable[[], date]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""

    return datetime.now(UTC)


def utc_today() -> date:
    """Current UTC calendar date; the key for "today's" record."""

    return utc_now().date()


def years_before(day: date, years: int) -> date:
    """Same month/day ``years`` earlier; Feb 29 falls back to Feb 28."""

    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def window_start(today: date, days: int) -> date:
    """First date of an inclusive ``days``-long window ending ``today``."""

    if days - 1 >= today.toordinal():
        return date.min
    return today - timedelta(days=days - 1)


__all__ = ["Clock", "DateProvider", "utc_now", "utc_today", "window_start", "years_before"]
