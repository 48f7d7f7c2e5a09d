"""Civil-date helpers.

Every date the engine handles is a ``datetime.date`` in one fixed civil
calendar (``settings.timezone``). "Today" is read from that zone's wall clock,
never by truncating a UTC timestamp, so a task due "today" does not flip at
UTC midnight.
"""
from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Iterator, Optional
from zoneinfo import ZoneInfo

from taskcycle.core.config import settings

# Stands in for "no due date" (idea box, shopping carryover, inbox items).
NO_DUE_DATE = date(2999, 12, 31)

URGENCY_SOON_DAYS = 3
URGENCY_NEXT7_DAYS = 7
URGENCY_NEXT30_DAYS = 30


def _zone(tz: Optional[str]) -> ZoneInfo:
    return ZoneInfo(tz or settings.timezone)


def now(tz: Optional[str] = None) -> datetime:
    """Aware datetime in the civil timezone."""
    return datetime.now(_zone(tz))


def local_now(tz: Optional[str] = None) -> datetime:
    """Naive local wall-clock time, the form timestamps are stored in."""
    return now(tz).replace(tzinfo=None)


def today(tz: Optional[str] = None) -> date:
    """Current civil date."""
    return now(tz).date()


def parse_date(value: str) -> date:
    """Parse ``YYYY-MM-DD`` (a trailing time part is ignored)."""
    return date.fromisoformat(value.strip()[:10])


def format_date(value: date) -> str:
    return value.isoformat()


def weekday_of(value: date) -> int:
    """0 = Monday .. 6 = Sunday."""
    return value.weekday()


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def diff_days(start: date, end: date) -> int:
    """Whole days from ``start`` to ``end`` (negative when end is earlier)."""
    return (end - start).days


def week_start(value: date) -> date:
    """Monday of the week containing ``value``."""
    return add_days(value, -weekday_of(value))


def month_start(value: date) -> date:
    return value.replace(day=1)


def is_leap_year(year: int) -> bool:
    return calendar.isleap(year)


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> int:
    """Resolve a day-of-month into the month, e.g. 31 -> 30 in April."""
    return min(day, last_day_of_month(year, month))


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start's month to end's month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def date_range(start: date, end: date) -> Iterator[date]:
    """Inclusive day-by-day walk; empty when start > end."""
    current = start
    while current <= end:
        yield current
        current = add_days(current, 1)


def is_dateless(value: Optional[date]) -> bool:
    return value is None or value >= NO_DUE_DATE


def days_from_today(value: date, reference: Optional[date] = None) -> int:
    return diff_days(reference or today(), value)


def urgency_level(value: date, reference: Optional[date] = None) -> str:
    """Bucket a due date: Overdue, Soon, Next7, Next30 or Normal."""
    days = days_from_today(value, reference)
    if days < 0:
        return "Overdue"
    if days <= URGENCY_SOON_DAYS:
        return "Soon"
    if days <= URGENCY_NEXT7_DAYS:
        return "Next7"
    if days <= URGENCY_NEXT30_DAYS:
        return "Next30"
    return "Normal"
