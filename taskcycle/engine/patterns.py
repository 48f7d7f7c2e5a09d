"""Recurrence pattern matching.

A template is anything exposing the RecurringTemplate attributes (pattern,
interval, weekdays, day_of_month, month_of_year, start_date, end_date,
active); the ORM model is the usual one but tests pass unattached instances.
"""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from taskcycle.core.config import settings
from taskcycle.exceptions import InvalidPatternError
from . import dates

PATTERNS = ("DAILY", "WEEKLY", "MONTHLY", "YEARLY")
LEAP_DAY_POLICIES = ("skip", "clamp")
WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def pattern_name(template: Any) -> str:
    pattern = template.pattern
    return getattr(pattern, "value", pattern)


def _interval(template: Any) -> int:
    return max(template.interval or 1, 1)


def matches(template: Any, target: date, leap_day_policy: Optional[str] = None) -> bool:
    """True when ``template`` has an occurrence on ``target``."""
    if template.active is False:
        return False
    start = template.start_date
    if target < start:
        return False
    if template.end_date is not None and target > template.end_date:
        return False

    pattern = pattern_name(template)
    interval = _interval(template)

    if pattern == "DAILY":
        return dates.diff_days(start, target) % interval == 0

    if pattern == "WEEKLY":
        if dates.weekday_of(target) not in set(template.weekdays or ()):
            return False
        # Compare Monday-anchored weeks so a start date falling on a weekday
        # outside the set does not shift the interval.
        week_offset = dates.diff_days(dates.week_start(start), dates.week_start(target))
        return week_offset >= 0 and (week_offset // 7) % interval == 0

    if pattern == "MONTHLY":
        if template.day_of_month is None:
            return False
        if target.day != dates.clamp_day(target.year, target.month, template.day_of_month):
            return False
        months = dates.months_between(start, target)
        return months >= 0 and months % interval == 0

    if pattern == "YEARLY":
        if template.day_of_month is None or template.month_of_year is None:
            return False
        if target.month != template.month_of_year:
            return False
        if target.day != _yearly_day(template, target.year, leap_day_policy):
            return False
        years = target.year - start.year
        return years >= 0 and years % interval == 0

    return False


def _yearly_day(template: Any, year: int, leap_day_policy: Optional[str]) -> int:
    """Day the yearly occurrence lands on in ``year``; 0 when it is skipped."""
    month = template.month_of_year
    day = template.day_of_month
    if month == 2 and day == 29 and not dates.is_leap_year(year):
        policy = leap_day_policy or settings.leap_day_policy
        return 28 if policy == "clamp" else 0
    return dates.clamp_day(year, month, day)


def occurrences_between(
    template: Any,
    start: date,
    end: date,
    leap_day_policy: Optional[str] = None,
) -> List[date]:
    return [d for d in dates.date_range(start, end) if matches(template, d, leap_day_policy)]


def next_occurrence(
    template: Any,
    from_date: date,
    max_days: int = 366,
    leap_day_policy: Optional[str] = None,
) -> Optional[date]:
    """First occurrence strictly after ``from_date`` within ``max_days``."""
    for offset in range(1, max_days + 1):
        candidate = dates.add_days(from_date, offset)
        if matches(template, candidate, leap_day_policy):
            return candidate
    return None


def describe(template: Any) -> str:
    """Short human summary, e.g. ``Every 2 weeks on Tue, Thu``."""
    pattern = pattern_name(template)
    interval = _interval(template)

    if pattern == "DAILY":
        return "Every day" if interval == 1 else f"Every {interval} days"
    if pattern == "WEEKLY":
        days = ", ".join(WEEKDAY_NAMES[d] for d in sorted(template.weekdays or ()))
        prefix = "Every week" if interval == 1 else f"Every {interval} weeks"
        return f"{prefix} on {days}"
    if pattern == "MONTHLY":
        prefix = "Every month" if interval == 1 else f"Every {interval} months"
        return f"{prefix} on day {template.day_of_month}"
    if pattern == "YEARLY":
        prefix = "Every year" if interval == 1 else f"Every {interval} years"
        return f"{prefix} on {MONTH_NAMES[template.month_of_year - 1]} {template.day_of_month}"
    return "Unknown"


def validate_template(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Check a template's rule fields against its pattern.

    Returns a copy with fields that do not apply to the pattern cleared, so a
    template switched from WEEKLY to MONTHLY does not keep stale weekdays.
    Raises ``InvalidPatternError``.
    """
    cleaned = dict(fields)
    pattern = getattr(cleaned.get("pattern"), "value", cleaned.get("pattern"))
    if pattern not in PATTERNS:
        raise InvalidPatternError(str(pattern), "unknown pattern")
    cleaned["pattern"] = pattern

    interval = cleaned.get("interval")
    if interval is None:
        cleaned["interval"] = 1
    elif interval < 1:
        raise InvalidPatternError(pattern, "interval must be at least 1", {"interval": interval})

    if pattern == "WEEKLY":
        weekdays: Iterable[int] = cleaned.get("weekdays") or []
        weekdays = list(weekdays)
        if not weekdays:
            raise InvalidPatternError(pattern, "weekdays must not be empty")
        if any(d < 0 or d > 6 for d in weekdays):
            raise InvalidPatternError(pattern, "weekdays must be between 0 (Mon) and 6 (Sun)", {"weekdays": weekdays})
        if len(set(weekdays)) != len(weekdays):
            raise InvalidPatternError(pattern, "weekdays must not repeat", {"weekdays": weekdays})
        cleaned["weekdays"] = sorted(weekdays)
    else:
        cleaned["weekdays"] = None

    if pattern in ("MONTHLY", "YEARLY"):
        day = cleaned.get("day_of_month")
        if day is None or not 1 <= day <= 31:
            raise InvalidPatternError(pattern, "day_of_month must be between 1 and 31", {"day_of_month": day})
    else:
        cleaned["day_of_month"] = None

    if pattern == "YEARLY":
        month = cleaned.get("month_of_year")
        if month is None or not 1 <= month <= 12:
            raise InvalidPatternError(pattern, "month_of_year must be between 1 and 12", {"month_of_year": month})
    else:
        cleaned["month_of_year"] = None

    start = cleaned.get("start_date")
    end = cleaned.get("end_date")
    if start is not None and end is not None and end < start:
        raise InvalidPatternError(pattern, "end_date must not be before start_date")

    return cleaned
