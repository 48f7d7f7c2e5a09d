"""Retention of unfinished recurring occurrences, by pattern."""
from __future__ import annotations

from datetime import date
from typing import Any, Optional

from . import dates

RETENTION_DAYS = {
    "DAILY": 3,
    "WEEKLY": 7,
    "MONTHLY": 365,
    "YEARLY": 365,
}


def threshold_days(pattern: Optional[str]) -> Optional[int]:
    return RETENTION_DAYS.get(getattr(pattern, "value", pattern))


def cutoff_date(pattern: str, today: date) -> date:
    """Occurrences due strictly before this date are expired."""
    return dates.add_days(today, -threshold_days(pattern))


def is_expired(task: Any, today: date) -> bool:
    task_type = getattr(task.task_type, "value", task.task_type)
    if task_type != "RECURRING" or task.completed or not task.recurring_template_id:
        return False
    limit = threshold_days(task.recurring_pattern)
    if limit is None:
        return False
    return dates.diff_days(task.due_date, today) > limit
