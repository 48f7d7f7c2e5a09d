"""Streaks and totals derived from completion dates."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

from . import dates


@dataclass
class CompletionStats:
    current_streak: int
    total_completions: int
    last_completed_date: Optional[date]
    is_completed_today: bool
    completion_dates: List[date] = field(default_factory=list)


def current_streak(completion_dates: Iterable[date], today: date) -> int:
    """Consecutive completed days ending today, or yesterday if today is still open."""
    done = set(completion_dates)
    cursor = today
    if cursor not in done:
        cursor = dates.add_days(cursor, -1)

    streak = 0
    while cursor in done:
        streak += 1
        cursor = dates.add_days(cursor, -1)
    return streak


def summarize(completion_dates: Iterable[date], today: date) -> CompletionStats:
    ordered = sorted(set(completion_dates))
    return CompletionStats(
        current_streak=current_streak(ordered, today),
        total_completions=len(ordered),
        last_completed_date=ordered[-1] if ordered else None,
        is_completed_today=today in ordered,
        completion_dates=ordered,
    )


def longest_streak(completion_dates: Iterable[date]) -> int:
    ordered = sorted(set(completion_dates))
    best = run = 0
    previous = None
    for day in ordered:
        run = run + 1 if previous is not None and dates.diff_days(previous, day) == 1 else 1
        best = max(best, run)
        previous = day
    return best


def daily_counts(completion_dates: Iterable[date]) -> Dict[date, int]:
    counts: Dict[date, int] = {}
    for day in completion_dates:
        counts[day] = counts.get(day, 0) + 1
    return counts
