"""Detection of unfinished work and the shape of its rolled-forward copies.

Nothing here touches the store: ``RolloverService`` loads the inputs, calls
``find_incomplete`` and persists what ``forward_single`` /
``forward_recurring`` describe.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from . import dates
from .patterns import matches

ROLLOVER_MODES = ("per_date", "consolidated")
MAX_LOOKBACK_DAYS = 365


@dataclass
class MissedOccurrences:
    template: Any
    missed_dates: List[date]
    # occurrence rows that exist for some of the missed dates, keyed by date
    occurrence_ids: Dict[date, str] = field(default_factory=dict)

    @property
    def template_id(self) -> str:
        return self.template.id


@dataclass
class RolloverCandidates:
    incomplete_single: List[Any] = field(default_factory=list)
    incomplete_recurring: List[MissedOccurrences] = field(default_factory=list)

    @property
    def single_count(self) -> int:
        return len(self.incomplete_single)

    @property
    def recurring_count(self) -> int:
        return sum(len(item.missed_dates) for item in self.incomplete_recurring)

    @property
    def is_empty(self) -> bool:
        return self.single_count + self.recurring_count == 0

    def summary(self) -> str:
        parts = []
        if self.single_count:
            parts.append(f"{self.single_count} single")
        if self.recurring_count:
            parts.append(f"{self.recurring_count} recurring")
        return f"Incomplete: {', '.join(parts)}" if parts else ""

    def select(
        self,
        task_ids: Optional[Iterable[str]] = None,
        template_ids: Optional[Iterable[str]] = None,
    ) -> "RolloverCandidates":
        """Narrow to a chosen subset; ``None`` keeps that whole group."""
        singles = self.incomplete_single
        recurring = self.incomplete_recurring
        if task_ids is not None:
            wanted = set(task_ids)
            singles = [t for t in singles if t.id in wanted]
        if template_ids is not None:
            wanted = set(template_ids)
            recurring = [r for r in recurring if r.template_id in wanted]
        return RolloverCandidates(list(singles), list(recurring))


def is_single_pending(task: Any, today: date) -> bool:
    task_type = getattr(task.task_type, "value", task.task_type)
    return (
        task_type in ("NORMAL", "INBOX")
        and not task.completed
        and not task.archived
        and not dates.is_dateless(task.due_date)
        and task.due_date < today
    )


def find_incomplete(
    single_tasks: Iterable[Any],
    templates: Iterable[Any],
    occurrences: Iterable[Any],
    completions: Iterable[Any],
    today: date,
    lookback_days: int = 7,
    carried_through: Optional[Mapping[str, date]] = None,
    leap_day_policy: Optional[str] = None,
) -> RolloverCandidates:
    """Overdue single tasks plus recurring dates that were due but never done.

    A recurring date counts as done when a completion for the template is
    recorded on that date, or its occurrence row is completed. Dates already
    covered by an earlier rollover (``carried_through``) are not reported
    again.
    """
    lookback_days = min(max(lookback_days, 1), MAX_LOOKBACK_DAYS)
    carried_through = carried_through or {}

    incomplete_single = [t for t in single_tasks if is_single_pending(t, today)]

    rows: Dict[Tuple[str, date], Any] = {}
    for task in occurrences:
        if task.recurring_template_id:
            rows[(task.recurring_template_id, task.due_date)] = task

    completed_on = set()
    completed_task_ids = set()
    for record in completions:
        completed_task_ids.add(record.original_task_id)
        if record.template_id:
            completed_on.add((record.template_id, record.completion_date))

    incomplete_recurring: List[MissedOccurrences] = []
    window_end = dates.add_days(today, -1)
    for template in templates:
        if template.active is False:
            continue
        window_start = max(template.start_date, dates.add_days(today, -lookback_days))
        covered = carried_through.get(template.id)
        if covered is not None:
            window_start = max(window_start, dates.add_days(covered, 1))

        missed: List[date] = []
        occurrence_ids: Dict[date, str] = {}
        for day in dates.date_range(window_start, window_end):
            if not matches(template, day, leap_day_policy):
                continue
            if (template.id, day) in completed_on:
                continue
            row = rows.get((template.id, day))
            if row is not None and (row.completed or row.id in completed_task_ids):
                continue
            missed.append(day)
            if row is not None:
                occurrence_ids[day] = row.id

        if missed:
            incomplete_recurring.append(MissedOccurrences(template, missed, occurrence_ids))

    return RolloverCandidates(incomplete_single, incomplete_recurring)


def forward_single(task: Any, today: date) -> Dict[str, Any]:
    """Fields of the copy that replaces an overdue single task today."""
    task_type = getattr(task.task_type, "value", task.task_type)
    return {
        "title": task.title,
        "memo": task.memo,
        "category": task.category,
        "importance": task.importance,
        "due_date": today,
        "task_type": task_type,
        "carried_from_task_id": task.id,
        "rollover_count": (task.rollover_count or 0) + 1,
    }


def forward_recurring(
    missed: MissedOccurrences,
    today: date,
    mode: str = "per_date",
) -> List[Dict[str, Any]]:
    """Fields of the tasks standing in for missed occurrences.

    ``per_date`` yields one task per missed date; ``consolidated`` a single
    catch-up task. Each records the latest missed date it covers.
    """
    template = missed.template
    base = {
        "memo": template.memo,
        "category": template.category,
        "importance": template.importance,
        "due_date": today,
        "task_type": "NORMAL",
        "carried_from_template_id": template.id,
    }
    ordered: Sequence[date] = sorted(missed.missed_dates)
    if mode == "consolidated":
        return [{
            **base,
            "title": f"{template.title} (catch-up: {len(ordered)} missed)",
            "carried_through": ordered[-1],
            "rollover_count": len(ordered),
        }]
    return [
        {
            **base,
            "title": f"{template.title} (carried over from {dates.format_date(day)})",
            "carried_through": day,
            "rollover_count": 1,
        }
        for day in ordered
    ]
