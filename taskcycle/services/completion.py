from datetime import date
from typing import List, Optional, Tuple

from taskcycle.models import CompletionRecord, Task
from taskcycle.schemas import (
    CompletionOut,
    CompletionStatsOut,
    PeriodStatsOut,
    TaskCompletionCount,
)
from taskcycle.exceptions import ValidationError
from taskcycle.engine import dates, streaks
from .base import BaseService

MAX_PERIOD_DAYS = 366


class CompletionService(BaseService):
    """Completion ledger and the statistics derived from it.

    Streaks and totals are recomputed from the ledger on every call; nothing
    about them is cached on task or template rows.
    """

    def stage_completion(self, task: Task, on_date: date) -> Tuple[CompletionRecord, bool]:
        """Add a record for (task, date) to the open transaction unless one exists."""
        existing = self.store.find_completion(task.id, on_date)
        if existing is not None:
            self.logger.info(f"Completion for task {task.id} on {on_date} already recorded")
            return existing, False
        return self.store.create_completion(task, on_date), True

    def record_completion(self, task_id: str, on_date: Optional[date] = None) -> CompletionOut:
        """Record that a task was done on a date; recording twice is a no-op."""
        on_date = self.today(on_date)
        try:
            task = self.store.get_task(task_id)
            record, created = self.stage_completion(task, on_date)
            if created:
                self.commit()
                self.logger.info(f"Recorded completion of task {task_id} on {on_date}")
            return CompletionOut.model_validate(record)

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to record completion for task {task_id}: {str(e)}")
            raise

    def remove_completion(self, task_id: str, on_date: Optional[date] = None) -> bool:
        """Delete the record for (task, date); False when there was none."""
        on_date = self.today(on_date)
        try:
            self.store.get_task(task_id)
            record = self.store.find_completion(task_id, on_date)
            if record is None:
                self.logger.debug(f"No completion for task {task_id} on {on_date}")
                return False
            self.store.delete_completion(record.id)
            self.commit()
            self.logger.info(f"Removed completion of task {task_id} on {on_date}")
            return True

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to remove completion for task {task_id}: {str(e)}")
            raise

    def _task_dates(self, task_id: str) -> List[date]:
        return [r.completion_date for r in self.store.list_completions(task_id=task_id)]

    def _template_dates(self, template_id: str) -> List[date]:
        return [r.completion_date for r in self.store.list_completions(template_id=template_id)]

    def streak_for(self, task_id: str, today: Optional[date] = None) -> int:
        return streaks.current_streak(self._task_dates(task_id), self.today(today))

    def streak_for_template(self, template_id: str, today: Optional[date] = None) -> int:
        return streaks.current_streak(self._template_dates(template_id), self.today(today))

    def is_completed_today(self, task_id: str, today: Optional[date] = None) -> bool:
        return self.store.find_completion(task_id, self.today(today)) is not None

    def _stats_out(self, subject_id: str, title: str, completion_dates: List[date], today: date) -> CompletionStatsOut:
        summary = streaks.summarize(completion_dates, today)
        return CompletionStatsOut(
            subject_id=subject_id,
            title=title,
            current_streak=summary.current_streak,
            longest_streak=streaks.longest_streak(summary.completion_dates),
            total_completions=summary.total_completions,
            last_completed_date=summary.last_completed_date,
            is_completed_today=summary.is_completed_today,
            completion_dates=summary.completion_dates,
        )

    def stats(self, task_id: str, today: Optional[date] = None) -> CompletionStatsOut:
        task = self.store.get_task(task_id)
        self.logger.debug(f"Computing completion stats for task {task_id}")
        return self._stats_out(task.id, task.title, self._task_dates(task_id), self.today(today))

    def template_stats(self, template_id: str, today: Optional[date] = None) -> CompletionStatsOut:
        """Stats across every occurrence a template has produced."""
        template = self.store.get_template(template_id)
        self.logger.debug(f"Computing completion stats for template {template_id}")
        return self._stats_out(template.id, template.title, self._template_dates(template_id), self.today(today))

    def completions_for_date(self, on_date: Optional[date] = None) -> List[CompletionOut]:
        records = self.store.list_completions(on_date=self.today(on_date))
        return [CompletionOut.model_validate(r) for r in records]

    def period_stats(self, start: date, end: date) -> PeriodStatsOut:
        """Daily and per-task completion counts over an inclusive range."""
        if end < start:
            raise ValidationError("end must not be before start")
        if dates.diff_days(start, end) > MAX_PERIOD_DAYS:
            raise ValidationError(f"Period cannot exceed {MAX_PERIOD_DAYS} days")

        records = self.store.list_completions(start=start, end=end)
        per_task = {}
        for record in records:
            # occurrences of one template are grouped under the template
            key = record.template_id or record.original_task_id
            entry = per_task.setdefault(key, TaskCompletionCount(title=record.task_title, count=0))
            entry.count += 1

        return PeriodStatsOut(
            start=start,
            end=end,
            total_completions=len(records),
            daily_completions=streaks.daily_counts(r.completion_date for r in records),
            task_completions=per_task,
        )
