from datetime import date
from typing import Dict, List, Optional

from taskcycle.models import Task
from taskcycle.repositories import TaskFilter
from taskcycle.schemas import ExpiryResultOut
from taskcycle.engine import dates, expiry, patterns
from .base import BaseService


class ExpiryService(BaseService):
    """Deletes unfinished recurring occurrences older than their pattern allows."""

    def find_expired(self, today: Optional[date] = None) -> List[Task]:
        today = self.today(today)
        # nothing due on or after the shortest cutoff can be expired
        earliest_cutoff = expiry.cutoff_date(min(expiry.RETENTION_DAYS, key=expiry.RETENTION_DAYS.get), today)
        stale = self.store.list_tasks(TaskFilter(
            task_types=["RECURRING"],
            completed=False,
            due_to=dates.add_days(earliest_cutoff, -1),
        ))
        return [task for task in stale if expiry.is_expired(task, today)]

    def collect_expired(self, today: Optional[date] = None) -> ExpiryResultOut:
        """Delete expired occurrences and report how many went, per pattern."""
        today = self.today(today)
        try:
            expired = self.find_expired(today)
            deleted: Dict[str, int] = {pattern: 0 for pattern in patterns.PATTERNS}
            deleted_ids: List[str] = []
            for task in expired:
                pattern = task.recurring_pattern.value
                self.store.delete_task(task.id)
                deleted[pattern] += 1
                deleted_ids.append(task.id)
            self.commit()

            if deleted_ids:
                summary = ", ".join(f"{p} {n}" for p, n in deleted.items() if n)
                self.logger.info(f"Deleted {len(deleted_ids)} expired occurrences for user {self.user_id} ({summary})")
            else:
                self.logger.debug(f"No expired occurrences for user {self.user_id}")
            return ExpiryResultOut(today=today, deleted=deleted, deleted_task_ids=deleted_ids, total=len(deleted_ids))

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to delete expired occurrences: {str(e)}")
            raise
