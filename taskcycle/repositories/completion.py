from typing import List, Optional
from datetime import date
from sqlalchemy.orm import Session

from taskcycle.models import CompletionRecord
from .base import BaseRepository


class CompletionRepository(BaseRepository[CompletionRecord]):
    """Repository for the completion ledger (insert/delete only)."""

    id_prefix = "done"

    def __init__(self, db: Session, user_id: str):
        super().__init__(db, CompletionRecord, user_id)

    def list_completions(
        self,
        task_id: Optional[str] = None,
        on_date: Optional[date] = None,
        template_id: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[CompletionRecord]:
        query = self._scoped()
        if task_id is not None:
            query = query.where(CompletionRecord.original_task_id == task_id)
        if on_date is not None:
            query = query.where(CompletionRecord.completion_date == on_date)
        if template_id is not None:
            query = query.where(CompletionRecord.template_id == template_id)
        if start is not None:
            query = query.where(CompletionRecord.completion_date >= start)
        if end is not None:
            query = query.where(CompletionRecord.completion_date <= end)
        query = query.order_by(
            CompletionRecord.completion_date.desc(),
            CompletionRecord.completion_time.desc()
        )
        return list(self.db.execute(query).scalars().all())

    def find(self, task_id: str, on_date: date) -> Optional[CompletionRecord]:
        return self.db.execute(
            self._scoped().where(
                CompletionRecord.original_task_id == task_id,
                CompletionRecord.completion_date == on_date
            ).limit(1)
        ).scalars().first()
