from typing import List
from sqlalchemy.orm import Session
from sqlalchemy import select, func

from taskcycle.models import SubTask
from .base import BaseRepository


class SubTaskRepository(BaseRepository[SubTask]):
    """Repository for SubTask operations."""

    id_prefix = "sub"

    def __init__(self, db: Session, user_id: str):
        super().__init__(db, SubTask, user_id)

    def list_for_parent(self, parent_task_id: str) -> List[SubTask]:
        return list(self.db.execute(
            self._scoped()
            .where(SubTask.parent_task_id == parent_task_id)
            .order_by(SubTask.sort_order.asc(), SubTask.created_at.asc())
        ).scalars().all())

    def next_sort_order(self, parent_task_id: str) -> int:
        """Append position: one past the current maximum."""
        current = self.db.execute(
            select(func.max(SubTask.sort_order)).where(
                SubTask.user_id == self.user_id,
                SubTask.parent_task_id == parent_task_id
            )
        ).scalar()
        return 0 if current is None else current + 1
