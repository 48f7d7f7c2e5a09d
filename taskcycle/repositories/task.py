from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import select, func
from datetime import date, datetime

from taskcycle.models import Task, TaskTypeEnum, PatternEnum
from taskcycle.schemas import NewTask, TaskOut, SubTaskOut
from taskcycle.engine import dates, numbering
from .base import BaseRepository


@dataclass
class TaskFilter:
    """Criteria for ``TaskRepository.list_tasks``; ``None`` means "any"."""
    due_from: Optional[date] = None
    due_to: Optional[date] = None
    completed: Optional[bool] = None
    category: Optional[str] = None
    task_types: Optional[Sequence[str]] = None
    template_id: Optional[str] = None
    title: Optional[str] = None
    archived: Optional[bool] = None
    dateless: Optional[bool] = None
    completed_at_from: Optional[datetime] = None
    completed_at_before: Optional[datetime] = None
    carried_from_task_id: Optional[str] = None
    carried_from_template_id: Optional[str] = None
    carried_through: Optional[date] = None
    limit: Optional[int] = None


class TaskRepository(BaseRepository[Task]):
    """Repository for Task operations."""

    id_prefix = "task"

    def __init__(self, db: Session, user_id: str):
        super().__init__(db, Task, user_id)

    def _existing_numbers(self, prefix: str) -> List[str]:
        return list(self.db.execute(
            select(Task.display_number).where(
                Task.user_id == self.user_id,
                Task.display_number.like(f"{prefix}%")
            )
        ).scalars().all())

    def create_task(self, new_task: NewTask, today: date) -> Task:
        """Insert a validated task row with the next free display number."""
        data = new_task.model_dump()
        due = data.pop("due_date") or dates.NO_DUE_DATE
        prefix = numbering.prefix_for(new_task.task_type, due, today)

        task = Task(
            id=self._gen_id(),
            user_id=self.user_id,
            display_number=numbering.next_number(prefix, self._existing_numbers(prefix)),
            due_date=due,
            completed=False,
            **{
                **data,
                "task_type": TaskTypeEnum(data["task_type"]),
                "recurring_pattern": PatternEnum(data["recurring_pattern"]) if data["recurring_pattern"] else None,
            }
        )
        self.db.add(task)
        self.db.flush()
        self.db.refresh(task)
        return task

    def list_tasks(self, criteria: Optional[TaskFilter] = None) -> List[Task]:
        """Tasks matching every given criterion, ordered by due date then number."""
        c = criteria or TaskFilter()
        query = self._scoped().options(selectinload(Task.subtasks))

        if c.due_from is not None:
            query = query.where(Task.due_date >= c.due_from)
        if c.due_to is not None:
            query = query.where(Task.due_date <= c.due_to)
        if c.completed is not None:
            query = query.where(Task.completed == c.completed)
        if c.category is not None:
            query = query.where(Task.category == c.category)
        if c.task_types:
            query = query.where(Task.task_type.in_([TaskTypeEnum(t) for t in c.task_types]))
        if c.template_id is not None:
            query = query.where(Task.recurring_template_id == c.template_id)
        if c.title is not None:
            query = query.where(Task.title == c.title)
        if c.archived is not None:
            query = query.where(Task.archived == c.archived)
        if c.dateless is True:
            query = query.where(Task.due_date >= dates.NO_DUE_DATE)
        elif c.dateless is False:
            query = query.where(Task.due_date < dates.NO_DUE_DATE)
        if c.completed_at_from is not None:
            query = query.where(Task.completed_at >= c.completed_at_from)
        if c.completed_at_before is not None:
            query = query.where(Task.completed_at < c.completed_at_before)
        if c.carried_from_task_id is not None:
            query = query.where(Task.carried_from_task_id == c.carried_from_task_id)
        if c.carried_from_template_id is not None:
            query = query.where(Task.carried_from_template_id == c.carried_from_template_id)
        if c.carried_through is not None:
            query = query.where(Task.carried_through == c.carried_through)

        query = query.order_by(Task.due_date.asc(), Task.display_number.asc())
        if c.limit is not None:
            query = query.limit(c.limit)
        return list(self.db.execute(query).scalars().all())

    def find_occurrence(self, template_id: str, due_date: date) -> Optional[Task]:
        """The generated row for (template, date), if any."""
        return self.db.execute(
            self._scoped().where(
                Task.recurring_template_id == template_id,
                Task.due_date == due_date
            ).limit(1)
        ).scalars().first()

    def carried_through_by_template(self) -> Dict[str, date]:
        """Latest missed date already rolled forward, per template."""
        rows = self.db.execute(
            select(Task.carried_from_template_id, func.max(Task.carried_through)).where(
                Task.user_id == self.user_id,
                Task.carried_from_template_id.is_not(None)
            ).group_by(Task.carried_from_template_id)
        ).all()
        return {template_id: through for template_id, through in rows}

    def to_schema(self, task: Task) -> TaskOut:
        """Convert Task model to TaskOut schema."""
        return TaskOut(
            id=task.id,
            display_number=task.display_number,
            title=task.title,
            memo=task.memo,
            category=task.category,
            importance=task.importance,
            due_date=None if dates.is_dateless(task.due_date) else task.due_date,
            completed=task.completed,
            completed_at=task.completed_at,
            task_type=task.task_type.value,
            recurring_template_id=task.recurring_template_id,
            recurring_pattern=task.recurring_pattern.value if task.recurring_pattern else None,
            carried_from_task_id=task.carried_from_task_id,
            carried_from_template_id=task.carried_from_template_id,
            carried_through=task.carried_through,
            rollover_count=task.rollover_count,
            archived=task.archived,
            sort_order=task.sort_order,
            subtasks=[SubTaskOut.model_validate(s) for s in task.subtasks],
            created_at=task.created_at,
            updated_at=task.updated_at
        )

    def to_schema_batch(self, tasks: List[Task]) -> List[TaskOut]:
        return [self.to_schema(task) for task in tasks]
