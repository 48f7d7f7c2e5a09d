"""The store boundary the engine reads and writes through.

``TaskStore`` bundles the owner-scoped repositories behind one function-call
contract. Database failures surface as ``StoreUnavailableError``; the store
never retries and never holds locks, so duplicate protection is left to the
existence checks callers make immediately before inserting.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from functools import wraps
from typing import Any, Dict, Iterable, List, Optional, Union

import pydantic
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskcycle.core.logging import get_logger
from taskcycle.engine import dates
from taskcycle.exceptions import NotFoundError, StoreUnavailableError, ValidationError
from taskcycle.models import CompletionRecord, GenerationMetadata, RecurringTemplate, SubTask, Task
from taskcycle.repositories import (
    CompletionRepository,
    MetadataRepository,
    SubTaskRepository,
    TaskFilter,
    TaskRepository,
    TemplateRepository,
)
from taskcycle.schemas import NewTask

logger = get_logger(__name__)

LAST_TASK_GENERATION = "last_task_generation"
LAST_SHOPPING_PROCESSED = "last_shopping_processed"


@dataclass(frozen=True)
class GenerationState:
    """Resume markers for generation and shopping carryover runs."""
    last_task_generation: Optional[date] = None
    last_shopping_processed: Optional[date] = None


def store_operation(func):
    """Translate database errors into ``StoreUnavailableError``."""
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Store operation {func.__name__} failed: {str(e)}")
            raise StoreUnavailableError(func.__name__, e) from e
    return wrapper


def build_new_task(fields: Union[NewTask, Dict[str, Any]]) -> NewTask:
    if isinstance(fields, NewTask):
        return fields
    try:
        return NewTask(**fields)
    except pydantic.ValidationError as e:
        messages = "; ".join(err["msg"] for err in e.errors())
        raise ValidationError(f"Invalid task: {messages}", {"errors": e.errors(include_url=False, include_context=False)}) from e


class TaskStore:
    """Owner-scoped access to templates, tasks, subtasks, completions and metadata."""

    def __init__(self, db: Session, user_id: str):
        self.db = db
        self.user_id = user_id
        self.tasks = TaskRepository(db, user_id)
        self.templates = TemplateRepository(db, user_id)
        self.subtasks = SubTaskRepository(db, user_id)
        self.completions = CompletionRepository(db, user_id)
        self.metadata = MetadataRepository(db, user_id)

    # Transactions

    @store_operation
    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    # Templates

    @store_operation
    def list_templates(self, active_only: bool = False, pattern: Optional[str] = None) -> List[RecurringTemplate]:
        return self.templates.list_templates(active_only=active_only, pattern=pattern)

    @store_operation
    def get_template(self, template_id: str) -> RecurringTemplate:
        template = self.templates.get(template_id)
        if template is None:
            raise NotFoundError("Template", template_id)
        return template

    @store_operation
    def create_template(self, fields: Dict[str, Any]) -> RecurringTemplate:
        return self.templates.create(fields)

    @store_operation
    def update_template(self, template_id: str, fields: Dict[str, Any]) -> RecurringTemplate:
        return self.templates.update(self.get_template(template_id), fields)

    @store_operation
    def delete_template(self, template_id: str) -> None:
        if not self.templates.delete(template_id):
            raise NotFoundError("Template", template_id)

    # Tasks

    @store_operation
    def list_tasks(self, criteria: Optional[TaskFilter] = None) -> List[Task]:
        return self.tasks.list_tasks(criteria)

    @store_operation
    def get_task(self, task_id: str) -> Task:
        task = self.tasks.get(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    @store_operation
    def find_occurrence(self, template_id: str, due_date: date) -> Optional[Task]:
        return self.tasks.find_occurrence(template_id, due_date)

    @store_operation
    def carried_through_by_template(self) -> Dict[str, date]:
        return self.tasks.carried_through_by_template()

    @store_operation
    def create_task(self, fields: Union[NewTask, Dict[str, Any]], today: Optional[date] = None) -> Task:
        return self.tasks.create_task(build_new_task(fields), today or dates.today())

    @store_operation
    def update_task(self, task_id: str, fields: Dict[str, Any]) -> Task:
        return self.tasks.update(self.get_task(task_id), fields)

    @store_operation
    def delete_task(self, task_id: str) -> None:
        if not self.tasks.delete(task_id):
            raise NotFoundError("Task", task_id)

    @store_operation
    def delete_tasks(self, task_ids: Iterable[str]) -> int:
        return sum(1 for task_id in list(task_ids) if self.tasks.delete(task_id))

    # Subtasks

    @store_operation
    def list_subtasks(self, parent_task_id: str) -> List[SubTask]:
        return self.subtasks.list_for_parent(parent_task_id)

    @store_operation
    def get_subtask(self, subtask_id: str) -> SubTask:
        subtask = self.subtasks.get(subtask_id)
        if subtask is None:
            raise NotFoundError("SubTask", subtask_id)
        return subtask

    @store_operation
    def create_subtask(self, parent_task_id: str, title: str, completed: bool = False,
                       sort_order: Optional[int] = None) -> SubTask:
        parent = self.get_task(parent_task_id)
        if not title or not title.strip():
            raise ValidationError("Subtask title cannot be empty")
        if sort_order is None:
            sort_order = self.subtasks.next_sort_order(parent_task_id)
        # assigning the relationship keeps an already-loaded parent collection in step
        return self.subtasks.create({
            "parent": parent,
            "title": title.strip(),
            "completed": completed,
            "sort_order": sort_order,
        })

    @store_operation
    def update_subtask(self, subtask_id: str, fields: Dict[str, Any]) -> SubTask:
        return self.subtasks.update(self.get_subtask(subtask_id), fields)

    @store_operation
    def delete_subtask(self, subtask_id: str) -> None:
        subtask = self.get_subtask(subtask_id)
        parent = subtask.parent
        self.subtasks.delete(subtask_id)
        self.db.expire(parent, ["subtasks"])

    # Completions

    @store_operation
    def list_completions(
        self,
        task_id: Optional[str] = None,
        on_date: Optional[date] = None,
        template_id: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[CompletionRecord]:
        return self.completions.list_completions(task_id, on_date, template_id, start, end)

    @store_operation
    def find_completion(self, task_id: str, on_date: date) -> Optional[CompletionRecord]:
        return self.completions.find(task_id, on_date)

    @store_operation
    def create_completion(self, task: Task, on_date: date) -> CompletionRecord:
        return self.completions.create({
            "original_task_id": task.id,
            "template_id": task.recurring_template_id,
            "task_title": task.title,
            "completion_date": on_date,
            "completion_time": dates.local_now(),
        })

    @store_operation
    def delete_completion(self, completion_id: str) -> bool:
        return self.completions.delete(completion_id)

    # Metadata

    @store_operation
    def get_metadata(self, key: str) -> Optional[str]:
        return self.metadata.get_value(key)

    @store_operation
    def set_metadata(self, key: str, value: Optional[str]) -> GenerationMetadata:
        return self.metadata.set_value(key, value)

    def load_state(self) -> GenerationState:
        def as_date(value: Optional[str]) -> Optional[date]:
            return dates.parse_date(value) if value else None

        return GenerationState(
            last_task_generation=as_date(self.get_metadata(LAST_TASK_GENERATION)),
            last_shopping_processed=as_date(self.get_metadata(LAST_SHOPPING_PROCESSED)),
        )

    def save_state(self, state: GenerationState) -> None:
        """Stage both markers; they persist with the caller's commit."""
        if state.last_task_generation is not None:
            self.set_metadata(LAST_TASK_GENERATION, dates.format_date(state.last_task_generation))
        if state.last_shopping_processed is not None:
            self.set_metadata(LAST_SHOPPING_PROCESSED, dates.format_date(state.last_shopping_processed))
