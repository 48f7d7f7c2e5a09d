from datetime import date
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session

from taskcycle.core.config import Settings
from taskcycle.models import TaskTypeEnum
from taskcycle.repositories import TaskFilter
from taskcycle.schemas import TaskCreate, TaskOut, SubTaskOut, CompletionStatsOut
from taskcycle.exceptions import ValidationError
from taskcycle.engine import dates
from .base import BaseService
from .completion import CompletionService
from .shopping import ShoppingCarryoverService

MAX_LIST_LIMIT = 1000


class TaskService(BaseService):
    """Service for task business logic."""

    def __init__(self, db: Session, user_id: str, config: Optional[Settings] = None):
        super().__init__(db, user_id, config)
        # share the session so a completion and its side effects commit together
        self.completions = CompletionService(db, user_id, self.config)
        self.shopping = ShoppingCarryoverService(db, user_id, self.config)

    def create_task(self, task_in: TaskCreate, today: Optional[date] = None) -> TaskOut:
        """Create a user task, optionally with a checklist of subtasks."""
        try:
            self.logger.info(f"Creating {task_in.task_type} task for user {self.user_id}: {task_in.title}")

            if not task_in.title or not task_in.title.strip():
                raise ValidationError("Task title cannot be empty")

            fields = task_in.model_dump(exclude={"subtasks"})
            fields["title"] = fields["title"].strip()
            task = self.store.create_task(fields, self.today(today))
            for position, title in enumerate(task_in.subtasks):
                self.store.create_subtask(task.id, title, sort_order=position)
            self.commit()

            self.logger.info(f"Task created successfully: {task.id} ({task.display_number})")
            return self.store.tasks.to_schema(task)

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to create task: {str(e)}")
            raise

    def get_task(self, task_id: str) -> TaskOut:
        """Get a task by ID."""
        self.logger.debug(f"Fetching task {task_id} for user {self.user_id}")
        return self.store.tasks.to_schema(self.store.get_task(task_id))

    def list_tasks(
        self,
        due_from: Optional[date] = None,
        due_to: Optional[date] = None,
        completed: Optional[bool] = None,
        category: Optional[str] = None,
        task_type: Optional[List[str]] = None,
        template_id: Optional[str] = None,
        archived: Optional[bool] = False,
        limit: Optional[int] = None,
    ) -> List[TaskOut]:
        """List tasks; archived tasks are hidden unless asked for."""
        self.logger.debug(f"Listing tasks for user {self.user_id} (due {due_from}..{due_to}, completed={completed})")

        if limit is not None and limit > MAX_LIST_LIMIT:
            raise ValidationError(f"Limit cannot exceed {MAX_LIST_LIMIT}")
        if due_from is not None and due_to is not None and due_to < due_from:
            raise ValidationError("due_date_end must not be before due_date_start")

        tasks = self.store.list_tasks(TaskFilter(
            due_from=due_from,
            due_to=due_to,
            completed=completed,
            category=category,
            task_types=task_type,
            template_id=template_id,
            archived=archived,
            limit=limit,
        ))
        return self.store.tasks.to_schema_batch(tasks)

    def update_task(self, task_id: str, update_data: Dict[str, Any]) -> TaskOut:
        """Update a task. The display number is kept when the due date moves."""
        try:
            self.logger.info(f"Updating task {task_id} for user {self.user_id}")

            task = self.store.get_task(task_id)
            fields = dict(update_data)

            if "title" in fields:
                if not fields["title"] or not fields["title"].strip():
                    raise ValidationError("Task title cannot be empty")
                fields["title"] = fields["title"].strip()

            if fields.pop("clear_due_date", False):
                fields["due_date"] = dates.NO_DUE_DATE

            if "task_type" in fields:
                if task.task_type.value == "RECURRING":
                    raise ValidationError("A generated occurrence cannot change its task type")
                fields["task_type"] = TaskTypeEnum(fields["task_type"])

            if task.task_type.value == "RECURRING" and "due_date" in fields and dates.is_dateless(fields["due_date"]):
                raise ValidationError("A generated occurrence must keep a due date")

            task = self.store.update_task(task_id, fields)
            self.commit()

            self.logger.info(f"Task updated successfully: {task_id}")
            return self.store.tasks.to_schema(task)

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to update task {task_id}: {str(e)}")
            raise

    def delete_task(self, task_id: str) -> bool:
        """Delete a task; its subtasks go with it, its completion records stay."""
        try:
            self.logger.info(f"Deleting task {task_id} for user {self.user_id}")
            self.store.delete_task(task_id)
            self.commit()
            self.logger.info(f"Task deleted successfully: {task_id}")
            return True

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to delete task {task_id}: {str(e)}")
            raise

    def complete_task(self, task_id: str, today: Optional[date] = None) -> TaskOut:
        """Mark a task done and record the completion for today.

        Completing a shopping list also carries its unbought items over to a
        new dateless list in the same transaction.
        """
        today = self.today(today)
        try:
            self.logger.info(f"Completing task {task_id} for user {self.user_id}")

            task = self.store.get_task(task_id)
            if task.completed:
                self.logger.info(f"Task {task_id} is already completed")
                return self.store.tasks.to_schema(task)

            task = self.store.update_task(task_id, {
                "completed": True,
                "completed_at": dates.local_now(self.config.timezone),
            })
            self.completions.stage_completion(task, today)
            carried = self.shopping.stage_carryover(task, today)
            self.commit()

            if carried is not None:
                self.logger.info(f"Shopping list {task_id} carried over to {carried.id}")
            self.logger.info(f"Task completed successfully: {task_id}")
            return self.store.tasks.to_schema(task)

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to complete task {task_id}: {str(e)}")
            raise

    def uncomplete_task(self, task_id: str, today: Optional[date] = None) -> TaskOut:
        """Reopen a task and drop its most recent completion record."""
        today = self.today(today)
        try:
            self.logger.info(f"Reopening task {task_id} for user {self.user_id}")

            task = self.store.get_task(task_id)
            records = self.store.list_completions(task_id=task_id, end=today)
            if task.completed and records:
                latest = max(records, key=lambda r: r.completion_date)
                self.store.delete_completion(latest.id)
            task = self.store.update_task(task_id, {"completed": False, "completed_at": None})
            self.commit()

            self.logger.info(f"Task reopened successfully: {task_id}")
            return self.store.tasks.to_schema(task)

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to reopen task {task_id}: {str(e)}")
            raise

    def task_stats(self, task_id: str, today: Optional[date] = None) -> CompletionStatsOut:
        return self.completions.stats(task_id, today)

    # Subtasks

    def list_subtasks(self, task_id: str) -> List[SubTaskOut]:
        self.store.get_task(task_id)
        return [SubTaskOut.model_validate(s) for s in self.store.list_subtasks(task_id)]

    def add_subtask(self, task_id: str, title: str, sort_order: Optional[int] = None) -> SubTaskOut:
        try:
            subtask = self.store.create_subtask(task_id, title, sort_order=sort_order)
            self.commit()
            self.logger.info(f"Subtask {subtask.id} added to task {task_id}")
            return SubTaskOut.model_validate(subtask)

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to add subtask to task {task_id}: {str(e)}")
            raise

    def update_subtask(self, subtask_id: str, update_data: Dict[str, Any]) -> SubTaskOut:
        try:
            fields = dict(update_data)
            if "title" in fields:
                if not fields["title"] or not fields["title"].strip():
                    raise ValidationError("Subtask title cannot be empty")
                fields["title"] = fields["title"].strip()
            subtask = self.store.update_subtask(subtask_id, fields)
            self.commit()
            self.logger.info(f"Subtask updated successfully: {subtask_id}")
            return SubTaskOut.model_validate(subtask)

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to update subtask {subtask_id}: {str(e)}")
            raise

    def toggle_subtask(self, subtask_id: str) -> SubTaskOut:
        try:
            subtask = self.store.get_subtask(subtask_id)
            subtask = self.store.update_subtask(subtask_id, {"completed": not subtask.completed})
            self.commit()
            self.logger.info(f"Subtask {subtask_id} marked {'done' if subtask.completed else 'open'}")
            return SubTaskOut.model_validate(subtask)

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to toggle subtask {subtask_id}: {str(e)}")
            raise

    def delete_subtask(self, subtask_id: str) -> bool:
        try:
            self.store.delete_subtask(subtask_id)
            self.commit()
            self.logger.info(f"Subtask deleted successfully: {subtask_id}")
            return True

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to delete subtask {subtask_id}: {str(e)}")
            raise
