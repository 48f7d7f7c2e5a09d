from datetime import date, datetime, time
from typing import Optional

from taskcycle.models import Task
from taskcycle.schemas import CarryoverResultOut, TaskOut
from taskcycle.repositories import TaskFilter
from taskcycle.store import GenerationState
from taskcycle.engine import dates
from .base import BaseService


class ShoppingCarryoverService(BaseService):
    """Moves unbought items of a finished shopping list onto a new, dateless list."""

    def is_shopping(self, task: Task) -> bool:
        return task.category == self.config.shopping_category

    def _pending_duplicate(self, title: str) -> Optional[Task]:
        matches = self.store.list_tasks(TaskFilter(
            title=title,
            category=self.config.shopping_category,
            completed=False,
            dateless=True,
            limit=1,
        ))
        return matches[0] if matches else None

    def _carried_before(self, task_id: str) -> bool:
        return bool(self.store.list_tasks(TaskFilter(carried_from_task_id=task_id, limit=1)))

    def stage_carryover(self, task: Task, today: date) -> Optional[Task]:
        """Create the follow-up list in the open transaction, if one is needed.

        Each list is carried over at most once: the follow-up records its
        source in ``carried_from_task_id``.
        """
        if not self.is_shopping(task):
            return None

        if self._carried_before(task.id):
            self.logger.info(f"Shopping task {task.id} was already carried over, skipping")
            return None

        unfinished = [s for s in self.store.list_subtasks(task.id) if not s.completed]
        if not unfinished:
            self.logger.debug(f"Shopping task {task.id} has no unfinished items")
            return None

        existing = self._pending_duplicate(task.title)
        if existing is not None and existing.id != task.id:
            self.logger.info(f"Pending shopping list '{task.title}' already exists ({existing.id}), skipping carryover")
            return None

        carried = self.store.create_task({
            "title": task.title,
            "memo": task.memo,
            "category": task.category,
            "importance": task.importance,
            "due_date": None,
            "task_type": "NORMAL",
            "carried_from_task_id": task.id,
        }, today)
        for position, item in enumerate(unfinished):
            self.store.create_subtask(carried.id, item.title, completed=False, sort_order=position)

        self.logger.info(f"Carried {len(unfinished)} unfinished items from {task.id} to {carried.id}")
        return carried

    def carry_over_unfinished_items(self, task_id: str, today: Optional[date] = None) -> Optional[TaskOut]:
        today = self.today(today)
        try:
            task = self.store.get_task(task_id)
            carried = self.stage_carryover(task, today)
            if carried is None:
                return None
            self.commit()
            return self.store.tasks.to_schema(carried)

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to carry over shopping task {task_id}: {str(e)}")
            raise

    def process_completed(self, today: Optional[date] = None) -> CarryoverResultOut:
        """Carry over every shopping list completed since the last run.

        Covers completions in (last_shopping_processed, today]; the first run
        covers today only. The marker moves with the same commit.
        """
        today = self.today(today)
        try:
            state = self.store.load_state()
            if state.last_shopping_processed is not None and state.last_shopping_processed >= today:
                self.logger.debug(f"Shopping lists already processed through {state.last_shopping_processed}")
                return CarryoverResultOut(last_shopping_processed=state.last_shopping_processed)

            first_day = today if state.last_shopping_processed is None else dates.add_days(state.last_shopping_processed, 1)
            completed = self.store.list_tasks(TaskFilter(
                category=self.config.shopping_category,
                completed=True,
                completed_at_from=datetime.combine(first_day, time.min),
                completed_at_before=datetime.combine(dates.add_days(today, 1), time.min),
            ))

            created = []
            skipped = 0
            for task in completed:
                carried = self.stage_carryover(task, today)
                if carried is None:
                    skipped += 1
                else:
                    created.append(carried.id)

            self.store.save_state(GenerationState(
                last_task_generation=state.last_task_generation,
                last_shopping_processed=today,
            ))
            self.commit()

            self.logger.info(f"Processed {len(completed)} completed shopping lists, created {len(created)}")
            return CarryoverResultOut(
                processed=len(completed),
                created_task_ids=created,
                skipped=skipped,
                last_shopping_processed=today,
            )

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to process completed shopping lists: {str(e)}")
            raise
