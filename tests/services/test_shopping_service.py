import pytest
from datetime import timedelta

from taskcycle.services import ShoppingCarryoverService, TaskService
from taskcycle.schemas import TaskCreate
from taskcycle.repositories import TaskFilter
from taskcycle.store import LAST_SHOPPING_PROCESSED
from taskcycle.engine import dates


class TestShoppingCarryover:
    """Test carryover of unbought items from completed shopping lists."""

    @pytest.fixture
    def task_service(self, test_db, user_id, config):
        return TaskService(test_db, user_id, config)

    @pytest.fixture
    def shopping_service(self, test_db, user_id, config):
        return ShoppingCarryoverService(test_db, user_id, config)

    @pytest.fixture
    def shopping_list(self, task_service, today):
        created = task_service.create_task(
            TaskCreate(title="Groceries", category="shopping", due_date=today, subtasks=["Milk", "Eggs", "Bread"]),
            today=today,
        )
        task_service.toggle_subtask(created.subtasks[1].id)  # Eggs bought
        return created

    def _pending_lists(self, service):
        return service.store.list_tasks(TaskFilter(category="shopping", completed=False, dateless=True))

    def test_completing_list_carries_unbought_items(self, task_service, shopping_service, shopping_list, today):
        task_service.complete_task(shopping_list.id, today=today)

        (carried,) = self._pending_lists(shopping_service)
        assert carried.title == "Groceries"
        assert carried.id != shopping_list.id
        assert dates.is_dateless(carried.due_date)
        assert [(s.title, s.completed) for s in carried.subtasks] == [("Milk", False), ("Bread", False)]

    def test_second_completion_does_not_duplicate(self, task_service, shopping_service, shopping_list, today):
        task_service.complete_task(shopping_list.id, today=today)
        task_service.uncomplete_task(shopping_list.id, today=today)
        task_service.complete_task(shopping_list.id, today=today)

        assert len(self._pending_lists(shopping_service)) == 1

    def test_direct_carryover_is_idempotent(self, task_service, shopping_service, shopping_list, today):
        task_service.complete_task(shopping_list.id, today=today)
        assert shopping_service.carry_over_unfinished_items(shopping_list.id, today=today) is None
        assert len(self._pending_lists(shopping_service)) == 1

    def test_everything_bought_creates_nothing(self, task_service, shopping_service, today):
        created = task_service.create_task(
            TaskCreate(title="Snacks", category="shopping", subtasks=["Chips"]), today=today
        )
        task_service.toggle_subtask(created.subtasks[0].id)

        task_service.complete_task(created.id, today=today)

        assert self._pending_lists(shopping_service) == []

    def test_other_categories_are_ignored(self, task_service, shopping_service, today):
        created = task_service.create_task(
            TaskCreate(title="Packing", category="travel", subtasks=["Socks"]), today=today
        )
        task_service.complete_task(created.id, today=today)
        assert shopping_service.store.list_tasks(TaskFilter(title="Packing", completed=False)) == []

    def test_process_completed_advances_marker(self, task_service, shopping_service, shopping_list, test_db):
        today = shopping_service.today()
        # completed without the automatic carryover, e.g. by an older client
        shopping_service.store.update_task(shopping_list.id, {
            "completed": True,
            "completed_at": dates.local_now(shopping_service.config.timezone),
        })
        test_db.commit()

        result = shopping_service.process_completed(today)

        assert result.processed == 1
        assert len(result.created_task_ids) == 1
        assert result.last_shopping_processed == today
        assert shopping_service.store.get_metadata(LAST_SHOPPING_PROCESSED) == dates.format_date(today)

        again = shopping_service.process_completed(today)
        assert again.processed == 0
        assert len(self._pending_lists(shopping_service)) == 1

    def test_process_completed_skips_already_carried(self, task_service, shopping_service, shopping_list):
        today = shopping_service.today()
        task_service.complete_task(shopping_list.id, today=today)

        result = shopping_service.process_completed(today)

        assert result.processed == 1
        assert result.created_task_ids == []
        assert result.skipped == 1

    def test_sweep_does_not_revive_bought_items(self, task_service, shopping_service, shopping_list):
        today = shopping_service.today()
        task_service.complete_task(shopping_list.id, today=today)
        (carried,) = self._pending_lists(shopping_service)
        assert carried.carried_from_task_id == shopping_list.id
        for item in carried.subtasks:
            task_service.toggle_subtask(item.id)
        task_service.complete_task(carried.id, today=today)

        result = shopping_service.process_completed(today)

        assert result.processed == 2
        assert result.created_task_ids == []
        assert self._pending_lists(shopping_service) == []

    def test_process_completed_window(self, task_service, shopping_service, shopping_list):
        today = shopping_service.today()
        shopping_service.store.set_metadata(LAST_SHOPPING_PROCESSED, dates.format_date(today - timedelta(days=1)))
        shopping_service.store.update_task(shopping_list.id, {
            "completed": True,
            "completed_at": dates.local_now(shopping_service.config.timezone) - timedelta(days=3),
        })
        shopping_service.commit()

        result = shopping_service.process_completed(today)

        assert result.processed == 0
        assert self._pending_lists(shopping_service) == []
