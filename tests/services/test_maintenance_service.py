import pytest
from datetime import date, timedelta

from taskcycle.services import MaintenanceService, TemplateService, TaskService
from taskcycle.schemas import TemplateCreate, TaskCreate
from taskcycle.repositories import TaskFilter


class TestMaintenanceService:
    """Test the combined daily run."""

    @pytest.fixture
    def maintenance(self, test_db, user_id, config):
        return MaintenanceService(test_db, user_id, config)

    @pytest.fixture
    def template(self, test_db, user_id, config):
        return TemplateService(test_db, user_id, config).create_template(
            TemplateCreate(title="Stretch", pattern="DAILY", start_date=date(2025, 9, 1))
        )

    def test_daily_run(self, maintenance, template, today):
        result = maintenance.run(today)

        assert result.today == today
        assert result.generation.created == 1
        assert result.generation.last_task_generation == today
        assert result.shopping.last_shopping_processed == today
        assert result.rollover is None
        assert result.expiry.total == 0

    def test_rerun_is_noop(self, maintenance, template, today):
        maintenance.run(today)
        again = maintenance.run(today)

        assert again.generation.created == 0
        assert len(maintenance.store.list_tasks()) == 1

    def test_days_later_catches_up_then_expires(self, maintenance, template, today):
        maintenance.run(today)

        later = maintenance.run(today + timedelta(days=6))

        assert later.generation.created == 6
        # occurrences from 2025-09-10 through 09-12 are now more than 3 days old
        assert later.expiry.deleted["DAILY"] == 3
        due = [t.due_date for t in maintenance.store.list_tasks(TaskFilter(task_types=["RECURRING"]))]
        assert due == [date(2025, 9, 13) + timedelta(days=n) for n in range(4)]

    def test_auto_rollover(self, maintenance, test_db, user_id, config, today):
        overdue = TaskService(test_db, user_id, config).create_task(
            TaskCreate(title="Reply to landlord", due_date=today - timedelta(days=1)), today=today
        )

        result = maintenance.run(today, auto_rollover=True)

        assert result.rollover is not None
        assert len(result.rollover.created_task_ids) == 1
        assert maintenance.store.get_task(overdue.id).completed is True
