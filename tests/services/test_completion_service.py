import pytest
from datetime import date, timedelta

from taskcycle.services import CompletionService, GenerationService, TemplateService, TaskService
from taskcycle.schemas import TaskCreate, TemplateCreate
from taskcycle.exceptions import NotFoundError, ValidationError


class TestCompletionService:
    """Test the completion ledger and streaks derived from it."""

    @pytest.fixture
    def completion_service(self, test_db, user_id, config):
        return CompletionService(test_db, user_id, config)

    @pytest.fixture
    def task(self, test_db, user_id, config, sample_task_data, today):
        return TaskService(test_db, user_id, config).create_task(TaskCreate(**sample_task_data), today=today)

    def test_record_twice_keeps_one_record(self, completion_service, task, today):
        first = completion_service.record_completion(task.id, today)
        second = completion_service.record_completion(task.id, today)

        assert first.id == second.id
        assert first.task_title == "Write report"
        assert len(completion_service.store.list_completions(task_id=task.id)) == 1

    def test_record_unknown_task(self, completion_service, today):
        with pytest.raises(NotFoundError):
            completion_service.record_completion("task_missing", today)

    def test_streak_of_three(self, completion_service, task, today):
        for offset in (0, 1, 2):
            completion_service.record_completion(task.id, today - timedelta(days=offset))
        completion_service.record_completion(task.id, today - timedelta(days=4))

        assert completion_service.streak_for(task.id, today) == 3

    def test_streak_survives_open_today(self, completion_service, task, today):
        completion_service.record_completion(task.id, today - timedelta(days=1))
        assert completion_service.streak_for(task.id, today) == 1
        assert completion_service.is_completed_today(task.id, today) is False

    def test_remove_completion(self, completion_service, task, today):
        completion_service.record_completion(task.id, today)

        assert completion_service.remove_completion(task.id, today) is True
        assert completion_service.remove_completion(task.id, today) is False
        assert completion_service.is_completed_today(task.id, today) is False

    def test_stats(self, completion_service, task, today):
        completion_service.record_completion(task.id, today - timedelta(days=1))
        completion_service.record_completion(task.id, today)

        stats = completion_service.stats(task.id, today)

        assert stats.subject_id == task.id
        assert stats.total_completions == 2
        assert stats.current_streak == 2
        assert stats.longest_streak == 2
        assert stats.last_completed_date == today
        assert stats.is_completed_today is True

    def test_template_streak_spans_occurrences(self, completion_service, test_db, user_id, config, today):
        template = TemplateService(test_db, user_id, config).create_template(
            TemplateCreate(title="Meditate", pattern="DAILY", start_date=date(2025, 9, 1))
        )
        GenerationService(test_db, user_id, config).generate(date(2025, 9, 7), today, today=today)
        occurrences = completion_service.store.list_tasks()
        for task in occurrences:
            if task.due_date >= date(2025, 9, 8):
                completion_service.record_completion(task.id, task.due_date)

        assert completion_service.streak_for_template(template.id, today) == 3
        stats = completion_service.template_stats(template.id, today)
        assert stats.total_completions == 3
        assert stats.title == "Meditate"

    def test_period_stats(self, completion_service, task, test_db, user_id, config, today):
        other = TaskService(test_db, user_id, config).create_task(TaskCreate(title="Call mom"), today=today)
        completion_service.record_completion(task.id, today - timedelta(days=1))
        completion_service.record_completion(task.id, today)
        completion_service.record_completion(other.id, today)

        period = completion_service.period_stats(today - timedelta(days=6), today)

        assert period.total_completions == 3
        assert period.daily_completions == {today: 2, today - timedelta(days=1): 1}
        assert period.task_completions[task.id].count == 2
        assert period.task_completions[other.id].title == "Call mom"

    def test_period_stats_bounds(self, completion_service, today):
        with pytest.raises(ValidationError):
            completion_service.period_stats(today, today - timedelta(days=1))

    def test_completions_for_date(self, completion_service, task, today):
        completion_service.record_completion(task.id, today)
        assert [c.original_task_id for c in completion_service.completions_for_date(today)] == [task.id]
        assert completion_service.completions_for_date(today - timedelta(days=1)) == []
