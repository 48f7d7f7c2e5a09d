from datetime import date
from typing import Iterable, List, Optional, Tuple

from taskcycle.models import RecurringTemplate
from taskcycle.schemas import GenerationResultOut
from taskcycle.store import GenerationState
from taskcycle.exceptions import ValidationError
from taskcycle.engine import dates, patterns
from .base import BaseService

MAX_GENERATION_DAYS = 365


class GenerationService(BaseService):
    """Materializes template occurrences as RECURRING task rows.

    Every insert is preceded by an existence check for (template, date), so
    running the same range twice, or two overlapping ranges, creates each
    occurrence once.
    """

    def _check_range(self, from_date: date, to_date: date) -> None:
        if dates.diff_days(from_date, to_date) + 1 > MAX_GENERATION_DAYS:
            raise ValidationError(
                f"Generation range cannot exceed {MAX_GENERATION_DAYS} days",
                {"from_date": dates.format_date(from_date), "to_date": dates.format_date(to_date)}
            )

    def _stage(
        self,
        templates: Iterable[RecurringTemplate],
        from_date: date,
        to_date: date,
        today: date,
    ) -> Tuple[List[str], int]:
        """Insert missing occurrences into the open transaction."""
        created: List[str] = []
        skipped = 0
        for template in templates:
            if not template.active:
                continue
            for day in patterns.occurrences_between(template, from_date, to_date, self.config.leap_day_policy):
                if self.store.find_occurrence(template.id, day) is not None:
                    skipped += 1
                    self.logger.info(f"Occurrence of template {template.id} on {day} already exists, skipping")
                    continue
                task = self.store.create_task({
                    "title": template.title,
                    "memo": template.memo,
                    "category": template.category,
                    "importance": template.importance,
                    "due_date": day,
                    "task_type": "RECURRING",
                    "recurring_template_id": template.id,
                    "recurring_pattern": patterns.pattern_name(template),
                }, today)
                created.append(task.id)
        return created, skipped

    def generate(
        self,
        from_date: date,
        to_date: date,
        templates: Optional[Iterable[RecurringTemplate]] = None,
        today: Optional[date] = None,
    ) -> GenerationResultOut:
        """Create occurrences for an explicit inclusive range.

        ``last_task_generation`` moves to ``to_date`` in the same commit when
        the range continues from it (or there is none yet). A range that
        leaves a gap after the marker, or ends before it, leaves the marker
        alone so catch-up still covers the gap.
        """
        today = self.today(today)
        if to_date < from_date:
            raise ValidationError("to_date must not be before from_date")
        self._check_range(from_date, to_date)

        try:
            self.logger.info(f"Generating occurrences from {from_date} to {to_date} for user {self.user_id}")
            if templates is None:
                templates = self.store.list_templates(active_only=True)
            created, skipped = self._stage(templates, from_date, to_date, today)

            state = self.store.load_state()
            marker = state.last_task_generation
            if marker is None or (from_date <= dates.add_days(marker, 1) and to_date > marker):
                marker = to_date
                self.store.save_state(GenerationState(
                    last_task_generation=marker,
                    last_shopping_processed=state.last_shopping_processed,
                ))
            self.commit()

            self.logger.info(f"Generated {len(created)} occurrences ({skipped} already present), marker at {marker}")
            return GenerationResultOut(
                from_date=from_date,
                to_date=to_date,
                created=len(created),
                skipped=skipped,
                created_task_ids=created,
                last_task_generation=marker,
            )

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to generate occurrences: {str(e)}")
            raise

    def pending_range(self, state: GenerationState, today: date,
                      lookahead_days: Optional[int] = None) -> Tuple[date, date]:
        """The dates a catch-up run should cover, given the stored markers."""
        if lookahead_days is None:
            lookahead_days = self.config.generation_lookahead_days
        earliest = dates.add_days(today, -max(self.config.generation_catchup_days, 0))
        if state.last_task_generation is None:
            from_date = today
        else:
            from_date = max(dates.add_days(state.last_task_generation, 1), earliest)
        return from_date, dates.add_days(today, max(lookahead_days, 0))

    def generate_missing(self, today: Optional[date] = None,
                         lookahead_days: Optional[int] = None) -> GenerationResultOut:
        """Cover every date since the last successful run, then advance the marker.

        The inserts and the marker share one transaction: if anything fails the
        marker stays where it was and the next run covers the same dates again.
        """
        today = self.today(today)
        try:
            state = self.store.load_state()
            from_date, to_date = self.pending_range(state, today, lookahead_days)
            if from_date > to_date:
                self.logger.debug(f"Occurrences already generated through {state.last_task_generation}")
                return GenerationResultOut(last_task_generation=state.last_task_generation)
            self._check_range(from_date, to_date)

            self.logger.info(f"Catching up occurrences from {from_date} to {to_date} for user {self.user_id}")
            templates = self.store.list_templates(active_only=True)
            created, skipped = self._stage(templates, from_date, to_date, today)

            self.store.save_state(GenerationState(
                last_task_generation=to_date,
                last_shopping_processed=state.last_shopping_processed,
            ))
            self.commit()

            self.logger.info(f"Generated {len(created)} occurrences through {to_date} ({skipped} already present)")
            return GenerationResultOut(
                from_date=from_date,
                to_date=to_date,
                created=len(created),
                skipped=skipped,
                created_task_ids=created,
                last_task_generation=to_date,
            )

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to generate missing occurrences: {str(e)}")
            raise
