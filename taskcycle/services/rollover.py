from datetime import date
from typing import Iterable, List, Optional

from taskcycle.repositories import TaskFilter
from taskcycle.schemas import (
    MissedOccurrencesOut,
    RolloverCandidatesOut,
    RolloverResultOut,
)
from taskcycle.exceptions import ValidationError
from taskcycle.engine import dates, patterns, rollover
from taskcycle.engine.rollover import RolloverCandidates
from .base import BaseService


class RolloverService(BaseService):
    """Finds unfinished work from earlier days and carries it forward to today.

    Auto and selective rollover share ``rollover``; the selection only narrows
    the candidates. Each copy is guarded by a lookup on its provenance
    (``carried_from_task_id``, or ``carried_from_template_id`` plus
    ``carried_through``), so a repeated run creates nothing new.
    """

    def _lookback(self) -> int:
        return min(max(self.config.rollover_lookback_days, 1), rollover.MAX_LOOKBACK_DAYS)

    def find_incomplete(self, today: Optional[date] = None) -> RolloverCandidates:
        today = self.today(today)
        yesterday = dates.add_days(today, -1)
        window_start = dates.add_days(today, -self._lookback())

        single_tasks = self.store.list_tasks(TaskFilter(
            completed=False,
            task_types=["NORMAL", "INBOX"],
            archived=False,
            dateless=False,
            due_to=yesterday,
        ))
        templates = self.store.list_templates(active_only=True)
        occurrences = self.store.list_tasks(TaskFilter(
            task_types=["RECURRING"],
            due_from=window_start,
            due_to=yesterday,
        ))
        completions = self.store.list_completions(start=window_start, end=yesterday)

        candidates = rollover.find_incomplete(
            single_tasks,
            templates,
            occurrences,
            completions,
            today,
            lookback_days=self._lookback(),
            carried_through=self.store.carried_through_by_template(),
            leap_day_policy=self.config.leap_day_policy,
        )
        self.logger.debug(f"Rollover candidates for user {self.user_id}: {candidates.summary() or 'none'}")
        return candidates

    def candidates(self, today: Optional[date] = None) -> RolloverCandidatesOut:
        found = self.find_incomplete(today)
        return RolloverCandidatesOut(
            single=self.store.tasks.to_schema_batch(found.incomplete_single),
            recurring=[
                MissedOccurrencesOut(
                    template_id=item.template_id,
                    title=item.template.title,
                    pattern=patterns.pattern_name(item.template),
                    missed_dates=item.missed_dates,
                )
                for item in found.incomplete_recurring
            ],
            summary=found.summary(),
        )

    def _already_carried(self, criteria: TaskFilter) -> bool:
        criteria.limit = 1
        return bool(self.store.list_tasks(criteria))

    def rollover(
        self,
        today: Optional[date] = None,
        task_ids: Optional[Iterable[str]] = None,
        template_ids: Optional[Iterable[str]] = None,
        include_single: bool = True,
        include_recurring: bool = True,
        mode: Optional[str] = None,
        resolve_missed: bool = False,
    ) -> RolloverResultOut:
        """Carry selected (default: all) unfinished work forward to today.

        A rolled-over single task is closed with ``completed`` set and no
        ``completed_at``, so it is not mistaken for work actually done.
        Missed occurrence rows stay pending for expiry unless
        ``resolve_missed`` closes them the same way; closing records no
        completion, so streaks only count days something was done.
        """
        today = self.today(today)
        mode = mode or self.config.rollover_mode
        if mode not in rollover.ROLLOVER_MODES:
            raise ValidationError(f"Unknown rollover mode: {mode}", {"mode": mode})

        try:
            found = self.find_incomplete(today).select(task_ids, template_ids)
            self.logger.info(f"Rolling over for user {self.user_id} ({mode}): {found.summary() or 'nothing to do'}")

            created: List[str] = []
            resolved: List[str] = []
            skipped = 0

            if include_single:
                for task in found.incomplete_single:
                    if self._already_carried(TaskFilter(carried_from_task_id=task.id)):
                        skipped += 1
                        self.logger.info(f"Task {task.id} was already rolled over, skipping")
                    else:
                        copy = self.store.create_task(rollover.forward_single(task, today), today)
                        created.append(copy.id)
                    self.store.update_task(task.id, {"completed": True})
                    resolved.append(task.id)

            if include_recurring:
                for missed in found.incomplete_recurring:
                    for fields in rollover.forward_recurring(missed, today, mode):
                        if self._already_carried(TaskFilter(
                            carried_from_template_id=fields["carried_from_template_id"],
                            carried_through=fields["carried_through"],
                        )):
                            skipped += 1
                            self.logger.info(
                                f"Template {missed.template_id} through {fields['carried_through']} "
                                f"was already rolled over, skipping"
                            )
                            continue
                        copy = self.store.create_task(fields, today)
                        created.append(copy.id)

                    if resolve_missed:
                        for occurrence_id in missed.occurrence_ids.values():
                            self.store.update_task(occurrence_id, {"completed": True})
                            resolved.append(occurrence_id)

            self.commit()

            if skipped:
                self.logger.warning(f"Skipped {skipped} rollovers that already existed")
            self.logger.info(f"Rollover created {len(created)} tasks and resolved {len(resolved)}")
            return RolloverResultOut(created_task_ids=created, resolved_task_ids=resolved, skipped=skipped)

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to roll over tasks: {str(e)}")
            raise
