from datetime import date
from typing import Optional

from taskcycle.schemas import MaintenanceResultOut
from .base import BaseService
from .generator import GenerationService
from .shopping import ShoppingCarryoverService
from .rollover import RolloverService
from .expiry import ExpiryService


class MaintenanceService(BaseService):
    """The daily run: generate, carry shopping lists over, roll over, expire.

    Each step commits on its own, so a failure in a later step leaves the
    earlier ones (and their markers) in place. Rollover runs before expiry so
    missed occurrences are seen before they are deleted.
    """

    def run(self, today: Optional[date] = None, auto_rollover: Optional[bool] = None) -> MaintenanceResultOut:
        today = self.today(today)
        if auto_rollover is None:
            auto_rollover = self.config.auto_rollover
        self.logger.info(f"Running maintenance for user {self.user_id} on {today} (auto_rollover={auto_rollover})")

        generation = GenerationService(self.db, self.user_id, self.config).generate_missing(today)
        shopping = ShoppingCarryoverService(self.db, self.user_id, self.config).process_completed(today)
        rollover = None
        if auto_rollover:
            rollover = RolloverService(self.db, self.user_id, self.config).rollover(today)
        expiry = ExpiryService(self.db, self.user_id, self.config).collect_expired(today)

        self.logger.info(
            f"Maintenance done: {generation.created} generated, {len(shopping.created_task_ids)} carried over, "
            f"{len(rollover.created_task_ids) if rollover else 0} rolled over, {expiry.total} expired"
        )
        return MaintenanceResultOut(
            today=today,
            generation=generation,
            shopping=shopping,
            rollover=rollover,
            expiry=expiry,
        )
