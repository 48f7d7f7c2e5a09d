from abc import ABC
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session
from taskcycle.core.logging import get_logger
from taskcycle.core.config import settings, Settings
from taskcycle.engine import dates
from taskcycle.store import TaskStore


class BaseService(ABC):
    """Base service class with common functionality."""

    def __init__(self, db: Session, user_id: str, config: Optional[Settings] = None):
        self.db = db
        self.user_id = user_id
        self.config = config or settings
        self.store = TaskStore(db, user_id)
        self.logger = get_logger(self.__class__.__name__)

    def today(self, today: Optional[date] = None) -> date:
        """Civil date a run is anchored to; callers may pin it."""
        return today or dates.today(self.config.timezone)

    def commit(self):
        """Commit database transaction."""
        try:
            self.store.commit()
            self.logger.debug("Database transaction committed")
        except Exception as e:
            self.logger.error(f"Database commit failed: {str(e)}")
            self.store.rollback()
            raise

    def rollback(self):
        """Rollback database transaction."""
        self.store.rollback()
        self.logger.debug("Database transaction rolled back")
