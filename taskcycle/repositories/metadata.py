from typing import Optional
from datetime import datetime
from sqlalchemy.orm import Session

from taskcycle.models import GenerationMetadata
from .base import BaseRepository


class MetadataRepository(BaseRepository[GenerationMetadata]):
    """Per-owner key/value markers such as ``last_task_generation``."""

    id_prefix = "meta"

    def __init__(self, db: Session, user_id: str):
        super().__init__(db, GenerationMetadata, user_id)

    def _row(self, key: str) -> Optional[GenerationMetadata]:
        return self.db.execute(
            self._scoped().where(GenerationMetadata.key == key).limit(1)
        ).scalars().first()

    def get_value(self, key: str) -> Optional[str]:
        row = self._row(key)
        return row.value if row else None

    def set_value(self, key: str, value: Optional[str]) -> GenerationMetadata:
        """Upsert; the caller's transaction decides when it becomes visible."""
        row = self._row(key)
        if row is None:
            return self.create({"key": key, "value": value})
        return self.update(row, {"value": value, "updated_at": datetime.utcnow()})
