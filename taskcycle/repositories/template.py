from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session

from taskcycle.models import RecurringTemplate, PatternEnum
from taskcycle.schemas import TemplateOut
from taskcycle.engine.patterns import describe
from .base import BaseRepository


class TemplateRepository(BaseRepository[RecurringTemplate]):
    """Repository for RecurringTemplate operations."""

    id_prefix = "tpl"

    def __init__(self, db: Session, user_id: str):
        super().__init__(db, RecurringTemplate, user_id)

    @staticmethod
    def _coerce(data: Dict[str, Any]) -> Dict[str, Any]:
        if data.get("pattern") is not None:
            data = {**data, "pattern": PatternEnum(data["pattern"])}
        return data

    def create(self, obj_data: Dict[str, Any]) -> RecurringTemplate:
        return super().create(self._coerce(obj_data))

    def update(self, db_obj: RecurringTemplate, obj_data: Dict[str, Any]) -> RecurringTemplate:
        return super().update(db_obj, self._coerce(obj_data))

    def list_templates(self, active_only: bool = False, pattern: Optional[str] = None) -> List[RecurringTemplate]:
        query = self._scoped()
        if active_only:
            query = query.where(RecurringTemplate.active.is_(True))
        if pattern is not None:
            query = query.where(RecurringTemplate.pattern == PatternEnum(pattern))
        query = query.order_by(RecurringTemplate.created_at.asc(), RecurringTemplate.id.asc())
        return list(self.db.execute(query).scalars().all())

    def to_schema(self, template: RecurringTemplate) -> TemplateOut:
        return TemplateOut(
            id=template.id,
            title=template.title,
            memo=template.memo,
            category=template.category,
            importance=template.importance,
            pattern=template.pattern.value,
            interval=template.interval,
            weekdays=template.weekdays,
            day_of_month=template.day_of_month,
            month_of_year=template.month_of_year,
            start_date=template.start_date,
            end_date=template.end_date,
            active=template.active,
            description=describe(template),
            created_at=template.created_at,
            updated_at=template.updated_at,
        )
