from datetime import date
from typing import List, Optional, Dict, Any

from taskcycle.schemas import TemplateCreate, TemplateOut, TemplatePreview
from taskcycle.exceptions import ValidationError
from taskcycle.engine import dates, patterns
from .base import BaseService

RULE_FIELDS = ("pattern", "interval", "weekdays", "day_of_month", "month_of_year", "start_date", "end_date")
MAX_PREVIEW_DAYS = 366


class TemplateService(BaseService):
    """Service for recurring template business logic."""

    def create_template(self, template_in: TemplateCreate, today: Optional[date] = None) -> TemplateOut:
        """Create a template after checking its rule against its pattern."""
        try:
            self.logger.info(f"Creating {template_in.pattern} template for user {self.user_id}: {template_in.title}")

            if not template_in.title or not template_in.title.strip():
                raise ValidationError("Template title cannot be empty")

            fields = template_in.model_dump()
            fields["title"] = fields["title"].strip()
            if fields["start_date"] is None:
                fields["start_date"] = self.today(today)
            fields = patterns.validate_template(fields)

            template = self.store.create_template(fields)
            self.commit()

            self.logger.info(f"Template created successfully: {template.id}")
            return self.store.templates.to_schema(template)

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to create template: {str(e)}")
            raise

    def get_template(self, template_id: str) -> TemplateOut:
        self.logger.debug(f"Fetching template {template_id} for user {self.user_id}")
        return self.store.templates.to_schema(self.store.get_template(template_id))

    def list_templates(self, active_only: bool = False, pattern: Optional[str] = None) -> List[TemplateOut]:
        self.logger.debug(f"Listing templates for user {self.user_id} (active_only={active_only}, pattern={pattern})")
        templates = self.store.list_templates(active_only=active_only, pattern=pattern)
        return [self.store.templates.to_schema(t) for t in templates]

    def update_template(self, template_id: str, update_data: Dict[str, Any]) -> TemplateOut:
        """Partial update; the merged rule is re-validated as a whole.

        Past occurrences are left untouched: only future generation follows
        the new rule. Deactivating stops generation without deleting rows.
        """
        try:
            self.logger.info(f"Updating template {template_id} for user {self.user_id}")

            template = self.store.get_template(template_id)
            if "title" in update_data:
                if not update_data["title"] or not update_data["title"].strip():
                    raise ValidationError("Template title cannot be empty")
                update_data["title"] = update_data["title"].strip()

            if any(field in update_data for field in RULE_FIELDS):
                rule = {field: getattr(template, field) for field in RULE_FIELDS}
                rule.update({k: v for k, v in update_data.items() if k in RULE_FIELDS})
                if rule["start_date"] is None:
                    raise ValidationError("start_date cannot be cleared")
                update_data = {**update_data, **patterns.validate_template(rule)}

            template = self.store.update_template(template_id, update_data)
            self.commit()

            self.logger.info(f"Template updated successfully: {template_id}")
            return self.store.templates.to_schema(template)

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to update template {template_id}: {str(e)}")
            raise

    def delete_template(self, template_id: str) -> bool:
        """Delete a template; tasks it generated stay (they only reference it)."""
        try:
            self.logger.info(f"Deleting template {template_id} for user {self.user_id}")
            self.store.delete_template(template_id)
            self.commit()
            self.logger.info(f"Template deleted successfully: {template_id}")
            return True

        except Exception as e:
            self.rollback()
            self.logger.error(f"Failed to delete template {template_id}: {str(e)}")
            raise

    def preview(self, template_id: str, start: Optional[date] = None, end: Optional[date] = None) -> TemplatePreview:
        """Occurrence dates in a window, without creating anything."""
        template = self.store.get_template(template_id)
        start = start or self.today()
        end = end or dates.add_days(start, 30)
        if end < start:
            raise ValidationError("end must not be before start")
        if dates.diff_days(start, end) > MAX_PREVIEW_DAYS:
            raise ValidationError(f"Preview window cannot exceed {MAX_PREVIEW_DAYS} days")

        return TemplatePreview(
            template_id=template.id,
            start=start,
            end=end,
            dates=patterns.occurrences_between(template, start, end, self.config.leap_day_policy),
        )
