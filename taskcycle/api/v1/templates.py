from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from taskcycle.db import get_db
from taskcycle.services import TemplateService, CompletionService
from taskcycle.schemas import (
    TemplateCreate,
    TemplateUpdate,
    TemplateOut,
    TemplatePreview,
    CompletionStatsOut,
    Pattern,
)
from taskcycle.api.v1.auth import get_current_user_id


router = APIRouter()


def get_template_service(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
) -> TemplateService:
    """Dependency to get TemplateService instance."""
    return TemplateService(db, user_id)


def get_completion_service(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
) -> CompletionService:
    return CompletionService(db, user_id)


@router.post("", response_model=TemplateOut, status_code=status.HTTP_201_CREATED)
def create_template(
    payload: TemplateCreate,
    template_service: TemplateService = Depends(get_template_service)
):
    """Create a recurring template. start_date defaults to today."""
    return template_service.create_template(payload)


@router.get("", response_model=List[TemplateOut])
def list_templates(
    active_only: bool = Query(False, description="Only templates that still generate"),
    pattern: Optional[Pattern] = Query(None, description="Filter by pattern"),
    template_service: TemplateService = Depends(get_template_service)
):
    return template_service.list_templates(active_only=active_only, pattern=pattern)


@router.get("/{template_id}", response_model=TemplateOut)
def get_template(
    template_id: str,
    template_service: TemplateService = Depends(get_template_service)
):
    return template_service.get_template(template_id)


@router.patch("/{template_id}", response_model=TemplateOut)
def update_template(
    template_id: str,
    update_data: TemplateUpdate,
    template_service: TemplateService = Depends(get_template_service)
):
    """Partially update a template; only future occurrences follow the change."""
    return template_service.update_template(template_id, update_data.model_dump(exclude_unset=True))


@router.delete("/{template_id}", status_code=204)
def delete_template(
    template_id: str,
    template_service: TemplateService = Depends(get_template_service)
):
    """Delete a template. Tasks it already generated are kept."""
    template_service.delete_template(template_id)
    return None


@router.get("/{template_id}/preview", response_model=TemplatePreview)
def preview_template(
    template_id: str,
    start: Optional[date] = Query(None, description="First date (YYYY-MM-DD), defaults to today"),
    end: Optional[date] = Query(None, description="Last date (YYYY-MM-DD), defaults to start + 30 days"),
    template_service: TemplateService = Depends(get_template_service)
):
    """Dates the template would produce in a window, without creating tasks."""
    return template_service.preview(template_id, start, end)


@router.get("/{template_id}/stats", response_model=CompletionStatsOut)
def template_stats(
    template_id: str,
    completion_service: CompletionService = Depends(get_completion_service)
):
    """Streak and totals across all of the template's occurrences."""
    return completion_service.template_stats(template_id)
