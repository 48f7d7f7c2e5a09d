from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from taskcycle.db import get_db
from taskcycle.services import CompletionService
from taskcycle.schemas import CompletionOut, PeriodStatsOut
from taskcycle.api.v1.auth import get_current_user_id


router = APIRouter()


def get_completion_service(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
) -> CompletionService:
    return CompletionService(db, user_id)


@router.get("", response_model=List[CompletionOut])
def completions_for_date(
    on_date: Optional[date] = Query(None, alias="date", description="Day (YYYY-MM-DD), defaults to today"),
    completion_service: CompletionService = Depends(get_completion_service)
):
    return completion_service.completions_for_date(on_date)


@router.get("/period", response_model=PeriodStatsOut)
def period_stats(
    start: date = Query(..., description="First day (YYYY-MM-DD)"),
    end: date = Query(..., description="Last day (YYYY-MM-DD), inclusive"),
    completion_service: CompletionService = Depends(get_completion_service)
):
    """Completion counts per day and per task over a period."""
    return completion_service.period_stats(start, end)
