from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from taskcycle.db import get_db
from taskcycle.services import TaskService
from taskcycle.schemas import (
    TaskCreate,
    TaskOut,
    TaskUpdate,
    TaskType,
    SubTaskCreate,
    SubTaskOut,
    CompletionStatsOut,
)
from taskcycle.api.v1.auth import get_current_user_id


router = APIRouter()


def get_task_service(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
) -> TaskService:
    """Dependency to get TaskService instance."""
    return TaskService(db, user_id)


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    task_service: TaskService = Depends(get_task_service)
):
    """Create a task. Leave due_date out for a dateless task."""
    return task_service.create_task(payload)


@router.get("", response_model=List[TaskOut])
def list_tasks(
    due_date_start: Optional[date] = Query(None, description="Start date (YYYY-MM-DD) for due date range"),
    due_date_end: Optional[date] = Query(None, description="End date (YYYY-MM-DD) for due date range"),
    completed: Optional[bool] = Query(None),
    category: Optional[str] = Query(None),
    task_type: Optional[List[TaskType]] = Query(None, description="Filter by type; repeat param for multiple"),
    template_id: Optional[str] = Query(None, description="Occurrences of one template"),
    archived: Optional[bool] = Query(False, description="Archived tasks are hidden by default"),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    task_service: TaskService = Depends(get_task_service)
):
    """List tasks ordered by due date, dateless tasks last."""
    return task_service.list_tasks(
        due_from=due_date_start,
        due_to=due_date_end,
        completed=completed,
        category=category,
        task_type=task_type,
        template_id=template_id,
        archived=archived,
        limit=limit,
    )


@router.get("/{task_id}", response_model=TaskOut)
def get_task(
    task_id: str,
    task_service: TaskService = Depends(get_task_service)
):
    return task_service.get_task(task_id)


@router.patch("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: str,
    update_data: TaskUpdate,
    task_service: TaskService = Depends(get_task_service)
):
    """Partially update a task; set clear_due_date to make it dateless."""
    return task_service.update_task(task_id, update_data.model_dump(exclude_unset=True))


@router.delete("/{task_id}", status_code=204)
def delete_task(
    task_id: str,
    task_service: TaskService = Depends(get_task_service)
):
    task_service.delete_task(task_id)
    return None


@router.post("/{task_id}/complete", response_model=TaskOut)
def complete_task(
    task_id: str,
    task_service: TaskService = Depends(get_task_service)
):
    """Mark a task done and record today's completion."""
    return task_service.complete_task(task_id)


@router.delete("/{task_id}/complete", response_model=TaskOut)
def uncomplete_task(
    task_id: str,
    task_service: TaskService = Depends(get_task_service)
):
    """Reopen a task and remove its completion record."""
    return task_service.uncomplete_task(task_id)


@router.get("/{task_id}/stats", response_model=CompletionStatsOut)
def task_stats(
    task_id: str,
    task_service: TaskService = Depends(get_task_service)
):
    return task_service.task_stats(task_id)


@router.get("/{task_id}/subtasks", response_model=List[SubTaskOut])
def list_subtasks(
    task_id: str,
    task_service: TaskService = Depends(get_task_service)
):
    return task_service.list_subtasks(task_id)


@router.post("/{task_id}/subtasks", response_model=SubTaskOut, status_code=status.HTTP_201_CREATED)
def add_subtask(
    task_id: str,
    payload: SubTaskCreate,
    task_service: TaskService = Depends(get_task_service)
):
    return task_service.add_subtask(task_id, payload.title, payload.sort_order)
