from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from taskcycle.db import get_db
from taskcycle.services import TaskService
from taskcycle.schemas import SubTaskOut, SubTaskUpdate
from taskcycle.api.v1.auth import get_current_user_id


router = APIRouter()


def get_task_service(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
) -> TaskService:
    return TaskService(db, user_id)


@router.patch("/{subtask_id}", response_model=SubTaskOut)
def update_subtask(
    subtask_id: str,
    update_data: SubTaskUpdate,
    task_service: TaskService = Depends(get_task_service)
):
    return task_service.update_subtask(subtask_id, update_data.model_dump(exclude_unset=True))


@router.post("/{subtask_id}/toggle", response_model=SubTaskOut)
def toggle_subtask(
    subtask_id: str,
    task_service: TaskService = Depends(get_task_service)
):
    """Flip a checklist item between done and open."""
    return task_service.toggle_subtask(subtask_id)


@router.delete("/{subtask_id}", status_code=204)
def delete_subtask(
    subtask_id: str,
    task_service: TaskService = Depends(get_task_service)
):
    task_service.delete_subtask(subtask_id)
    return None
