from fastapi import APIRouter
from . import templates, tasks, subtasks, engine, completions, health

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(templates.router, prefix="/templates", tags=["templates"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(subtasks.router, prefix="/subtasks", tags=["subtasks"])
api_router.include_router(engine.router, prefix="/engine", tags=["engine"])
api_router.include_router(completions.router, prefix="/completions", tags=["completions"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
