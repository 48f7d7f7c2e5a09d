from .base import BaseRepository
from .task import TaskRepository, TaskFilter
from .template import TemplateRepository
from .subtask import SubTaskRepository
from .completion import CompletionRepository
from .metadata import MetadataRepository

__all__ = [
    "BaseRepository",
    "TaskRepository",
    "TaskFilter",
    "TemplateRepository",
    "SubTaskRepository",
    "CompletionRepository",
    "MetadataRepository"
]
