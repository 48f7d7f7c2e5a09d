from .base import BaseService
from .template import TemplateService
from .task import TaskService
from .completion import CompletionService
from .generator import GenerationService
from .rollover import RolloverService
from .shopping import ShoppingCarryoverService
from .expiry import ExpiryService
from .maintenance import MaintenanceService

__all__ = [
    "BaseService",
    "TemplateService",
    "TaskService",
    "CompletionService",
    "GenerationService",
    "RolloverService",
    "ShoppingCarryoverService",
    "ExpiryService",
    "MaintenanceService"
]
