from .base import (
    AppException,
    ValidationError,
    InvalidPatternError,
    NotFoundError,
    ConflictError,
    StoreUnavailableError,
)
from .handlers import app_exception_handler, general_exception_handler

__all__ = [
    "AppException",
    "ValidationError",
    "InvalidPatternError",
    "NotFoundError",
    "ConflictError",
    "StoreUnavailableError",
    "app_exception_handler",
    "general_exception_handler"
]
