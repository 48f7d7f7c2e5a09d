from typing import Optional, Dict, Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppException):
    """Validation error exception."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=400, details=details)


class InvalidPatternError(ValidationError):
    """Template fields inconsistent with the template's recurrence pattern."""

    def __init__(self, pattern: str, message: str, details: Optional[Dict[str, Any]] = None):
        details = {"pattern": pattern, **(details or {})}
        super().__init__(f"Invalid {pattern} template: {message}", details=details)
        self.pattern = pattern


class NotFoundError(AppException):
    """Resource not found exception."""

    def __init__(self, resource: str, resource_id: str):
        message = f"{resource} with id '{resource_id}' not found"
        super().__init__(message, status_code=404, details={"resource": resource, "id": resource_id})


class ConflictError(AppException):
    """Resource conflict exception."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=409, details=details)


class StoreUnavailableError(AppException):
    """The task store could not be reached or failed mid-operation.

    Never retried here; callers re-invoke, which is safe because every write
    path is idempotent.
    """

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        message = f"Task store unavailable during {operation}"
        details = {"operation": operation}
        if cause is not None:
            details["cause"] = type(cause).__name__
        super().__init__(message, status_code=503, details=details)
        self.operation = operation
