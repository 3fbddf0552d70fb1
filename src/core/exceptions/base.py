from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id={identifier} not found"
        super().__init__(message=message, status_code=404)


class ValidationError(AppException):
    """Validation error."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=422, details=details)


class DuplicateError(AppException):
    """Duplicate resource."""

    def __init__(self, resource: str, field: str, value: Any):
        message = f"{resource} with {field}={value} already exists"
        super().__init__(message=message, status_code=409, details={"field": field, "value": value})


class InvalidStateError(AppException):
    """Operation not allowed in the document's current status."""

    def __init__(self, message: str, status: str | None = None):
        details = {"field": "status", "status": status} if status else {"field": "status"}
        super().__init__(message=message, status_code=409, details=details)


class StorageConflictError(AppException):
    """Unit of work could not commit (lock contention, timeout, database unavailable).

    Nothing was persisted; the whole operation may be retried.
    """

    def __init__(self, message: str = "Could not complete the operation, please retry"):
        super().__init__(message=message, status_code=503, details={"retryable": True})
