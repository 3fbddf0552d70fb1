from src.core.exceptions.base import (
    AppException,
    NotFoundError,
    ValidationError,
    DuplicateError,
    InvalidStateError,
    StorageConflictError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "ValidationError",
    "DuplicateError",
    "InvalidStateError",
    "StorageConflictError",
]
