"""Application error taxonomy.

Services raise these; ``app.main`` renders them as the ``ErrorResponse``
envelope so every failure carries a human-readable ``message``.
"""

from typing import Any

from fastapi import status


class AppError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "internal_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(AppError):
    """A referenced quiz / question / attempt / row does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "not_found"


class InvalidRequestError(AppError):
    """Input is well-formed but violates a business rule."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "validation_error"


class ConflictError(AppError):
    """The operation was already performed or clashes with existing state."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "conflict"


class StorageError(AppError):
    """The database rejected a write or could not be reached."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "storage_error"
