"""Custom exceptions for FastAPI application."""

from fastapi import HTTPException
from starlette.status import (
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)


class VaultAPIError(HTTPException):
    """Base exception for dirvault API errors."""
    pass


class BackupNotFoundError(VaultAPIError):
    def __init__(self, detail: str):
        super().__init__(HTTP_404_NOT_FOUND, detail)


class OperationConflictError(VaultAPIError):
    """Another backup or restore holds the single-flight guard."""

    def __init__(self, detail: str):
        super().__init__(HTTP_409_CONFLICT, detail)


class InvalidSettingsError(VaultAPIError):
    def __init__(self, detail: str):
        super().__init__(HTTP_422_UNPROCESSABLE_ENTITY, detail)


class OperationFailedError(VaultAPIError):
    def __init__(self, detail: str):
        super().__init__(HTTP_500_INTERNAL_SERVER_ERROR, detail)


class RestorePendingError(VaultAPIError):
    def __init__(self):
        super().__init__(HTTP_503_SERVICE_UNAVAILABLE, "Restore pending, restart required")
