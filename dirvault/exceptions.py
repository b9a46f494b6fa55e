"""Exceptions raised inside the backup core."""

from typing import Optional


class DirVaultError(Exception):
    """Base exception for dirvault errors."""
    pass


class BackupDirectoryError(DirVaultError):
    """The archive directory could not be created; no backups are possible."""

    def __init__(self, path, cause: Optional[BaseException] = None):
        self.path = path
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to create backup directory {path}{detail}")


class SourceMissingError(DirVaultError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"Data directory not found: {path}")


class ArchiveCodecError(DirVaultError):
    """Compression or decompression failed; wraps the originating error."""
    pass


class InvalidReferenceError(DirVaultError):
    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Invalid backup number or name: {reference}")


class OperationInProgressError(DirVaultError):
    """Another single-flight operation holds the guard."""

    def __init__(self, active, requested):
        self.active = active
        self.requested = requested
        if active == requested:
            message = f"A {requested.value} is already in progress"
        else:
            message = f"Cannot start {requested.value}: a {active.value} is in progress"
        super().__init__(message)
