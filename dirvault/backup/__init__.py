"""Backup, restore and retention for a live data directory."""

from .catalog import ArchiveCatalog
from .codec import ArchiveCodec
from .guard import OperationGuard, OperationKind
from .manager import BackupManager
from .models import (
    ArchiveInfo,
    BackupResult,
    CommitOutcome,
    CompressionResult,
    PendingRestore,
    RestoreResult,
    RetentionPolicy,
    StatusReport,
)
from .restore import RestoreManager
from .retention import RetentionEnforcer

__all__ = [
    "ArchiveCatalog",
    "ArchiveCodec",
    "ArchiveInfo",
    "BackupManager",
    "BackupResult",
    "CommitOutcome",
    "CompressionResult",
    "OperationGuard",
    "OperationKind",
    "PendingRestore",
    "RestoreManager",
    "RestoreResult",
    "RetentionEnforcer",
    "RetentionPolicy",
    "StatusReport",
]
