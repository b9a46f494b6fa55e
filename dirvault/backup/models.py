"""Data models for backup/restore operations."""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .._utils import DISPLAY_TIME_FORMAT, format_size


class ArchiveInfo(BaseModel):
    """One archive in the catalog."""

    path: Path = Field(..., description="Archive file path")
    created_at: datetime = Field(..., description="Creation time from filesystem attributes")
    size_bytes: int = Field(..., description="Compressed size on disk")
    label: str = Field("", description="Sanitized user label, empty when absent")

    @computed_field
    @property
    def name(self) -> str:
        return self.path.name

    @computed_field
    @property
    def formatted_size(self) -> str:
        return format_size(self.size_bytes)

    @computed_field
    @property
    def formatted_time(self) -> str:
        return self.created_at.strftime(DISPLAY_TIME_FORMAT)


class CompressionResult(BaseModel):
    """Totals reported by a compression run."""

    output_file: Path
    original_bytes: int
    compressed_bytes: int
    duration_ms: int
    workers_used: int
    file_count: int = 0

    @property
    def compression_ratio(self) -> float:
        if self.original_bytes <= 0:
            return 0.0
        return self.compressed_bytes / self.original_bytes

    @property
    def space_saved_percent(self) -> float:
        return (1 - self.compression_ratio) * 100


class BackupResult(BaseModel):
    """Outcome of a backup request."""

    success: bool
    message: str
    archive_path: Optional[Path] = None
    duration_ms: int = 0
    declined: bool = Field(False, description="True when refused by the single-flight guard")
    compression: Optional[CompressionResult] = None


class RestoreResult(BaseModel):
    """Outcome of staging a restore."""

    success: bool
    message: str
    backup_name: Optional[str] = None
    staging_dir: Optional[Path] = None
    declined: bool = False


class RetentionPolicy(BaseModel):
    """Keep at most ``max_count`` archives and none older than ``max_age_days``."""

    max_count: int = Field(..., gt=0)
    max_age_days: int = Field(..., gt=0)


class PendingRestore(BaseModel):
    """Durable marker for a staged restore awaiting commit."""

    model_config = ConfigDict(populate_by_name=True)

    staging_path: Path = Field(..., alias="tempWorldPath")
    backup_name: str = Field(..., alias="backupName")
    timestamp: int = Field(..., description="Epoch milliseconds when the restore was staged")

    def to_marker(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class CommitOutcome(str, Enum):
    """What check_and_commit_pending_restore did."""
    NONE = "none"
    COMMITTED = "committed"
    DISCARDED = "discarded"
    FAILED = "failed"


class StatusReport(BaseModel):
    """Snapshot of engine state for display."""

    auto_backup_enabled: bool
    auto_cleanup_enabled: bool
    backup_interval_minutes: int
    max_backups: int
    max_backup_age_days: int
    compression_threads: int
    compression_level: int
    backing_up: bool
    restoring: bool
    pending_restore: bool
    total_backups: int
    scheduler_running: bool
    next_backup: str
