"""Pydantic models for API requests and responses."""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class BackupCreateRequest(BaseModel):
    label: Optional[str] = Field(None, max_length=64)


class BackupResponse(BaseModel):
    success: bool
    message: str
    backup_name: Optional[str] = None
    duration_ms: int = 0


class RestoreRequest(BaseModel):
    backup: str = Field(..., min_length=1, description="Listing number or archive name")


class RestoreResponse(BaseModel):
    success: bool
    message: str
    backup_name: Optional[str] = None


class CleanupResponse(BaseModel):
    deleted: int


class ConfigUpdate(BaseModel):
    """Partial update of backup settings; omitted fields stay unchanged."""
    backup_interval_minutes: Optional[int] = None
    max_backups: Optional[int] = None
    max_backup_age_days: Optional[int] = None
    compression_threads: Optional[int] = None
    compression_level: Optional[int] = None
    auto_backup_enabled: Optional[bool] = None
    auto_cleanup_enabled: Optional[bool] = None
    save_on_backup: Optional[bool] = None
    broadcast_backup_messages: Optional[bool] = None


class HealthStatus(BaseModel):
    status: str  # "healthy", "restore_pending"
    pending_restore: bool
    scheduler_running: bool
    timestamp: datetime = Field(default_factory=datetime.utcnow)
