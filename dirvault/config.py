"""Configuration management for dirvault."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from .backup.models import RetentionPolicy


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "on", "1")


@dataclass(frozen=True)
class StorageConfig:
    """Filesystem layout around the live data directory."""
    base_dir: str = "."
    data_dir_name: str = "world"
    backup_folder_name: str = "backups"
    staging_dir_name: str = "world_temp_restore"
    marker_name: str = ".pending_restore"

    @classmethod
    def from_env(cls) -> 'StorageConfig':
        """Create config from environment variables."""
        return cls(
            base_dir=os.getenv("DIRVAULT_BASE_DIR", "."),
            data_dir_name=os.getenv("DIRVAULT_DATA_DIR", "world"),
            backup_folder_name=os.getenv("DIRVAULT_BACKUP_FOLDER", "backups"),
            staging_dir_name=os.getenv("DIRVAULT_STAGING_DIR", "world_temp_restore"),
            marker_name=os.getenv("DIRVAULT_MARKER_NAME", ".pending_restore"),
        )

    def __post_init__(self):
        """Validate configuration."""
        for name in ("data_dir_name", "backup_folder_name", "staging_dir_name", "marker_name"):
            if not getattr(self, name):
                raise ValueError(f"{name} must not be empty")
        if self.data_dir_name == self.staging_dir_name:
            raise ValueError("staging_dir_name must differ from data_dir_name")

    @property
    def root(self) -> Path:
        return Path(self.base_dir)

    @property
    def data_dir(self) -> Path:
        return self.root / self.data_dir_name

    @property
    def backup_dir(self) -> Path:
        return self.root / self.backup_folder_name

    @property
    def staging_dir(self) -> Path:
        # Sibling of the data dir so the commit is a same-filesystem rename
        return self.root / self.staging_dir_name

    @property
    def marker_path(self) -> Path:
        return self.root / self.marker_name


@dataclass(frozen=True)
class BackupConfig:
    """Compression, schedule and retention settings."""
    backup_interval_minutes: int = 30
    max_backups: int = 10
    max_backup_age_days: int = 7
    compression_threads: int = field(default_factory=lambda: os.cpu_count() or 1)
    compression_level: int = 6
    auto_backup_enabled: bool = True
    auto_cleanup_enabled: bool = True
    save_on_backup: bool = True
    broadcast_backup_messages: bool = True

    @classmethod
    def from_env(cls) -> 'BackupConfig':
        """Create config from environment variables."""
        return cls(
            backup_interval_minutes=int(os.getenv("BACKUP_INTERVAL_MINUTES", "30")),
            max_backups=int(os.getenv("BACKUP_MAX_BACKUPS", "10")),
            max_backup_age_days=int(os.getenv("BACKUP_MAX_AGE_DAYS", "7")),
            compression_threads=int(os.getenv("BACKUP_COMPRESSION_THREADS", str(os.cpu_count() or 1))),
            compression_level=int(os.getenv("BACKUP_COMPRESSION_LEVEL", "6")),
            auto_backup_enabled=_env_bool("BACKUP_AUTO_ENABLED", "true"),
            auto_cleanup_enabled=_env_bool("BACKUP_AUTO_CLEANUP", "true"),
            save_on_backup=_env_bool("BACKUP_SAVE_ON_BACKUP", "true"),
            broadcast_backup_messages=_env_bool("BACKUP_BROADCAST_MESSAGES", "true"),
        )

    def __post_init__(self):
        """Validate configuration."""
        if self.backup_interval_minutes <= 0:
            raise ValueError(f"backup_interval_minutes must be positive, got {self.backup_interval_minutes}")
        if self.max_backups <= 0:
            raise ValueError(f"max_backups must be positive, got {self.max_backups}")
        if self.max_backup_age_days <= 0:
            raise ValueError(f"max_backup_age_days must be positive, got {self.max_backup_age_days}")
        if self.compression_threads <= 0:
            raise ValueError(f"compression_threads must be positive, got {self.compression_threads}")
        if not 0 <= self.compression_level <= 9:
            raise ValueError(f"compression_level must be between 0 and 9, got {self.compression_level}")

    @property
    def backup_interval_seconds(self) -> int:
        return self.backup_interval_minutes * 60

    def retention_policy(self) -> RetentionPolicy:
        return RetentionPolicy(max_count=self.max_backups, max_age_days=self.max_backup_age_days)


@dataclass(frozen=True)
class VaultConfig:
    """Main dirvault configuration."""
    storage: StorageConfig = field(default_factory=StorageConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)

    @classmethod
    def from_env(cls) -> 'VaultConfig':
        """Create complete config from environment variables."""
        return cls(
            storage=StorageConfig.from_env(),
            backup=BackupConfig.from_env(),
        )

    def to_dict(self) -> dict:
        """Flat view used for status and API responses."""
        return {
            "base_dir": self.storage.base_dir,
            "data_dir": str(self.storage.data_dir),
            "backup_dir": str(self.storage.backup_dir),
            "backup_interval_minutes": self.backup.backup_interval_minutes,
            "max_backups": self.backup.max_backups,
            "max_backup_age_days": self.backup.max_backup_age_days,
            "compression_threads": self.backup.compression_threads,
            "compression_level": self.backup.compression_level,
            "auto_backup_enabled": self.backup.auto_backup_enabled,
            "auto_cleanup_enabled": self.backup.auto_cleanup_enabled,
            "save_on_backup": self.backup.save_on_backup,
            "broadcast_backup_messages": self.backup.broadcast_backup_messages,
        }
