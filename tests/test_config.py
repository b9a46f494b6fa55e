"""Tests for configuration management."""

import dataclasses
import os
import pytest
from pathlib import Path
from unittest.mock import patch

from dirvault.backup.models import RetentionPolicy
from dirvault.config import BackupConfig, StorageConfig, VaultConfig


class TestStorageConfig:
    """Test storage layout configuration."""

    def test_defaults(self):
        """Test default values and derived paths."""
        config = StorageConfig()
        assert config.data_dir == Path("world")
        assert config.backup_dir == Path("backups")
        assert config.staging_dir == Path("world_temp_restore")
        assert config.marker_path == Path(".pending_restore")

    def test_from_env(self):
        """Test creating from environment variables."""
        with patch.dict(os.environ, {
            "DIRVAULT_BASE_DIR": "/srv/game",
            "DIRVAULT_DATA_DIR": "survival",
            "DIRVAULT_BACKUP_FOLDER": "snapshots",
        }):
            config = StorageConfig.from_env()
            assert config.data_dir == Path("/srv/game/survival")
            assert config.backup_dir == Path("/srv/game/snapshots")
            assert config.marker_path.parent == Path("/srv/game")

    def test_marker_outside_data_dir(self):
        config = StorageConfig(base_dir="/srv/game")
        assert config.data_dir not in config.marker_path.parents
        assert config.staging_dir.parent == config.data_dir.parent

    def test_validation(self):
        """Test validation errors."""
        with pytest.raises(ValueError, match="data_dir_name must not be empty"):
            StorageConfig(data_dir_name="")

        with pytest.raises(ValueError, match="staging_dir_name must differ"):
            StorageConfig(data_dir_name="world", staging_dir_name="world")


class TestBackupConfig:
    """Test backup configuration."""

    def test_defaults(self):
        """Test default values."""
        config = BackupConfig()
        assert config.backup_interval_minutes == 30
        assert config.max_backups == 10
        assert config.max_backup_age_days == 7
        assert config.compression_threads == (os.cpu_count() or 1)
        assert config.compression_level == 6
        assert config.auto_backup_enabled is True
        assert config.auto_cleanup_enabled is True
        assert config.save_on_backup is True
        assert config.broadcast_backup_messages is True
        assert config.backup_interval_seconds == 1800

    def test_from_env(self):
        """Test creating from environment variables."""
        with patch.dict(os.environ, {
            "BACKUP_INTERVAL_MINUTES": "15",
            "BACKUP_MAX_BACKUPS": "3",
            "BACKUP_MAX_AGE_DAYS": "2",
            "BACKUP_COMPRESSION_THREADS": "4",
            "BACKUP_COMPRESSION_LEVEL": "9",
            "BACKUP_AUTO_ENABLED": "false",
            "BACKUP_AUTO_CLEANUP": "off",
            "BACKUP_SAVE_ON_BACKUP": "0",
            "BACKUP_BROADCAST_MESSAGES": "TRUE",
        }):
            config = BackupConfig.from_env()
            assert config.backup_interval_minutes == 15
            assert config.max_backups == 3
            assert config.max_backup_age_days == 2
            assert config.compression_threads == 4
            assert config.compression_level == 9
            assert config.auto_backup_enabled is False
            assert config.auto_cleanup_enabled is False
            assert config.save_on_backup is False
            assert config.broadcast_backup_messages is True

    def test_validation(self):
        """Test validation errors."""
        with pytest.raises(ValueError, match="backup_interval_minutes must be positive"):
            BackupConfig(backup_interval_minutes=0)

        with pytest.raises(ValueError, match="max_backups must be positive"):
            BackupConfig(max_backups=-1)

        with pytest.raises(ValueError, match="max_backup_age_days must be positive"):
            BackupConfig(max_backup_age_days=0)

        with pytest.raises(ValueError, match="compression_threads must be positive"):
            BackupConfig(compression_threads=0)

        with pytest.raises(ValueError, match="compression_level must be between 0 and 9"):
            BackupConfig(compression_level=10)

    def test_retention_policy(self):
        policy = BackupConfig(max_backups=3, max_backup_age_days=7).retention_policy()
        assert policy == RetentionPolicy(max_count=3, max_age_days=7)

    def test_immutable(self):
        """Test that config is immutable."""
        config = BackupConfig()
        with pytest.raises(AttributeError):
            config.max_backups = 99


class TestVaultConfig:
    """Test main configuration."""

    def test_from_env(self):
        with patch.dict(os.environ, {"DIRVAULT_DATA_DIR": "lobby", "BACKUP_MAX_BACKUPS": "4"}):
            config = VaultConfig.from_env()
            assert config.storage.data_dir_name == "lobby"
            assert config.backup.max_backups == 4

    def test_replace_validates(self):
        config = VaultConfig()
        updated = dataclasses.replace(config, backup=dataclasses.replace(config.backup, max_backups=2))
        assert updated.backup.max_backups == 2

        with pytest.raises(ValueError):
            dataclasses.replace(config.backup, compression_level=-1)

    def test_to_dict(self):
        """Test flat dictionary view."""
        config = VaultConfig(storage=StorageConfig(base_dir="/srv"), backup=BackupConfig(compression_threads=2))
        data = config.to_dict()
        assert data["data_dir"] == str(Path("/srv/world"))
        assert data["backup_dir"] == str(Path("/srv/backups"))
        assert data["compression_threads"] == 2
        assert data["auto_backup_enabled"] is True
