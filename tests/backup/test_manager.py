"""Tests for BackupManager."""

import asyncio
import zipfile
from unittest.mock import patch

import pytest

from dirvault.backup.guard import OperationGuard, OperationKind
from dirvault.backup.manager import BackupManager
from dirvault.exceptions import BackupDirectoryError
from tests.utils import SAMPLE_FILES


@pytest.fixture
def manager(data_dir, backup_dir):
    return BackupManager(data_dir, backup_dir, compression_level=6, compression_threads=2)


def test_initialization_creates_backup_dir(data_dir, backup_dir):
    manager = BackupManager(data_dir, backup_dir)

    assert backup_dir.is_dir()
    assert manager.codec.thread_count == 1
    assert isinstance(manager.guard, OperationGuard)
    assert not manager.is_backing_up


def test_unusable_backup_dir_raises(data_dir, base_dir):
    blocker = base_dir / "not-a-dir"
    blocker.write_text("file in the way")

    with pytest.raises(BackupDirectoryError):
        BackupManager(data_dir, blocker / "backups")


def test_stale_partial_archives_removed_on_start(data_dir, backup_dir):
    backup_dir.mkdir()
    (backup_dir / "backup_2024-01-01_00-00-00.zip.part").write_bytes(b"truncated")
    (backup_dir / "backup_2024-01-01_00-00-00.zip").write_bytes(b"kept")

    BackupManager(data_dir, backup_dir)

    assert sorted(p.name for p in backup_dir.iterdir()) == ["backup_2024-01-01_00-00-00.zip"]


@pytest.mark.asyncio
async def test_create_backup(manager, backup_dir):
    result = await manager.create_backup()

    assert result.success
    assert not result.declined
    assert result.archive_path.parent == backup_dir
    assert result.archive_path.exists()
    assert result.message.startswith(f"Backup created: {result.archive_path.name} (")
    assert "threads: 2)" in result.message
    assert result.compression.file_count == len(SAMPLE_FILES)
    with zipfile.ZipFile(result.archive_path) as zf:
        assert set(zf.namelist()) == set(SAMPLE_FILES)
    assert not manager.is_backing_up


@pytest.mark.asyncio
async def test_create_backup_with_label(manager):
    result = await manager.create_backup("My Label!")

    assert result.success
    assert result.archive_path.name.endswith("_My_Label_.zip")
    assert manager.list_backups()[0].label == "My_Label_"


@pytest.mark.asyncio
async def test_concurrent_requests_yield_one_archive(manager, backup_dir):
    """Of two backups awaited together exactly one runs."""
    first, second = await asyncio.gather(manager.create_backup(), manager.create_backup())

    assert sorted([first.success, second.success]) == [False, True]
    declined = first if not first.success else second
    assert declined.declined
    assert declined.message == "A backup is already in progress"
    assert len(list(backup_dir.glob("*.zip"))) == 1


def test_backup_declined_while_restore_runs(manager, backup_dir):
    with manager.guard.hold(OperationKind.RESTORE):
        result = manager.create_backup_sync()

    assert not result.success
    assert result.declined
    assert result.message == "Cannot start backup: a restore is in progress"
    assert list(backup_dir.glob("*.zip")) == []


@pytest.mark.asyncio
async def test_missing_data_dir(backup_dir, base_dir):
    manager = BackupManager(base_dir / "absent", backup_dir)

    result = await manager.create_backup()

    assert not result.success
    assert not result.declined
    assert result.message.startswith("Backup failed: Data directory not found")
    assert list(backup_dir.iterdir()) == []
    assert not manager.is_backing_up


def test_same_second_collision_fails(manager):
    with patch("dirvault.backup.manager.generate_archive_name", return_value="backup_fixed.zip"):
        first = manager.create_backup_sync()
        second = manager.create_backup_sync()

    assert first.success
    assert not second.success
    assert second.message == "Backup failed: Backup already exists: backup_fixed.zip"


def test_configure_replaces_codec(manager):
    manager.configure(compression_level=9, compression_threads=0)

    assert manager.codec.compression_level == 9
    assert manager.codec.thread_count == 1


def test_list_get_and_delete(manager, backup_dir):
    result = manager.create_backup_sync("one")
    name = result.archive_path.name

    assert [a.name for a in manager.list_backups()] == [name]
    assert manager.get_backup_path("1") == backup_dir / name
    assert manager.get_backup_path(name) == backup_dir / name
    assert manager.get_backup_path("2") is None

    assert manager.delete_backup(backup_dir / name)
    assert not manager.delete_backup(backup_dir / name)
    assert manager.list_backups() == []
