"""Tests for OperationGuard."""

import pytest

from dirvault.backup.guard import OperationGuard, OperationKind
from dirvault.exceptions import OperationInProgressError


def test_hold_marks_active_until_exit():
    guard = OperationGuard()

    with guard.hold(OperationKind.BACKUP):
        assert guard.active is OperationKind.BACKUP
        assert guard.is_active()
        assert guard.is_active(OperationKind.BACKUP)
        assert not guard.is_active(OperationKind.RESTORE)

    assert guard.active is None
    assert not guard.is_active()


def test_same_kind_is_declined():
    guard = OperationGuard()

    with guard.hold(OperationKind.BACKUP):
        with pytest.raises(OperationInProgressError, match="A backup is already in progress"):
            with guard.hold(OperationKind.BACKUP):
                pass
        assert guard.active is OperationKind.BACKUP


def test_backup_and_restore_exclude_each_other():
    guard = OperationGuard()

    with guard.hold(OperationKind.RESTORE):
        with pytest.raises(OperationInProgressError) as exc_info:
            with guard.hold(OperationKind.BACKUP):
                pass

    assert str(exc_info.value) == "Cannot start backup: a restore is in progress"
    assert exc_info.value.active is OperationKind.RESTORE
    assert exc_info.value.requested is OperationKind.BACKUP


def test_released_when_block_raises():
    guard = OperationGuard()

    with pytest.raises(RuntimeError):
        with guard.hold(OperationKind.RESTORE):
            raise RuntimeError("boom")

    assert guard.active is None


def test_mismatched_release_is_ignored():
    guard = OperationGuard()

    with guard.hold(OperationKind.BACKUP):
        guard.release(OperationKind.RESTORE)
        assert guard.active is OperationKind.BACKUP
