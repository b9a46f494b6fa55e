"""Two-phase restore: stage now, swap in at the next controlled restart."""

import asyncio
import logging
import shutil
import time
from pathlib import Path
from typing import Optional, Union

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .._utils import ARCHIVE_SUFFIX, atomic_write_json, load_json, logger
from ..exceptions import OperationInProgressError
from .guard import OperationKind
from .manager import BackupManager
from .models import CommitOutcome, PendingRestore, RestoreResult

STAGED_MESSAGE = (
    "Backup extracted successfully! Stop the server to complete the restore. "
    "The data directory will be replaced at the next controlled restart."
)

_fs_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    retry=retry_if_exception_type(OSError),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


@_fs_retry
def _remove_path(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.exists():
        shutil.rmtree(path)


@_fs_retry
def _move_into_place(source: Path, destination: Path) -> None:
    shutil.move(str(source), str(destination))


class RestoreManager:
    """Owns the pending-restore marker and the staging directory.

    Staging decompresses an archive beside the live directory and records a
    durable marker. The destructive swap happens only in
    ``check_and_commit_pending_restore``, which the host must call before
    it opens the data directory.
    """

    def __init__(
        self,
        backup_manager: BackupManager,
        data_dir: Path,
        staging_dir: Path,
        marker_path: Path,
    ):
        """Initialize restore manager.

        Args:
            backup_manager: Supplies the catalog, codec and shared guard
            data_dir: Live directory replaced on commit
            staging_dir: Side directory receiving the decompressed archive
            marker_path: Marker file location, outside ``data_dir``
        """
        self.backup_manager = backup_manager
        self.guard = backup_manager.guard
        self.data_dir = Path(data_dir)
        self.staging_dir = Path(staging_dir)
        self.marker_path = Path(marker_path)

    @property
    def is_restoring(self) -> bool:
        return self.guard.is_active(OperationKind.RESTORE)

    async def stage_restore(self, reference: Union[str, Path]) -> RestoreResult:
        """Decompress an archive into the staging directory and persist the marker.

        Args:
            reference: Listing index, archive name, or path to an archive

        Returns:
            RestoreResult; the live directory is untouched either way
        """
        start = time.monotonic()
        try:
            with self.guard.hold(OperationKind.RESTORE):
                archive = self._resolve_archive(reference)
                if archive is None:
                    return RestoreResult(success=False, message=f"Backup file not found: {reference}")
                return await asyncio.to_thread(self._stage, archive, start)
        except OperationInProgressError as e:
            logger.info(f"Restore declined: {e}")
            return RestoreResult(success=False, message=str(e), declined=True)

    def has_pending_restore(self) -> bool:
        return self.marker_path.exists()

    def load_pending_restore(self) -> Optional[PendingRestore]:
        """Read the marker, or None when no restore is pending.

        Raises:
            OSError, ValueError: the marker exists but cannot be parsed
        """
        if not self.marker_path.exists():
            return None
        return PendingRestore.model_validate(load_json(self.marker_path))

    def check_and_commit_pending_restore(self) -> CommitOutcome:
        """Swap the staged directory into place if a restore is pending.

        Must run before anything reads or writes the data directory. A
        marker whose staging directory is gone is discarded without
        touching the live directory. If the swap fails the marker is kept
        so the next start retries it.
        """
        if not self.has_pending_restore():
            return CommitOutcome.NONE

        logger.info("Executing pending restore...")
        try:
            pending = self.load_pending_restore()
        except (OSError, ValueError) as e:
            logger.error(f"Pending restore marker is unreadable, discarding it: {e}")
            self._clear_marker()
            return CommitOutcome.DISCARDED

        if pending is None:
            return CommitOutcome.NONE

        if not pending.staging_path.is_dir():
            logger.error(f"Staging directory not found: {pending.staging_path}, discarding pending restore")
            self._clear_marker()
            return CommitOutcome.DISCARDED

        try:
            with self.guard.hold(OperationKind.RESTORE):
                logger.info(f"Removing current data directory: {self.data_dir}")
                _remove_path(self.data_dir)
                logger.info(f"Moving restored data from: {pending.staging_path}")
                _move_into_place(pending.staging_path, self.data_dir)
        except (OSError, OperationInProgressError) as e:
            logger.error(f"Failed to execute pending restore: {e}", exc_info=True)
            return CommitOutcome.FAILED

        self._clear_marker()
        logger.info(f"Restore completed successfully from: {pending.backup_name}")
        return CommitOutcome.COMMITTED

    def _resolve_archive(self, reference: Union[str, Path]) -> Optional[Path]:
        if not isinstance(reference, Path):
            path = self.backup_manager.get_backup_path(reference)
            if path is not None:
                return path
            reference = Path(reference)
        if reference.name.endswith(ARCHIVE_SUFFIX) and reference.is_file():
            return reference
        return None

    def _stage(self, archive: Path, start: float) -> RestoreResult:
        try:
            # A new stage supersedes any earlier one; its staging dir is about to go
            self._clear_marker()
            _remove_path(self.staging_dir)
            self.staging_dir.mkdir(parents=True)

            logger.info(f"Starting restore from: {archive}")
            self.backup_manager.codec.decompress(archive, self.staging_dir)

            pending = PendingRestore(
                staging_path=self.staging_dir.absolute(),
                backup_name=archive.name,
                timestamp=int(time.time() * 1000),
            )
            atomic_write_json(self.marker_path, pending.to_marker())
            logger.info("Pending restore saved. Server must be stopped to complete restore.")
        except Exception as e:
            logger.error(f"Restore failed: {e}", exc_info=True)
            self._clear_marker()
            self._discard_staging()
            return RestoreResult(success=False, message=f"Restore failed: {e}", backup_name=archive.name)

        duration = int((time.monotonic() - start) * 1000)
        logger.info(f"Restore prepared in {duration}ms")
        return RestoreResult(
            success=True,
            message=STAGED_MESSAGE,
            backup_name=archive.name,
            staging_dir=self.staging_dir,
        )

    def _clear_marker(self) -> None:
        try:
            self.marker_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to remove pending restore marker {self.marker_path}: {e}")

    def _discard_staging(self) -> None:
        try:
            _remove_path(self.staging_dir)
        except OSError as e:
            logger.warning(f"Could not remove staging directory {self.staging_dir}: {e}")
