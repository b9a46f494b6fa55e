"""Backup orchestration for the live data directory."""

import asyncio
import time
from pathlib import Path
from typing import List, Optional

from .._utils import (
    ARCHIVE_SUFFIX,
    PARTIAL_SUFFIX,
    format_size,
    generate_archive_name,
    logger,
)
from ..exceptions import BackupDirectoryError, OperationInProgressError, SourceMissingError
from .catalog import ArchiveCatalog
from .codec import ArchiveCodec
from .guard import OperationGuard, OperationKind
from .models import ArchiveInfo, BackupResult


class BackupManager:
    """Create, list and delete snapshots of one data directory."""

    def __init__(
        self,
        data_dir: Path,
        backup_dir: Path,
        compression_level: int = 6,
        compression_threads: int = 1,
        guard: Optional[OperationGuard] = None,
    ):
        """Initialize backup manager.

        Args:
            data_dir: Live directory to snapshot
            backup_dir: Directory holding the archives, created if absent
            compression_level: zlib level for every entry
            compression_threads: Compression worker pool size
            guard: Single-flight guard, shared with the restore manager

        Raises:
            BackupDirectoryError: ``backup_dir`` cannot be created
        """
        self.data_dir = Path(data_dir)
        self.backup_dir = Path(backup_dir)
        self.guard = guard or OperationGuard()
        self.codec = ArchiveCodec(compression_level, compression_threads)
        self.catalog = ArchiveCatalog(self.backup_dir)

        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BackupDirectoryError(self.backup_dir, e) from e

        self._purge_partial_archives()

    @property
    def is_backing_up(self) -> bool:
        return self.guard.is_active(OperationKind.BACKUP)

    def configure(self, compression_level: int, compression_threads: int) -> None:
        """Apply new compression settings to subsequent backups."""
        self.codec = ArchiveCodec(compression_level, compression_threads)

    async def create_backup(self, label: Optional[str] = None) -> BackupResult:
        """Create a backup without blocking the event loop.

        The guard is taken before the first await, so of several calls
        awaited together exactly one runs and the rest are declined.

        Args:
            label: Optional label appended to the archive name

        Returns:
            BackupResult; never raises for operational failures
        """
        start = time.monotonic()
        try:
            with self.guard.hold(OperationKind.BACKUP):
                return await asyncio.to_thread(self._run_backup, label, start)
        except OperationInProgressError as e:
            return self._declined(e)

    def create_backup_sync(self, label: Optional[str] = None) -> BackupResult:
        """Blocking variant of create_backup for callers without an event loop."""
        start = time.monotonic()
        try:
            with self.guard.hold(OperationKind.BACKUP):
                return self._run_backup(label, start)
        except OperationInProgressError as e:
            return self._declined(e)

    def list_backups(self) -> List[ArchiveInfo]:
        """List all archives, newest first."""
        return self.catalog.list_archives()

    def delete_backup(self, archive_file: Path) -> bool:
        """Delete an archive.

        Args:
            archive_file: Archive path

        Returns:
            True if a file was removed, False otherwise (including I/O errors)
        """
        try:
            Path(archive_file).unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Failed to delete backup {archive_file}: {e}")
            return False

        logger.info(f"Deleted backup: {Path(archive_file).name}")
        return True

    def get_backup_path(self, reference: str) -> Optional[Path]:
        """Resolve a listing index or archive name to its path."""
        return self.catalog.resolve_path(reference)

    def _run_backup(self, label: Optional[str], start: float) -> BackupResult:
        try:
            if not self.data_dir.is_dir():
                raise SourceMissingError(self.data_dir)

            backup_name = generate_archive_name(label)
            backup_file = self.backup_dir / backup_name
            if backup_file.exists():
                raise FileExistsError(f"Backup already exists: {backup_name}")

            logger.info(f"Starting backup: {backup_name}")
            result = self.codec.compress(self.data_dir, backup_file)
            duration = self._elapsed_ms(start)

            message = (
                f"Backup created: {backup_name} "
                f"({format_size(result.original_bytes)} -> {format_size(result.compressed_bytes)}, "
                f"ratio: {result.space_saved_percent:.1f}%, "
                f"time: {duration}ms, threads: {result.workers_used})"
            )
            logger.info(message)
            return BackupResult(
                success=True,
                message=message,
                archive_path=backup_file,
                duration_ms=duration,
                compression=result,
            )
        except Exception as e:
            logger.error(f"Backup failed: {e}", exc_info=True)
            return BackupResult(
                success=False,
                message=f"Backup failed: {e}",
                duration_ms=self._elapsed_ms(start),
            )

    def _declined(self, error: OperationInProgressError) -> BackupResult:
        logger.info(f"Backup declined: {error}")
        return BackupResult(success=False, message=str(error), declined=True)

    def _purge_partial_archives(self) -> None:
        for partial in self.backup_dir.glob(f"*{ARCHIVE_SUFFIX}{PARTIAL_SUFFIX}"):
            logger.warning(f"Removing incomplete archive from an interrupted backup: {partial.name}")
            try:
                partial.unlink()
            except OSError as e:
                logger.warning(f"Could not remove {partial}: {e}")

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.monotonic() - start) * 1000)
