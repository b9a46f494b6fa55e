"""Process-wide owner of the backup engine."""

import asyncio
import dataclasses
from pathlib import Path
from typing import Any, Callable, List, Optional

from ._utils import logger
from .backup.guard import OperationGuard, OperationKind
from .backup.manager import BackupManager
from .backup.models import (
    ArchiveInfo,
    BackupResult,
    CommitOutcome,
    RestoreResult,
    StatusReport,
)
from .backup.restore import RestoreManager
from .backup.retention import RetentionEnforcer
from .config import BackupConfig, VaultConfig
from .exceptions import InvalidReferenceError, OperationInProgressError
from .scheduler import BackupScheduler, SchedulerEvent

PRE_BACKUP_FAILED_MESSAGE = "Pre-backup save failed, backup cancelled"

_RUNTIME_FIELDS = frozenset(f.name for f in dataclasses.fields(BackupConfig))


class BackupVault:
    """Wires the guard, managers, retention and scheduler around one data directory.

    Construct once per process and pass it to whatever needs it. The host
    drives it through ``on_host_starting`` (before it opens the data
    directory), ``on_host_started`` and ``on_host_stopping``.
    """

    def __init__(
        self,
        config: VaultConfig,
        pre_backup_hook: Optional[Callable[[], bool]] = None,
        on_event: Optional[Callable[[SchedulerEvent], None]] = None,
    ):
        """Initialize the vault.

        Args:
            config: Storage layout and backup settings
            pre_backup_hook: Called before each backup when ``save_on_backup``
                is enabled; returning False or raising cancels the backup
            on_event: Receives scheduler events when
                ``broadcast_backup_messages`` is enabled

        Raises:
            BackupDirectoryError: the archive directory cannot be created
        """
        self._config = config
        self._pre_backup_hook = pre_backup_hook
        self._on_event = on_event
        self._started = False

        storage = config.storage
        self.guard = OperationGuard()
        self.backup_manager = BackupManager(
            storage.data_dir,
            storage.backup_dir,
            compression_level=config.backup.compression_level,
            compression_threads=config.backup.compression_threads,
            guard=self.guard,
        )
        self.restore_manager = RestoreManager(
            self.backup_manager,
            storage.data_dir,
            storage.staging_dir,
            storage.marker_path,
        )
        self.enforcer = RetentionEnforcer()
        self.scheduler = BackupScheduler(
            self.backup_manager,
            self.enforcer,
            config_source=lambda: self._config.backup,
            on_event=self._forward_event,
            pre_backup_hook=pre_backup_hook,
        )

    @property
    def config(self) -> VaultConfig:
        return self._config

    # Host lifecycle

    def on_host_starting(self) -> CommitOutcome:
        """Commit a staged restore. Call before the data directory is opened."""
        outcome = self.restore_manager.check_and_commit_pending_restore()
        if outcome is not CommitOutcome.NONE:
            logger.info(f"Pending restore check finished: {outcome.value}")
        return outcome

    def on_host_started(self) -> None:
        self.scheduler.start()
        self._started = True

    def on_host_stopping(self, timeout: float = 30.0) -> None:
        self._started = False
        self.scheduler.shutdown(timeout=timeout)

    # Commands

    async def create_backup(self, label: Optional[str] = None) -> BackupResult:
        """Manual backup: pre-backup hook, backup, then retention when enabled.

        The hook and retention run on worker threads like the backup itself.
        """
        active = self.guard.active
        if active is not None:
            error = OperationInProgressError(active, OperationKind.BACKUP)
            return BackupResult(success=False, message=str(error), declined=True)

        backup_config = self._config.backup
        if backup_config.save_on_backup and not await asyncio.to_thread(self._run_pre_backup_hook):
            return BackupResult(success=False, message=PRE_BACKUP_FAILED_MESSAGE)

        result = await self.backup_manager.create_backup(label)
        if result.success and backup_config.auto_cleanup_enabled:
            await asyncio.to_thread(self.cleanup)
        return result

    def list_backups(self) -> List[ArchiveInfo]:
        return self.backup_manager.list_backups()

    def resolve(self, reference: str) -> Path:
        """Resolve a listing index or archive name.

        Raises:
            InvalidReferenceError: nothing matches ``reference``
        """
        path = self.backup_manager.get_backup_path(reference)
        if path is None:
            raise InvalidReferenceError(reference)
        return path

    def delete(self, reference: str) -> bool:
        """Delete an archive by index or name.

        Raises:
            InvalidReferenceError: nothing matches ``reference``
        """
        return self.backup_manager.delete_backup(self.resolve(reference))

    async def restore(self, reference: str) -> RestoreResult:
        """Stage a restore from an archive picked by index or name.

        Raises:
            InvalidReferenceError: nothing matches ``reference``
        """
        return await self.restore_manager.stage_restore(self.resolve(reference))

    def cleanup(self) -> int:
        """Apply the retention policy now; returns the number of archives removed."""
        return self.enforcer.enforce(
            self.backup_manager.backup_dir,
            self._config.backup.retention_policy(),
        )

    def has_pending_restore(self) -> bool:
        return self.restore_manager.has_pending_restore()

    def status(self) -> StatusReport:
        backup_config = self._config.backup
        return StatusReport(
            auto_backup_enabled=backup_config.auto_backup_enabled,
            auto_cleanup_enabled=backup_config.auto_cleanup_enabled,
            backup_interval_minutes=backup_config.backup_interval_minutes,
            max_backups=backup_config.max_backups,
            max_backup_age_days=backup_config.max_backup_age_days,
            compression_threads=backup_config.compression_threads,
            compression_level=backup_config.compression_level,
            backing_up=self.backup_manager.is_backing_up,
            restoring=self.restore_manager.is_restoring,
            pending_restore=self.has_pending_restore(),
            total_backups=len(self.list_backups()),
            scheduler_running=self.scheduler.is_running(),
            next_backup=self.scheduler.next_backup_time_formatted(),
        )

    def update_config(self, **changes: Any) -> VaultConfig:
        """Change backup settings at runtime.

        Args:
            **changes: BackupConfig field names and their new values

        Returns:
            The new configuration

        Raises:
            ValueError: unknown field or invalid value; nothing is applied
        """
        unknown = sorted(set(changes) - _RUNTIME_FIELDS)
        if unknown:
            raise ValueError(f"Unknown or read-only settings: {', '.join(unknown)}")

        try:
            backup_config = dataclasses.replace(self._config.backup, **changes)
        except TypeError as e:
            raise ValueError(f"Invalid setting value: {e}") from e
        self._config = dataclasses.replace(self._config, backup=backup_config)
        self.backup_manager.configure(backup_config.compression_level, backup_config.compression_threads)
        logger.info(f"Configuration updated: {', '.join(sorted(changes)) or 'no changes'}")

        if self._started:
            self.scheduler.restart()
        return self._config

    def _forward_event(self, event: SchedulerEvent) -> None:
        if self._on_event is not None and self._config.backup.broadcast_backup_messages:
            self._on_event(event)

    def _run_pre_backup_hook(self) -> bool:
        if self._pre_backup_hook is None:
            return True
        try:
            return bool(self._pre_backup_hook())
        except Exception as e:
            logger.error(f"Pre-backup hook failed: {e}", exc_info=True)
            return False
