"""Periodic backup and cleanup on a small background thread pool."""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterator, Optional, Union

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

from ._utils import DISPLAY_TIME_FORMAT, logger
from .backup.manager import BackupManager
from .backup.models import BackupResult
from .backup.retention import RetentionEnforcer
from .config import BackupConfig

AUTO_LABEL = "auto"
BACKUP_JOB_ID = "dirvault-auto-backup"
CLEANUP_JOB_ID = "dirvault-auto-cleanup"
CLEANUP_INTERVAL_HOURS = 1


@dataclass(frozen=True)
class BackupStarted:
    label: str


@dataclass(frozen=True)
class BackupCompleted:
    result: BackupResult


@dataclass(frozen=True)
class BackupFailed:
    error: str


@dataclass(frozen=True)
class CleanupCompleted:
    deleted_count: int


SchedulerEvent = Union[BackupStarted, BackupCompleted, BackupFailed, CleanupCompleted]


class BackupScheduler:
    """Runs the auto-backup and auto-cleanup jobs.

    The two jobs have independent cadences: backups every configured
    interval, cleanup every hour. Job bodies run on a two-thread pool and
    report through a single ``on_event`` callback.
    """

    def __init__(
        self,
        backup_manager: BackupManager,
        enforcer: RetentionEnforcer,
        config_source: Callable[[], BackupConfig],
        on_event: Optional[Callable[[SchedulerEvent], None]] = None,
        pre_backup_hook: Optional[Callable[[], bool]] = None,
    ):
        """Initialize scheduler.

        Args:
            backup_manager: Performs the backups
            enforcer: Applies retention after backups and hourly
            config_source: Returns the current BackupConfig; read on every
                start and every job run
            on_event: Receives SchedulerEvent values
            pre_backup_hook: Lets the host flush state; returning False
                cancels that firing
        """
        self.backup_manager = backup_manager
        self.enforcer = enforcer
        self._config_source = config_source
        self._on_event = on_event
        self._pre_backup_hook = pre_backup_hook

        self._scheduler: Optional[BackgroundScheduler] = None
        self._backup_job_active = False
        self._cleanup_job_active = False
        self._idle = threading.Condition()
        self._in_flight = 0

    def start(self) -> None:
        """Schedule the enabled jobs from the current configuration."""
        config = self._config_source()
        scheduler = self._ensure_scheduler()

        if config.auto_backup_enabled:
            scheduler.add_job(
                self._run_backup_job,
                "interval",
                minutes=config.backup_interval_minutes,
                id=BACKUP_JOB_ID,
                replace_existing=True,
            )
            self._backup_job_active = True

        if config.auto_cleanup_enabled:
            scheduler.add_job(
                self._run_cleanup_job,
                "interval",
                hours=CLEANUP_INTERVAL_HOURS,
                id=CLEANUP_JOB_ID,
                replace_existing=True,
            )
            self._cleanup_job_active = True

        logger.info(
            f"Backup scheduler started (interval: {config.backup_interval_minutes} minutes, "
            f"auto backup: {config.auto_backup_enabled}, auto cleanup: {config.auto_cleanup_enabled})"
        )

    def stop(self) -> None:
        """Cancel both jobs without waiting for a running body."""
        if self._scheduler is not None:
            for job_id in (BACKUP_JOB_ID, CLEANUP_JOB_ID):
                try:
                    self._scheduler.remove_job(job_id)
                except JobLookupError:
                    pass
        self._backup_job_active = False
        self._cleanup_job_active = False

    def restart(self) -> None:
        """Stop and start again, picking up configuration changes."""
        self.stop()
        self.start()

    def shutdown(self, timeout: float = 30.0) -> None:
        """Stop jobs, wait up to ``timeout`` seconds for running bodies, release threads."""
        self.stop()
        if self._scheduler is None:
            return

        with self._idle:
            drained = self._idle.wait_for(lambda: self._in_flight == 0, timeout=timeout)
        if not drained:
            logger.warning(f"Scheduled work still running after {timeout}s, shutting down without waiting")

        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Backup scheduler shut down")

    def is_running(self) -> bool:
        return self._backup_job_active

    @property
    def next_backup_time(self) -> Optional[datetime]:
        if self._scheduler is None or not self._backup_job_active:
            return None
        job = self._scheduler.get_job(BACKUP_JOB_ID)
        return job.next_run_time if job else None

    def next_backup_time_formatted(self, now: Optional[datetime] = None) -> str:
        next_time = self.next_backup_time
        if next_time is None:
            return "N/A (Auto backup disabled)"

        now = now or datetime.now(next_time.tzinfo)
        remaining = int((next_time - now).total_seconds())
        if remaining <= 0:
            return "Soon"
        minutes, seconds = divmod(remaining, 60)
        return f"{next_time.strftime(DISPLAY_TIME_FORMAT)} (in {minutes}m {seconds}s)"

    def _ensure_scheduler(self) -> BackgroundScheduler:
        if self._scheduler is None:
            self._scheduler = BackgroundScheduler(
                executors={"default": ThreadPoolExecutor(2)},
                job_defaults={"coalesce": True, "max_instances": 1},
            )
            self._scheduler.start()
        return self._scheduler

    def _run_backup_job(self) -> None:
        with self._tracked():
            config = self._config_source()
            if self.backup_manager.guard.is_active():
                logger.info("Skipping scheduled backup: another operation is in progress")
                return

            if config.save_on_backup and not self._run_pre_backup_hook():
                self._emit(BackupFailed("Pre-backup save failed, backup cancelled"))
                return

            self._emit(BackupStarted(AUTO_LABEL))
            result = self.backup_manager.create_backup_sync(AUTO_LABEL)
            if result.declined:
                logger.info(f"Scheduled backup skipped: {result.message}")
                return
            if not result.success:
                self._emit(BackupFailed(result.message))
                return

            self._emit(BackupCompleted(result))
            if config.auto_cleanup_enabled:
                self._cleanup(config)

    def _run_cleanup_job(self) -> None:
        with self._tracked():
            self._cleanup(self._config_source())

    def _cleanup(self, config: BackupConfig) -> int:
        deleted = self.enforcer.enforce(self.backup_manager.backup_dir, config.retention_policy())
        if deleted > 0:
            self._emit(CleanupCompleted(deleted))
        return deleted

    def _run_pre_backup_hook(self) -> bool:
        if self._pre_backup_hook is None:
            return True
        try:
            return bool(self._pre_backup_hook())
        except Exception as e:
            logger.error(f"Pre-backup hook failed: {e}", exc_info=True)
            return False

    def _emit(self, event: SchedulerEvent) -> None:
        if self._on_event is None:
            return
        try:
            self._on_event(event)
        except Exception as e:
            logger.error(f"Scheduler event handler failed for {type(event).__name__}: {e}", exc_info=True)

    @contextmanager
    def _tracked(self) -> Iterator[None]:
        with self._idle:
            self._in_flight += 1
        try:
            yield
        finally:
            with self._idle:
                self._in_flight -= 1
                self._idle.notify_all()
