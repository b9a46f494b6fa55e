from .backup import (
    ArchiveInfo,
    BackupManager,
    BackupResult,
    CommitOutcome,
    RestoreManager,
    RestoreResult,
    RetentionEnforcer,
    RetentionPolicy,
    StatusReport,
)
from .config import BackupConfig, StorageConfig, VaultConfig
from .scheduler import (
    BackupCompleted,
    BackupFailed,
    BackupScheduler,
    BackupStarted,
    CleanupCompleted,
    SchedulerEvent,
)
from .vault import BackupVault

__version__ = "0.1.0"
__author__ = "dirvault contributors"
__url__ = ""
