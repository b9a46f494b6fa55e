"""Count and age based archive retention."""

from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

from .._utils import logger
from .catalog import ArchiveCatalog
from .models import ArchiveInfo, RetentionPolicy


class RetentionEnforcer:
    """Delete archives outside a RetentionPolicy.

    The count and age rules are applied independently and unioned: an
    archive ranked beyond ``max_count`` goes regardless of age, and an
    archive older than ``max_age_days`` goes regardless of rank.
    """

    def plan(
        self,
        archive_dir: Path,
        policy: RetentionPolicy,
        now: Optional[datetime] = None,
    ) -> List[ArchiveInfo]:
        """Return the archives that ``enforce`` would delete, newest first."""
        archives = ArchiveCatalog(archive_dir).list_archives()
        cutoff = (now or datetime.now()) - timedelta(days=policy.max_age_days)

        doomed = []
        for rank, archive in enumerate(archives, start=1):
            if archive.created_at < cutoff or rank > policy.max_count:
                doomed.append(archive)
        return doomed

    def enforce(
        self,
        archive_dir: Path,
        policy: RetentionPolicy,
        now: Optional[datetime] = None,
    ) -> int:
        """Delete archives outside ``policy``.

        Args:
            archive_dir: Backup directory; a missing directory is a no-op
            policy: Retention limits
            now: Reference instant for the age cutoff (defaults to now)

        Returns:
            Number of archives actually removed
        """
        deleted = 0
        for archive in self.plan(archive_dir, policy, now):
            try:
                archive.path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Failed to delete old backup {archive.name}: {e}")
                continue
            deleted += 1
            logger.debug(f"Retention removed {archive.name}")

        if deleted:
            logger.info(
                f"Retention removed {deleted} backup(s) "
                f"(max {policy.max_count}, max age {policy.max_age_days} days)"
            )
        return deleted
