"""Listing and lookup of archives in the backup directory."""

from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .._utils import ARCHIVE_SUFFIX, logger, parse_archive_label
from .models import ArchiveInfo


class ArchiveCatalog:
    """Read-only view over the ``*.zip`` files of one directory."""

    def __init__(self, backup_dir: Path):
        self.backup_dir = Path(backup_dir)

    def list_archives(self) -> List[ArchiveInfo]:
        """List archives, newest first.

        Files whose attributes cannot be read are skipped.
        """
        if not self.backup_dir.is_dir():
            return []

        try:
            candidates = [p for p in self.backup_dir.iterdir() if p.name.endswith(ARCHIVE_SUFFIX)]
        except OSError as e:
            logger.warning(f"Failed to list backup directory {self.backup_dir}: {e}")
            return []

        archives = [info for info in (self.describe(p) for p in candidates) if info is not None]
        archives.sort(key=lambda a: a.created_at, reverse=True)
        return archives

    def describe(self, path: Path) -> Optional[ArchiveInfo]:
        """Build ArchiveInfo from filesystem attributes, or None on error."""
        try:
            stat = path.stat()
        except OSError:
            return None
        if not path.is_file():
            return None
        # Archives are renamed into place complete and never modified afterwards,
        # so the modification time is their creation instant.
        return ArchiveInfo(
            path=path,
            created_at=datetime.fromtimestamp(stat.st_mtime),
            size_bytes=stat.st_size,
            label=parse_archive_label(path.name),
        )

    def resolve(self, reference: str) -> Optional[str]:
        """Resolve a 1-based listing index or an archive name to a filename.

        Args:
            reference: "2" for the second-newest archive, or a filename with
                or without the .zip suffix

        Returns:
            Archive filename, or None when nothing matches
        """
        reference = reference.strip()
        if not reference:
            return None

        if reference.isascii() and reference.isdecimal():
            index = int(reference)
            archives = self.list_archives()
            if index < 1 or index > len(archives):
                return None
            return archives[index - 1].name

        if "/" in reference or "\\" in reference or reference in (".", ".."):
            return None
        name = reference if reference.endswith(ARCHIVE_SUFFIX) else reference + ARCHIVE_SUFFIX
        if (self.backup_dir / name).is_file():
            return name
        return None

    def resolve_path(self, reference: str) -> Optional[Path]:
        name = self.resolve(reference)
        if name is None:
            return None
        return self.backup_dir / name
