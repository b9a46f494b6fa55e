"""Helpers shared by the test suite."""

import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, Optional

SAMPLE_FILES = {
    "level.dat": b"\x0a\x00\x00" + b"level-data" * 64,
    "session.lock": b"",
    "region/r.0.0.mca": os.urandom(4096) + b"\x00" * 8192,
    "region/r.0.-1.mca": b"chunk" * 2048,
    "playerdata/3f2a.json": b'{"name": "steve", "health": 20}',
    "data/nested/deep/file.txt": "unicode text: éèê\n".encode("utf-8"),
}


def populate_tree(root: Path, files: Optional[Dict[str, bytes]] = None) -> Dict[str, bytes]:
    """Write ``files`` (relative path -> bytes) below ``root``."""
    files = SAMPLE_FILES if files is None else files
    root.mkdir(parents=True, exist_ok=True)
    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
    return files


def read_tree(root: Path) -> Dict[str, bytes]:
    """Map every regular file below ``root`` to its bytes, keyed by POSIX path."""
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


def make_archive(
    backup_dir: Path,
    name: str,
    age_days: float = 0,
    now: Optional[datetime] = None,
    content: bytes = b"PK\x05\x06" + b"\x00" * 18,
) -> Path:
    """Create an archive-shaped file whose mtime is ``age_days`` before ``now``."""
    backup_dir.mkdir(parents=True, exist_ok=True)
    path = backup_dir / name
    path.write_bytes(content)
    created = (now or datetime.now()) - timedelta(days=age_days)
    stamp = created.timestamp()
    os.utime(path, (stamp, stamp))
    return path
