import json
import logging
import os
import re
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger("dirvault")

ARCHIVE_PREFIX = "backup_"
ARCHIVE_SUFFIX = ".zip"
PARTIAL_SUFFIX = ".part"
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
DISPLAY_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_LABEL_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


def sanitize_label(label: str) -> str:
    """Replace every character outside [A-Za-z0-9_-] with an underscore."""
    return _LABEL_UNSAFE.sub("_", label)


def generate_archive_name(label: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """Build an archive filename.

    Args:
        label: Optional free-text label, sanitized before use
        now: Timestamp to encode (defaults to local time)

    Returns:
        ``backup_<yyyy-MM-dd_HH-mm-ss>[_<label>].zip``
    """
    timestamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    if label:
        return f"{ARCHIVE_PREFIX}{timestamp}_{sanitize_label(label)}{ARCHIVE_SUFFIX}"
    return f"{ARCHIVE_PREFIX}{timestamp}{ARCHIVE_SUFFIX}"


def parse_archive_label(filename: str) -> str:
    """Recover the label from an archive filename, or "" when there is none.

    The timestamp itself contains one underscore, so anything after the
    second underscore-delimited segment is the label.
    """
    if "_" not in filename or not filename.endswith(ARCHIVE_SUFFIX):
        return ""
    stem = filename[: -len(ARCHIVE_SUFFIX)]
    if stem.startswith(ARCHIVE_PREFIX):
        stem = stem[len(ARCHIVE_PREFIX):]
    parts = stem.split("_")
    if len(parts) > 2:
        return "_".join(parts[2:])
    return ""


def format_size(num_bytes: int) -> str:
    """Human readable size using 1024-based units."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.2f} KB"
    if num_bytes < 1024 * 1024 * 1024:
        return f"{num_bytes / (1024 * 1024):.2f} MB"
    return f"{num_bytes / (1024 * 1024 * 1024):.2f} GB"


def atomic_write_json(path: Path, data: Dict[str, Any]) -> None:
    """Write JSON to ``path`` through a temp file, fsync and rename.

    Args:
        path: Destination file
        data: JSON-serialisable mapping
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


def load_json(path: Path) -> Dict[str, Any]:
    """Load a JSON object from ``path``."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
