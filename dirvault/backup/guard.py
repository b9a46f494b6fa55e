"""Single-flight guard shared by backup and restore."""

import threading
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional

from .._utils import logger
from ..exceptions import OperationInProgressError


class OperationKind(str, Enum):
    BACKUP = "backup"
    RESTORE = "restore"


class OperationGuard:
    """At most one long-running operation, of any kind, at a time.

    Requests made while the guard is held are declined, never queued.
    State lives in memory only, so it is reset by a process restart.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._active: Optional[OperationKind] = None

    @property
    def active(self) -> Optional[OperationKind]:
        return self._active

    def is_active(self, kind: Optional[OperationKind] = None) -> bool:
        """Whether ``kind`` (or any operation when None) is running."""
        if kind is None:
            return self._active is not None
        return self._active == kind

    def release(self, kind: OperationKind) -> None:
        with self._lock:
            if self._active != kind:
                logger.warning(f"Release of {kind.value} guard while {self._active} is held")
                return
            self._active = None

    @contextmanager
    def hold(self, kind: OperationKind) -> Iterator[None]:
        """Hold the guard for the duration of the block.

        Raises:
            OperationInProgressError: another operation holds the guard
        """
        with self._lock:
            if self._active is not None:
                raise OperationInProgressError(self._active, kind)
            self._active = kind
        try:
            yield
        finally:
            self.release(kind)
