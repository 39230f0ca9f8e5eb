"""Migration lock — one process migrates a store at a time.

The lock is a file next to the store holding the owner's pid. A lock file
older than `stale_seconds` is assumed to be left behind by a crashed
process and is taken over.
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path

from uplift.exceptions import MigrationLockedError

_logger = logging.getLogger(__name__)


class MigrationLock:
    def __init__(self, path: Path, stale_seconds: int = 600) -> None:
        self.path = Path(path)
        self._stale_seconds = stale_seconds
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._create()
        except FileExistsError:
            if not self._is_stale():
                raise MigrationLockedError(
                    f"Store is being migrated by another process (lock: {self.path})"
                )
            _logger.warning("Removing stale migration lock %s", self.path)
            self.path.unlink(missing_ok=True)
            try:
                self._create()
            except FileExistsError:
                raise MigrationLockedError(
                    f"Store is being migrated by another process (lock: {self.path})"
                ) from None
        self._held = True

    def release(self) -> None:
        if self._held:
            self.path.unlink(missing_ok=True)
            self._held = False

    def __enter__(self) -> MigrationLock:
        self.acquire()
        return self

    def __exit__(self, *exc) -> None:
        self.release()

    def _create(self) -> None:
        fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        with os.fdopen(fd, "w") as f:
            f.write(str(os.getpid()))

    def _is_stale(self) -> bool:
        try:
            age = time.time() - self.path.stat().st_mtime
        except FileNotFoundError:
            return True
        return age > self._stale_seconds
