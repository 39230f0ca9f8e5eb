"""Store bootstrap — opens the store and registers pending updates.

This is the collaborator that decides which update units apply. It reads
the version recorded in the store (`PRAGMA user_version`), builds every
catalog unit above it and registers them with the UpdateSystem in
ascending order. Each unit's direct phase commits together with the
version bump, so after a crash the next start resumes at the first unit
that did not commit.

A failed direct phase aborts the whole bootstrap with
StoreInitializationError; the connection is closed and must not be used.
"""

from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite

from uplift.exceptions import FatalMigrationError, StoreInitializationError
from uplift.storage.catalog import UpdateCatalog
from uplift.storage.lock import MigrationLock
from uplift.storage.schema import get_store_version, set_store_version
from uplift.updates.base import SystemUpdate
from uplift.updates.system import UpdateSystem

_logger = logging.getLogger(__name__)


async def record_version(unit: SystemUpdate, db: aiosqlite.Connection) -> None:
    """Checkpoint: mark the store as being at `unit.version`."""
    if unit.version is not None:
        await set_store_version(db, unit.version)


class StoreBootstrap:
    """Opens a SQLite store and brings it up to the catalog's latest version."""

    def __init__(
        self,
        db_path: Path | str,
        update_system: UpdateSystem,
        catalog: UpdateCatalog,
        lock_stale_seconds: int = 600,
    ) -> None:
        self._db_path = Path(db_path)
        self._system = update_system
        self._catalog = catalog
        self._lock = MigrationLock(
            self._db_path.with_name(self._db_path.name + ".lock"),
            stale_seconds=lock_stale_seconds,
        )
        self._db: aiosqlite.Connection | None = None
        self.old_version = 0

    @property
    def db(self) -> aiosqlite.Connection | None:
        return self._db

    async def open(self) -> aiosqlite.Connection:
        """Open the store, running every applicable direct phase.

        Raises MigrationLockedError if another process holds the migration
        lock and StoreInitializationError if a direct phase fails.
        """
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock.acquire()
        try:
            db = await aiosqlite.connect(str(self._db_path), isolation_level=None)
            try:
                await self._upgrade(db)
            except FatalMigrationError as e:
                await db.close()
                self._system.bind(None)
                raise StoreInitializationError(
                    f"Store {self._db_path} could not be initialized: {e}"
                ) from e
            except BaseException:
                await db.close()
                self._system.bind(None)
                raise
        finally:
            self._lock.release()

        self._db = db
        return db

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None
            self._system.bind(None)

    async def __aenter__(self) -> aiosqlite.Connection:
        return await self.open()

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def _upgrade(self, db: aiosqlite.Connection) -> None:
        self._system.bind(db)
        self.old_version = await get_store_version(db)
        latest = self._catalog.latest_version
        if self.old_version > latest:
            _logger.warning(
                "Store %s is at version %d, newer than the latest known update %d",
                self._db_path, self.old_version, latest,
            )
            return

        units = self._catalog.applicable(self.old_version)
        if not units:
            _logger.debug("Store %s is up to date at version %d", self._db_path, self.old_version)
            return

        _logger.info("Upgrading store, version %d -> %d", self.old_version, latest)
        for unit in units:
            await self._system.add_update(unit, checkpoint=record_version)
