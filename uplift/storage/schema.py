"""SQLite helpers shared by the registry, the bootstrap and update units.

Connections used with `transaction()` must be opened in autocommit mode
(`isolation_level=None`) so that BEGIN/COMMIT are issued only here.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import aiosqlite

_logger = logging.getLogger(__name__)


@asynccontextmanager
async def transaction(db: aiosqlite.Connection) -> AsyncIterator[aiosqlite.Connection]:
    """Scoped transaction: commit on success, roll back on any exception.

    A failing COMMIT (a deferred constraint, SQLITE_BUSY) is rolled back
    too, so the connection never stays inside an open transaction.
    """
    await db.execute("BEGIN")
    try:
        yield db
        await db.execute("COMMIT")
    except BaseException:
        # SQLite may already have rolled back on its own
        if db.in_transaction:
            await db.execute("ROLLBACK")
        _logger.debug("Transaction rolled back")
        raise


async def table_exists(db: aiosqlite.Connection, table: str) -> bool:
    cursor = await db.execute(
        "SELECT 1 FROM sqlite_master WHERE type='table' AND name=?", (table,)
    )
    row = await cursor.fetchone()
    return row is not None


async def column_exists(db: aiosqlite.Connection, table: str, column: str) -> bool:
    """Whether `table` has a column named `column`. False if the table is missing."""
    cursor = await db.execute(f"PRAGMA table_info(`{table}`)")
    rows = await cursor.fetchall()
    return any(row[1] == column for row in rows)


async def get_store_version(db: aiosqlite.Connection) -> int:
    cursor = await db.execute("PRAGMA user_version")
    row = await cursor.fetchone()
    return row[0] if row and row[0] is not None else 0


async def set_store_version(db: aiosqlite.Connection, version: int) -> None:
    # PRAGMA does not accept bound parameters
    await db.execute(f"PRAGMA user_version = {int(version)}")
