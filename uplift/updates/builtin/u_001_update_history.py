"""Update 1: create the table HistoryObserver writes drain outcomes to."""

from __future__ import annotations

import logging

import aiosqlite

from uplift.storage.schema import table_exists
from uplift.updates.base import SystemUpdate

_logger = logging.getLogger(__name__)


class Update(SystemUpdate):
    version = 1

    @property
    def description(self) -> str:
        return "version 1 (update history table)"

    async def run_directly(self, db: aiosqlite.Connection | None) -> None:
        if await table_exists(db, "update_history"):
            return
        await db.execute("""
            CREATE TABLE update_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                version INTEGER,
                description TEXT NOT NULL,
                success INTEGER NOT NULL,
                started_at TEXT NOT NULL,
                finished_at TEXT NOT NULL
            )
        """)
        _logger.info("Created table `update_history`")
