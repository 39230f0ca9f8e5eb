"""Drain observers — caller-supplied sinks for per-unit progress.

The runner calls `on_start(unit)` before a unit's async phase and
`on_finished(unit, success)` after it, strictly in drain order. Observers
should be quick and must not touch the update queue.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol, runtime_checkable

import aiosqlite

from uplift.events.bus import UPDATE_FINISHED, UPDATE_STARTED, EventBus
from uplift.updates.base import SystemUpdate

_logger = logging.getLogger(__name__)


@runtime_checkable
class UpdateObserver(Protocol):
    async def on_start(self, unit: SystemUpdate) -> None: ...

    async def on_finished(self, unit: SystemUpdate, success: bool) -> None: ...


class LoggingObserver:
    """Writes one log line per notification."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or _logger

    async def on_start(self, unit: SystemUpdate) -> None:
        self._logger.info("Running update to %s", unit.description)

    async def on_finished(self, unit: SystemUpdate, success: bool) -> None:
        if success:
            self._logger.info("System updated to %s", unit.description)
        else:
            self._logger.error("System update to %s failed!", unit.description)


class HistoryObserver:
    """Persists async phase outcomes into the `update_history` table.

    The table is created by the builtin update 1; before it exists nothing
    is recorded.
    """

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db
        self._started: dict[int, datetime] = {}

    async def on_start(self, unit: SystemUpdate) -> None:
        self._started[id(unit)] = datetime.utcnow()

    async def on_finished(self, unit: SystemUpdate, success: bool) -> None:
        started_at = self._started.pop(id(unit), datetime.utcnow())
        try:
            await self._db.execute(
                """INSERT INTO update_history
                   (version, description, success, started_at, finished_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (
                    unit.version,
                    unit.description,
                    int(success),
                    started_at.isoformat(),
                    datetime.utcnow().isoformat(),
                ),
            )
            await self._db.commit()
        except aiosqlite.OperationalError as e:
            _logger.warning("Could not record outcome of %s: %s", unit.description, e)


class EventBusObserver:
    """Publishes `update.started` / `update.finished` on an event bus."""

    def __init__(self, event_bus: EventBus) -> None:
        self._bus = event_bus

    async def on_start(self, unit: SystemUpdate) -> None:
        await self._bus.emit(
            UPDATE_STARTED,
            {"description": unit.description, "version": unit.version},
            source="update_runner",
        )

    async def on_finished(self, unit: SystemUpdate, success: bool) -> None:
        await self._bus.emit(
            UPDATE_FINISHED,
            {"description": unit.description, "version": unit.version, "success": success},
            source="update_runner",
        )


class CompositeObserver:
    """Forwards every notification to each observer, in order."""

    def __init__(self, *observers: UpdateObserver) -> None:
        self._observers = list(observers)

    async def on_start(self, unit: SystemUpdate) -> None:
        for observer in self._observers:
            await observer.on_start(unit)

    async def on_finished(self, unit: SystemUpdate, success: bool) -> None:
        for observer in self._observers:
            await observer.on_finished(unit, success)
