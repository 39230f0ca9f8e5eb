"""Update Registry — runs direct phases and queues units for the drain.

`add_update()` is called by store bootstrap code, once per applicable unit,
in the order the units must be applied. The registry runs the unit's direct
phase right away inside a store transaction; only a unit whose direct phase
committed is appended to the queue. It never reorders, filters or
deduplicates: deciding which units apply is the caller's job.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable

import aiosqlite

from uplift.events.bus import UPDATE_DIRECT_FAILED, UPDATE_REGISTERED, EventBus
from uplift.exceptions import FatalMigrationError
from uplift.storage.schema import transaction
from uplift.types import UpdateState
from uplift.updates.base import SystemUpdate

Checkpoint = Callable[[SystemUpdate, aiosqlite.Connection], Awaitable[None]]

_logger = logging.getLogger(__name__)


class UpdateRegistry:
    """FIFO queue of units whose direct phase has completed."""

    def __init__(
        self,
        db: aiosqlite.Connection | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._db = db
        self._event_bus = event_bus
        self._queue: deque[SystemUpdate] = deque()
        self._lock = asyncio.Lock()

    @property
    def db(self) -> aiosqlite.Connection | None:
        return self._db

    def bind(self, db: aiosqlite.Connection | None) -> None:
        """Attach the store connection used for direct and async phases."""
        self._db = db

    async def add_update(
        self,
        unit: SystemUpdate,
        checkpoint: Checkpoint | None = None,
    ) -> None:
        """Run `unit`'s direct phase and queue it on success.

        `checkpoint` runs in the same transaction right after the direct
        phase, so whatever it records commits or rolls back together with
        the unit's own changes.

        Raises FatalMigrationError if the direct phase (or the checkpoint)
        fails. The queue is left exactly as it was. Events are emitted
        after the queue lock is released, so subscribers may call back
        into the registry.
        """
        error: Exception | None = None
        async with self._lock:
            await unit.lifecycle.transition(UpdateState.DIRECT_RUNNING)
            _logger.info("Running direct phase of update %s", unit.description)
            try:
                if self._db is None:
                    await unit.run_directly(None)
                else:
                    async with transaction(self._db):
                        await unit.run_directly(self._db)
                        if checkpoint is not None:
                            await checkpoint(unit, self._db)
            except Exception as e:
                await unit.lifecycle.transition(UpdateState.DIRECT_FAILED)
                _logger.error("Direct phase of update %s failed: %s", unit.description, e)
                error = e
            else:
                await unit.lifecycle.transition(UpdateState.QUEUED)
                self._queue.append(unit)
                queued = len(self._queue)

        if error is not None:
            await self._emit(
                UPDATE_DIRECT_FAILED,
                {"description": unit.description, "version": unit.version, "error": str(error)},
            )
            if isinstance(error, FatalMigrationError):
                raise error
            raise FatalMigrationError(
                f"Update '{unit.description}' failed: {error}"
            ) from error

        await self._emit(
            UPDATE_REGISTERED,
            {"description": unit.description, "version": unit.version, "queued": queued},
        )

    def has_updates(self) -> bool:
        return len(self._queue) > 0

    def __len__(self) -> int:
        return len(self._queue)

    def pending(self) -> list[SystemUpdate]:
        """Queued units in drain order. A copy; the queue is not touched."""
        return list(self._queue)

    async def peek(self) -> SystemUpdate | None:
        """The head of the queue without removing it, or None if it is empty."""
        async with self._lock:
            return self._queue[0] if self._queue else None

    async def pop(self) -> SystemUpdate | None:
        """Remove and return the head of the queue, or None if it is empty."""
        async with self._lock:
            if not self._queue:
                return None
            return self._queue.popleft()

    async def _emit(self, topic: str, data: dict) -> None:
        if self._event_bus:
            await self._event_bus.emit(topic, data, source="update_registry")
