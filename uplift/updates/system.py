"""UpdateSystem — the owned entry point to the update engine.

Whoever drives startup creates one instance and passes it to the store
bootstrap (which registers units) and to the foreground trigger (which
drains them). There is no module-level instance.

Registration must finish before the drain starts; add/pop on the queue are
serialized either way.
"""

from __future__ import annotations

from typing import AsyncIterator

import aiosqlite

from uplift.events.bus import EventBus
from uplift.types import UpdateEvent, UpdateOutcome
from uplift.updates.base import SystemUpdate
from uplift.updates.observer import UpdateObserver
from uplift.updates.registry import Checkpoint, UpdateRegistry
from uplift.updates.runner import UpdateRunner


class UpdateSystem:
    def __init__(
        self,
        db: aiosqlite.Connection | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self.event_bus = event_bus
        self.registry = UpdateRegistry(db=db, event_bus=event_bus)
        self.runner = UpdateRunner(self.registry, event_bus=event_bus)

    def bind(self, db: aiosqlite.Connection | None) -> None:
        self.registry.bind(db)

    async def add_update(
        self, unit: SystemUpdate, checkpoint: Checkpoint | None = None
    ) -> None:
        await self.registry.add_update(unit, checkpoint=checkpoint)

    def has_updates(self) -> bool:
        return self.registry.has_updates()

    def pending(self) -> list[SystemUpdate]:
        return self.registry.pending()

    async def update(self, observer: UpdateObserver | None = None) -> list[UpdateOutcome]:
        return await self.runner.update(observer)

    def events(self) -> AsyncIterator[UpdateEvent]:
        return self.runner.events()
