"""CLI runtime context — wires settings, catalog and update system."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Coroutine

from uplift.config import UpliftSettings, settings as default_settings
from uplift.events.bus import EventBus
from uplift.storage.bootstrap import StoreBootstrap
from uplift.storage.catalog import UpdateCatalog
from uplift.updates.system import UpdateSystem


class UpliftContext:
    """Holds the subsystem instances for one CLI invocation."""

    def __init__(
        self,
        config: UpliftSettings | None = None,
        db_path: Path | None = None,
        updates_package: str | None = None,
    ) -> None:
        self.settings = config or default_settings
        self.db_path = Path(db_path or self.settings.store_path)
        self.event_bus = EventBus()
        self.update_system = UpdateSystem(event_bus=self.event_bus)
        self.catalog = UpdateCatalog()
        self.catalog.discover(updates_package or self.settings.updates_package)

    def bootstrap(self) -> StoreBootstrap:
        return StoreBootstrap(
            self.db_path,
            self.update_system,
            self.catalog,
            lock_stale_seconds=self.settings.lock_stale_seconds,
        )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run_async(coro: Coroutine) -> Any:
    """Run an async coroutine from sync CLI code."""
    return asyncio.run(coro)
