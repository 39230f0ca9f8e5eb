"""Abstract base for update units.

An update unit is one discrete migration step with two phases:

- the direct phase runs once, at registration time, while the store is
  being opened. Structural changes the store cannot be used without belong
  here. Raising from it aborts store initialization.
- the async phase runs once, later, when the application drains the
  update queue. Slow or best-effort work belongs here. It reports success
  as a boolean and never aborts the drain.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

import aiosqlite

from uplift.types import UpdateState
from uplift.updates.state_machine import UpdateStateMachine

DirectFn = Callable[["aiosqlite.Connection | None"], Awaitable[None]]
AsyncFn = Callable[["aiosqlite.Connection | None"], Awaitable[bool]]


class SystemUpdate(ABC):
    """Contract implemented by every concrete update unit."""

    # Store version this unit brings the store to. Read by the catalog,
    # never by the registry or runner.
    version: int | None = None

    @abstractmethod
    async def run_directly(self, db: aiosqlite.Connection | None) -> None:
        """Apply changes that must be in place before the store is used."""
        ...

    async def run_async(self, db: aiosqlite.Connection | None) -> bool:
        """Apply deferred work. Returns False on a non-fatal failure."""
        return True

    @property
    @abstractmethod
    def description(self) -> str: ...

    @property
    def lifecycle(self) -> UpdateStateMachine:
        machine = self.__dict__.get("_lifecycle")
        if machine is None:
            machine = UpdateStateMachine(self.description)
            self.__dict__["_lifecycle"] = machine
        return machine

    @property
    def state(self) -> UpdateState:
        return self.lifecycle.state

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} version={self.version} "
            f"description={self.description!r} state={self.state.value}>"
        )


class FunctionUpdate(SystemUpdate):
    """Update unit assembled from plain coroutine functions."""

    def __init__(
        self,
        description: str,
        direct: DirectFn | None = None,
        deferred: AsyncFn | None = None,
        version: int | None = None,
    ) -> None:
        self._description = description
        self._direct = direct
        self._deferred = deferred
        self.version = version

    @property
    def description(self) -> str:
        return self._description

    async def run_directly(self, db: aiosqlite.Connection | None) -> None:
        if self._direct is not None:
            await self._direct(db)

    async def run_async(self, db: aiosqlite.Connection | None) -> bool:
        if self._deferred is None:
            return True
        return bool(await self._deferred(db))
