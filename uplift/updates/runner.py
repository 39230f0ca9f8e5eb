"""Update Runner — drains the registry queue, running each async phase.

Policy: attempt every queued unit exactly once, in registration order,
report every outcome, never abort the drain because one unit failed.
The drain runs on the awaiting task with no internal concurrency; callers
that must not block schedule it as a background task themselves.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import AsyncIterator

import structlog

from uplift.events.bus import UPDATE_DRAIN_COMPLETED, EventBus
from uplift.types import UpdateEvent, UpdateOutcome, UpdateState
from uplift.updates.base import SystemUpdate
from uplift.updates.observer import UpdateObserver
from uplift.updates.registry import UpdateRegistry

logger = structlog.get_logger()


class UpdateRunner:
    """Runs the async phase of every queued unit until the queue is empty."""

    def __init__(
        self,
        registry: UpdateRegistry,
        event_bus: EventBus | None = None,
    ) -> None:
        self._registry = registry
        self._event_bus = event_bus
        self._drain_lock = asyncio.Lock()
        self._history: list[UpdateOutcome] = []

    async def update(self, observer: UpdateObserver | None = None) -> list[UpdateOutcome]:
        """Drain the queue. Returns the outcomes of this drain in order.

        On an already empty queue this returns immediately without
        notifying the observer.
        """
        outcomes: list[UpdateOutcome] = []
        async with self._drain_lock:
            while (unit := await self._registry.pop()) is not None:
                if observer is not None:
                    await observer.on_start(unit)
                outcome = await self._run(unit)
                if observer is not None:
                    await observer.on_finished(unit, outcome.success)
                outcomes.append(outcome)
            if outcomes:
                await self._drain_completed(outcomes)
        return outcomes

    async def events(self) -> AsyncIterator[UpdateEvent]:
        """Drain the queue, yielding a started/finished pair per unit.

        A unit leaves the queue only once the consumer asks for the event
        after `started`. A consumer that stops at `started` leaves that
        unit queued for the next drain. The drain lock is held until the
        iterator is exhausted or closed.
        """
        outcomes: list[UpdateOutcome] = []
        async with self._drain_lock:
            try:
                while (unit := await self._registry.peek()) is not None:
                    yield UpdateEvent(
                        kind="started", description=unit.description, version=unit.version
                    )
                    await self._registry.pop()
                    outcome = await self._run(unit)
                    outcomes.append(outcome)
                    yield UpdateEvent(
                        kind="finished",
                        description=unit.description,
                        version=unit.version,
                        success=outcome.success,
                    )
            finally:
                if outcomes:
                    await self._drain_completed(outcomes)

    @property
    def history(self) -> list[UpdateOutcome]:
        """Every outcome produced by this runner, across drains."""
        return list(self._history)

    async def _run(self, unit: SystemUpdate) -> UpdateOutcome:
        outcome = UpdateOutcome(description=unit.description, version=unit.version)
        await unit.lifecycle.transition(UpdateState.ASYNC_RUNNING)
        logger.info("update_async_started", update=unit.description, version=unit.version)
        try:
            outcome.success = bool(await unit.run_async(self._registry.db))
        except Exception as e:
            # An exception from the async phase counts as a plain failure
            logger.error(
                "update_async_raised",
                update=unit.description,
                version=unit.version,
                error=str(e),
            )
            outcome.success = False
            outcome.error = str(e)
        outcome.finished_at = datetime.utcnow()

        await unit.lifecycle.transition(
            UpdateState.ASYNC_SUCCEEDED if outcome.success else UpdateState.ASYNC_FAILED
        )
        if outcome.success:
            logger.info("update_async_succeeded", update=unit.description, version=unit.version)
        else:
            logger.warning("update_async_failed", update=unit.description, version=unit.version)
        self._history.append(outcome)
        return outcome

    async def _drain_completed(self, outcomes: list[UpdateOutcome]) -> None:
        failed = sum(1 for o in outcomes if not o.success)
        logger.info("update_drain_completed", total=len(outcomes), failed=failed)
        if self._event_bus:
            await self._event_bus.emit(
                UPDATE_DRAIN_COMPLETED,
                {"total": len(outcomes), "failed": failed},
                source="update_runner",
            )
