"""Update unit state machine — enforces the one-way unit lifecycle."""

from __future__ import annotations

import asyncio
from typing import Callable, Awaitable

from uplift.types import UpdateState
from uplift.exceptions import UpdateStateError

TransitionCallback = Callable[[str, UpdateState, UpdateState], Awaitable[None]]

# Every edge is taken at most once; there is no retry state
VALID_TRANSITIONS: dict[UpdateState, set[UpdateState]] = {
    UpdateState.REGISTERED: {UpdateState.DIRECT_RUNNING},
    UpdateState.DIRECT_RUNNING: {UpdateState.DIRECT_FAILED, UpdateState.QUEUED},
    UpdateState.DIRECT_FAILED: set(),  # terminal, fatal
    UpdateState.QUEUED: {UpdateState.ASYNC_RUNNING},
    UpdateState.ASYNC_RUNNING: {
        UpdateState.ASYNC_SUCCEEDED,
        UpdateState.ASYNC_FAILED,
    },
    UpdateState.ASYNC_SUCCEEDED: set(),  # terminal
    UpdateState.ASYNC_FAILED: set(),  # terminal, non-fatal
}

TERMINAL_STATES = frozenset(s for s, targets in VALID_TRANSITIONS.items() if not targets)


class UpdateStateMachine:
    """Tracks the lifecycle state of a single update unit.

    Enforces that only valid transitions occur and notifies listeners
    on every state change.
    """

    def __init__(self, label: str):
        self.label = label
        self._state = UpdateState.REGISTERED
        self._listeners: list[TransitionCallback] = []
        self._lock = asyncio.Lock()

    @property
    def state(self) -> UpdateState:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    async def transition(self, target: UpdateState) -> None:
        async with self._lock:
            valid = VALID_TRANSITIONS.get(self._state, set())
            if target not in valid:
                raise UpdateStateError(
                    f"Cannot transition update '{self.label}' "
                    f"from {self._state.value} to {target.value}"
                )
            old = self._state
            self._state = target
        # Notify listeners outside the lock
        for listener in self._listeners:
            await listener(self.label, old, target)

    def on_transition(self, callback: TransitionCallback) -> None:
        self._listeners.append(callback)
