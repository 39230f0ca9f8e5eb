"""Event Bus — where the update engine publishes its progress.

Subscribers register for fnmatch patterns; "update.*" receives every
topic in UPDATE_TOPICS. Handlers of one event run concurrently. A
handler that raises is logged and never reaches the emitter, so a broken
subscriber cannot fail a registration or a drain.
"""

from __future__ import annotations

import asyncio
import fnmatch
import logging
from collections import defaultdict, deque
from datetime import datetime
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, Field

from uplift.types import new_id

UPDATE_REGISTERED = "update.registered"
UPDATE_DIRECT_FAILED = "update.direct_failed"
UPDATE_STARTED = "update.started"
UPDATE_FINISHED = "update.finished"
UPDATE_DRAIN_COMPLETED = "update.drain_completed"

UPDATE_TOPICS = frozenset({
    UPDATE_REGISTERED,
    UPDATE_DIRECT_FAILED,
    UPDATE_STARTED,
    UPDATE_FINISHED,
    UPDATE_DRAIN_COMPLETED,
})

EventHandler = Callable[["Event"], Awaitable[None]]

_logger = logging.getLogger(__name__)


class Event(BaseModel):
    id: str = Field(default_factory=new_id)
    topic: str
    data: dict[str, Any] = Field(default_factory=dict)
    source: str = ""
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class EventBus:
    """Pattern-matched pub/sub with a bounded record of recent events."""

    def __init__(self, history_limit: int = 500) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._recent: deque[Event] = deque(maxlen=history_limit)

    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        self._handlers[pattern].append(handler)

    async def emit(self, topic: str, data: dict | None = None, source: str = "") -> Event:
        event = Event(topic=topic, data=data or {}, source=source)
        self._recent.append(event)

        handlers = [
            handler
            for pattern, subscribed in self._handlers.items()
            if fnmatch.fnmatchcase(topic, pattern)
            for handler in subscribed
        ]
        if not handlers:
            return event

        results = await asyncio.gather(
            *(handler(event) for handler in handlers), return_exceptions=True
        )
        for result in results:
            if isinstance(result, Exception):
                _logger.warning("Handler for event '%s' failed: %s", topic, result)
        return event

    def history(self, pattern: str = "*", limit: int = 50) -> list[Event]:
        """Recent events matching `pattern`, newest first."""
        matched = [e for e in reversed(self._recent) if fnmatch.fnmatchcase(e.topic, pattern)]
        return matched[:limit]
