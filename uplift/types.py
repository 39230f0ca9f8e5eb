"""Core types shared across all uplift subsystems."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


def new_id() -> str:
    return uuid.uuid4().hex[:12]


# ── Update States ─────────────────────────────────────────────────────────────


class UpdateState(str, Enum):
    REGISTERED = "registered"
    DIRECT_RUNNING = "direct_running"
    DIRECT_FAILED = "direct_failed"
    QUEUED = "queued"
    ASYNC_RUNNING = "async_running"
    ASYNC_SUCCEEDED = "async_succeeded"
    ASYNC_FAILED = "async_failed"


# ── Drain Results ─────────────────────────────────────────────────────────────


class UpdateOutcome(BaseModel):
    """Result of one unit's async phase during a drain."""

    id: str = Field(default_factory=new_id)
    description: str
    version: int | None = None
    success: bool = False
    started_at: datetime = Field(default_factory=datetime.utcnow)
    finished_at: datetime | None = None
    error: str = ""


class UpdateEvent(BaseModel):
    """A progress notification yielded while draining the queue."""

    kind: Literal["started", "finished"]
    description: str
    version: int | None = None
    success: bool | None = None  # only set for "finished"
    timestamp: datetime = Field(default_factory=datetime.utcnow)
