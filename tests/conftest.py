"""Shared test fixtures: stub update units, a recording observer, temp stores."""

from __future__ import annotations

import asyncio
import os
import tempfile

import aiosqlite
import pytest
import pytest_asyncio

from uplift.updates.base import SystemUpdate


class StubUpdate(SystemUpdate):
    """Update unit with scripted outcomes. Records every phase call in `log`."""

    def __init__(
        self,
        name: str,
        async_result: bool = True,
        direct_error: Exception | None = None,
        async_error: Exception | None = None,
        version: int | None = None,
        log: list | None = None,
        delay: float = 0,
    ):
        self.name = name
        self.async_result = async_result
        self.direct_error = direct_error
        self.async_error = async_error
        self.version = version
        self.log = log if log is not None else []
        self.delay = delay

    @property
    def description(self) -> str:
        return self.name

    async def run_directly(self, db):
        self.log.append(("direct", self.name))
        if self.direct_error is not None:
            raise self.direct_error

    async def run_async(self, db):
        if self.delay:
            await asyncio.sleep(self.delay)
        self.log.append(("async", self.name))
        if self.async_error is not None:
            raise self.async_error
        return self.async_result


class RecordingObserver:
    """Observer that records (event, description[, success]) tuples."""

    def __init__(self):
        self.calls: list[tuple] = []

    async def on_start(self, unit):
        self.calls.append(("start", unit.description))

    async def on_finished(self, unit, success):
        self.calls.append(("finish", unit.description, success))


@pytest.fixture
def make_update():
    def _factory(name: str, **kwargs) -> StubUpdate:
        return StubUpdate(name, **kwargs)
    return _factory


@pytest.fixture
def recorder():
    return RecordingObserver()


@pytest.fixture
def db_path():
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    yield path
    os.unlink(path)


@pytest_asyncio.fixture
async def db(db_path):
    conn = await aiosqlite.connect(db_path, isolation_level=None)
    yield conn
    await conn.close()
