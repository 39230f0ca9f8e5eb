"""Tests for the update unit base classes."""

import pytest

from uplift.types import UpdateState
from uplift.updates.base import FunctionUpdate, SystemUpdate


def test_system_update_is_abstract():
    with pytest.raises(TypeError):
        SystemUpdate()


@pytest.mark.asyncio
async def test_default_async_phase_succeeds():
    class DirectOnly(SystemUpdate):
        description = "direct only"

        async def run_directly(self, db):
            pass

    assert await DirectOnly().run_async(None) is True


@pytest.mark.asyncio
async def test_function_update_calls_both_phases():
    calls = []

    async def direct(db):
        calls.append("direct")

    async def deferred(db):
        calls.append("async")
        return False

    unit = FunctionUpdate("v7", direct=direct, deferred=deferred, version=7)
    await unit.run_directly(None)
    result = await unit.run_async(None)

    assert calls == ["direct", "async"]
    assert result is False
    assert unit.version == 7
    assert unit.description == "v7"


@pytest.mark.asyncio
async def test_function_update_without_functions():
    unit = FunctionUpdate("noop")
    await unit.run_directly(None)
    assert await unit.run_async(None) is True


def test_new_unit_starts_registered():
    unit = FunctionUpdate("v1", version=1)
    assert unit.state == UpdateState.REGISTERED
    assert unit.lifecycle is unit.lifecycle
    assert "version=1" in repr(unit)
