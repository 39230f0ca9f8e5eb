"""End-to-end tests of the update system: register, then drain."""

import pytest

from uplift.exceptions import FatalMigrationError
from uplift.updates.system import UpdateSystem


@pytest.mark.asyncio
async def test_register_then_drain_scenario(recorder, make_update):
    system = UpdateSystem()
    await system.add_update(make_update("A", async_result=True))
    await system.add_update(make_update("B", async_result=False))
    await system.add_update(make_update("C", async_result=True))
    assert system.has_updates()

    await system.update(recorder)

    assert recorder.calls == [
        ("start", "A"), ("finish", "A", True),
        ("start", "B"), ("finish", "B", False),
        ("start", "C"), ("finish", "C", True),
    ]
    assert not system.has_updates()


@pytest.mark.asyncio
async def test_fatal_registration_leaves_queue_untouched(recorder, make_update):
    system = UpdateSystem()
    for name in ("A", "B", "C"):
        await system.add_update(make_update(name))

    with pytest.raises(FatalMigrationError):
        await system.add_update(make_update("D", direct_error=OSError("read-only")))

    assert [u.description for u in system.pending()] == ["A", "B", "C"]
    await system.update(recorder)
    assert "D" not in {call[1] for call in recorder.calls}


@pytest.mark.asyncio
async def test_fatal_registration_first(make_update):
    system = UpdateSystem()
    with pytest.raises(FatalMigrationError):
        await system.add_update(make_update("D", direct_error=OSError("read-only")))
    assert not system.has_updates()
    assert system.pending() == []


@pytest.mark.asyncio
async def test_separate_systems_do_not_share_queues(make_update):
    first, second = UpdateSystem(), UpdateSystem()
    await first.add_update(make_update("A"))
    assert first.has_updates()
    assert not second.has_updates()


@pytest.mark.asyncio
async def test_events_interface(make_update):
    system = UpdateSystem()
    await system.add_update(make_update("A"))

    kinds = [e.kind async for e in system.events()]

    assert kinds == ["started", "finished"]
    assert not system.has_updates()
