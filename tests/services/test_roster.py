# tests/services/test_roster.py

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from app.services.admission import admission_engine
from app.services.lifecycle import session_lifecycle
from app.services.roster import RosterNotifier, RosterSnapshot


async def new_session(db_handle, owner):
    async with db_handle.get_session(write=True) as db:
        return (await session_lifecycle.create_session(db, owner.id, "CS101")).id


async def check_in(db_handle, session_id, student_id, name, origin):
    async with db_handle.get_session(write=True) as db:
        return await admission_engine.submit_checkin(db, session_id, student_id, name, origin_address=origin)


@pytest.mark.asyncio
async def test_first_snapshot_is_init_then_updates_include_new_checkins(db_handle, owner):
    session_id = await new_session(db_handle, owner)
    await check_in(db_handle, session_id, "S1", "Alice", "10.0.0.1")
    notifier = RosterNotifier(poll_interval=0.01)

    stream = notifier.subscribe(session_id)
    try:
        first = await stream.__anext__()
        assert first.event == "init"
        assert [a.student_id for a in first.attendees] == ["S1"]

        await asyncio.sleep(0.01)
        await check_in(db_handle, session_id, "S2", "Bob", "10.0.0.2")

        second = await stream.__anext__()
        assert second.event == "update"
        # newest first
        assert [a.student_id for a in second.attendees] == ["S2", "S1"]
    finally:
        await stream.aclose()


@pytest.mark.asyncio
async def test_every_subscription_starts_with_full_snapshot(db_handle, owner):
    session_id = await new_session(db_handle, owner)
    await check_in(db_handle, session_id, "S1", "Alice", "10.0.0.1")
    notifier = RosterNotifier(poll_interval=0.01)

    for _ in range(2):
        stream = notifier.subscribe(session_id)
        snapshot = await stream.__anext__()
        await stream.aclose()
        assert snapshot.event == "init"
        assert len(snapshot.attendees) == 1


@pytest.mark.asyncio
async def test_unknown_session_ends_without_snapshots(db_handle):
    notifier = RosterNotifier(poll_interval=0.01)

    snapshots = [s async for s in notifier.subscribe("missing")]

    assert snapshots == []


@pytest.mark.asyncio
async def test_deleted_session_ends_stream_cleanly(db_handle, owner):
    session_id = await new_session(db_handle, owner)
    await check_in(db_handle, session_id, "S1", "Alice", "10.0.0.1")
    notifier = RosterNotifier(poll_interval=0.01)

    stream = notifier.subscribe(session_id)
    first = await stream.__anext__()
    assert first.event == "init"

    async with db_handle.get_session(write=True) as db:
        await session_lifecycle.delete_session(db, owner.id, session_id)

    remaining = [s async for s in stream]
    assert remaining == []


@pytest.mark.asyncio
async def test_subscribing_after_delete_terminates_without_error(db_handle, owner):
    session_id = await new_session(db_handle, owner)
    await check_in(db_handle, session_id, "S1", "Alice", "10.0.0.1")
    async with db_handle.get_session(write=True) as db:
        await session_lifecycle.delete_session(db, owner.id, session_id)

    snapshots = [s async for s in RosterNotifier(poll_interval=0.01).subscribe(session_id)]

    assert snapshots == []


@pytest.mark.asyncio
async def test_failed_fetch_skips_tick(db_handle, owner):
    session_id = await new_session(db_handle, owner)
    notifier = RosterNotifier(poll_interval=0.01)
    real_fetch = notifier.fetch_roster
    failure = OperationalError("SELECT", {}, Exception("database is locked"))
    calls = {"n": 0}

    async def flaky_fetch(sid):
        calls["n"] += 1
        if calls["n"] == 1:
            raise failure
        return await real_fetch(sid)

    notifier.fetch_roster = flaky_fetch

    stream = notifier.subscribe(session_id)
    snapshot = await stream.__anext__()
    await stream.aclose()

    assert calls["n"] == 2
    assert snapshot.event == "init"
    assert snapshot.attendees == []


@pytest.mark.asyncio
async def test_disconnect_stops_subscription(db_handle, owner):
    session_id = await new_session(db_handle, owner)
    notifier = RosterNotifier(poll_interval=0.01)
    is_disconnected = AsyncMock(side_effect=[False, False, True])

    snapshots = [s async for s in notifier.subscribe(session_id, is_disconnected=is_disconnected)]

    assert [s.event for s in snapshots] == ["init", "update"]
    assert is_disconnected.await_count == 3


@pytest.mark.asyncio
async def test_cancelled_subscription_leaves_no_pending_timer(db_handle, owner):
    session_id = await new_session(db_handle, owner)
    notifier = RosterNotifier(poll_interval=60)
    received = []

    async def consume():
        async for snapshot in notifier.subscribe(session_id):
            received.append(snapshot)

    task = asyncio.create_task(consume())
    while not received:
        await asyncio.sleep(0.01)

    # consumer is now parked in the poll sleep
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert task.done()
    assert len(received) == 1


def test_snapshot_sse_format():
    snapshot = RosterSnapshot(event="init", session_id="abc", attendees=[])

    line = snapshot.to_sse()

    assert line.startswith("data: ")
    assert line.endswith("\n\n")
    assert json.loads(line[len("data: "):]) == {"type": "init", "attendees": []}
