"""Event bus fan-out and commit-scoped delivery."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from taskforperks.db_models import Task
from taskforperks.events import (
    PG_CHANNEL,
    Event,
    EventBus,
    enqueue_event,
    event_bus,
    pending_events,
)
from tests.conftest import make_task


def test_subscriber_receives_only_its_task():
    bus = EventBus()
    mine = bus.subscribe("tk_a")
    other = bus.subscribe("tk_b")

    bus.publish(Event(type="task_claimed", task_id="tk_a", data={"version": 1}))

    assert mine.get_nowait().data == {"version": 1}
    assert other.empty()


def test_firehose_receives_every_task():
    bus = EventBus()
    firehose = bus.subscribe()

    bus.publish(Event(type="task_claimed", task_id="tk_a"))
    bus.publish(Event(type="task_claimed", task_id="tk_b"))

    assert [firehose.get_nowait().task_id for _ in range(2)] == ["tk_a", "tk_b"]


def test_unsubscribe_stops_delivery():
    bus = EventBus()
    queue = bus.subscribe("tk_a")
    assert bus.subscriber_count("tk_a") == 1

    bus.unsubscribe("tk_a", queue)
    bus.unsubscribe("tk_a", queue)
    bus.publish(Event(type="task_claimed", task_id="tk_a"))

    assert bus.subscriber_count("tk_a") == 0
    assert queue.empty()


def test_full_queue_drops_event():
    bus = EventBus(max_queue_size=1)
    queue = bus.subscribe("tk_a")

    bus.publish(Event(type="task_claimed", task_id="tk_a", data={"version": 1}))
    bus.publish(Event(type="task_claimed", task_id="tk_a", data={"version": 2}))

    assert queue.qsize() == 1
    assert queue.get_nowait().data["version"] == 1


def test_close_wakes_subscribers():
    bus = EventBus()
    queue = bus.subscribe("tk_a")
    bus.close()
    assert queue.get_nowait() is None
    assert bus.subscriber_count("tk_a") == 0


def test_payload_is_flat_json():
    ev = Event(type="task_claimed", task_id="tk_a", data={"version": 3})
    assert ev.to_payload() == '{"type": "task_claimed", "task_id": "tk_a", "version": 3}'


@pytest.mark.asyncio
async def test_event_held_until_commit(db):
    tid = await make_task(db)
    queue = event_bus.subscribe(tid)
    try:
        async with db() as session:
            await session.get(Task, tid)
            await enqueue_event(session, Event(type="task_claimed", task_id=tid))
            assert len(pending_events(session)) == 1
            assert queue.empty()
            await session.commit()
            assert pending_events(session) == []
        assert queue.get_nowait().task_id == tid
    finally:
        event_bus.unsubscribe(tid, queue)


@pytest.mark.asyncio
async def test_event_discarded_on_rollback(db):
    tid = await make_task(db)
    queue = event_bus.subscribe(tid)
    try:
        async with db() as session:
            await session.get(Task, tid)
            await enqueue_event(session, Event(type="task_claimed", task_id=tid))
            await session.rollback()
            assert pending_events(session) == []
            # A later commit on the same session must not resurrect it
            await session.commit()
        assert queue.empty()
    finally:
        event_bus.unsubscribe(tid, queue)


def _fake_session(dialect: str) -> MagicMock:
    session = MagicMock()
    session.get_bind.return_value.dialect.name = dialect
    session.execute = AsyncMock()
    session.sync_session.info = {}
    return session


@pytest.mark.asyncio
async def test_postgres_event_also_goes_through_pg_notify():
    session = _fake_session("postgresql")
    ev = Event(type="task_claimed", task_id="tk_pg", data={"version": 2})

    await enqueue_event(session, ev)

    statement, params = session.execute.await_args.args
    assert "pg_notify" in str(statement)
    assert params == {"channel": PG_CHANNEL, "payload": ev.to_payload()}
    # Still held for the in-process bus until commit
    assert pending_events(session) == [ev]


@pytest.mark.asyncio
async def test_sqlite_event_skips_pg_notify():
    session = _fake_session("sqlite")
    await enqueue_event(session, Event(type="task_claimed", task_id="tk_lite"))
    session.execute.assert_not_awaited()
    assert len(pending_events(session)) == 1


@pytest.mark.asyncio
async def test_sse_stream_delivers_claim_event():
    from taskforperks.api.events import event_stream

    request = MagicMock()
    request.is_disconnected = AsyncMock(return_value=False)

    resp = await event_stream(request, task_id="tk_sse")
    assert event_bus.subscriber_count("tk_sse") == 1
    assert resp.headers["cache-control"] == "no-cache, no-transform"

    event_bus.publish(Event(type="task_claimed", task_id="tk_sse", data={"version": 1}))
    body = resp.body_iterator
    chunk = await asyncio.wait_for(body.__anext__(), timeout=1)
    assert chunk.startswith("event: task_claimed\n")
    assert '"version": 1' in chunk

    await body.aclose()
    assert event_bus.subscriber_count("tk_sse") == 0
