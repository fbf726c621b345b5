"""Task notification channel.

Events are buffered on the SQLAlchemy session that produced them and only
reach subscribers once that session commits. A rollback discards them, so a
subscriber never hears about a claim that did not persist.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from dataclasses import dataclass, field

from sqlalchemy import event as sa_event
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from taskforperks.config import settings

logger = logging.getLogger("taskforperks.events")

_PENDING_KEY = "taskforperks.pending_events"

# Channel name used for pg_notify on PostgreSQL
PG_CHANNEL = "task_claimed"


@dataclass
class Event:
    type: str
    task_id: str
    data: dict = field(default_factory=dict)

    def to_payload(self) -> str:
        return json.dumps({"type": self.type, "task_id": self.task_id, **self.data})


class EventBus:
    """Fan-out of task events to per-task and firehose subscribers."""

    def __init__(self, max_queue_size: int = 100) -> None:
        self.max_queue_size = max_queue_size
        # None key holds subscribers to every task
        self._subscribers: dict[str | None, set[asyncio.Queue]] = {}

    def subscribe(self, task_id: str | None = None) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers.setdefault(task_id, set()).add(queue)
        return queue

    def unsubscribe(self, task_id: str | None, queue: asyncio.Queue) -> None:
        queues = self._subscribers.get(task_id)
        if not queues:
            return
        queues.discard(queue)
        if not queues:
            del self._subscribers[task_id]

    def subscriber_count(self, task_id: str | None = None) -> int:
        return len(self._subscribers.get(task_id, ()))

    def publish(self, event: Event) -> None:
        targets = self._subscribers.get(event.task_id, set()) | self._subscribers.get(None, set())
        for queue in targets:
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning("Dropping %s event for slow subscriber", event.type)

    def close(self) -> None:
        """Signal every subscriber to stop."""
        for queues in self._subscribers.values():
            for queue in queues:
                with contextlib.suppress(asyncio.QueueFull):
                    queue.put_nowait(None)
        self._subscribers.clear()


event_bus = EventBus(max_queue_size=settings.event_queue_size)


async def enqueue_event(session: AsyncSession, ev: Event) -> None:
    """Attach an event to the session's open transaction.

    On PostgreSQL the event also goes out through pg_notify, which the
    database itself holds back until commit.
    """
    if session.get_bind().dialect.name == "postgresql":
        await session.execute(
            text("SELECT pg_notify(:channel, :payload)"),
            {"channel": PG_CHANNEL, "payload": ev.to_payload()},
        )
    session.sync_session.info.setdefault(_PENDING_KEY, []).append(ev)


def pending_events(session: AsyncSession) -> list[Event]:
    return list(session.sync_session.info.get(_PENDING_KEY, []))


@sa_event.listens_for(Session, "after_commit")
def _publish_pending(session: Session) -> None:
    for ev in session.info.pop(_PENDING_KEY, []):
        event_bus.publish(ev)


@sa_event.listens_for(Session, "after_rollback")
def _discard_pending(session: Session) -> None:
    dropped = session.info.pop(_PENDING_KEY, None)
    if dropped:
        logger.debug("Discarded %d event(s) on rollback", len(dropped))
