"""SSE event stream endpoint."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from taskforperks.config import settings
from taskforperks.events import event_bus

router = APIRouter()


@router.get("/v1/events")
async def event_stream(request: Request, task_id: str | None = None):
    """Subscribe to real-time SSE notifications for one task, or all tasks."""
    queue = event_bus.subscribe(task_id)

    async def generate():
        try:
            while True:
                try:
                    event = await asyncio.wait_for(
                        queue.get(), timeout=settings.sse_keepalive_seconds
                    )
                    if event is None:
                        break
                    yield f"event: {event.type}\ndata: {event.to_payload()}\n\n"
                except TimeoutError:
                    yield ": keepalive\n\n"

                if await request.is_disconnected():
                    break
        finally:
            event_bus.unsubscribe(task_id, queue)

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache, no-transform"},
    )
