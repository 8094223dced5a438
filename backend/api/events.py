"""
Events API - change notifications for the desktop front end.

The front end keeps one Server-Sent Events stream open and refreshes its
list/search view whenever a memory is saved or deleted by any caller.
"""

import asyncio
from typing import AsyncIterator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from runtime_state import MEMORIES_CHANGED_EVENT, ChangeEvent, Subscription, runtime_state

router = APIRouter(prefix="/api", tags=["events"])

KEEPALIVE_SECONDS = 15.0


def format_sse(event: ChangeEvent) -> str:
    return f"event: {MEMORIES_CHANGED_EVENT}\ndata: {event.model_dump_json()}\n\n"


async def _event_stream(request: Request, subscription: Subscription) -> AsyncIterator[str]:
    try:
        # Initial comment so clients see the stream open before the first event.
        yield ": connected\n\n"
        while True:
            if await request.is_disconnected():
                break
            try:
                event = await asyncio.wait_for(subscription.get(), timeout=KEEPALIVE_SECONDS)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            yield format_sse(event)
    finally:
        subscription.close()


@router.get("/events")
async def stream_events(request: Request):
    subscription = runtime_state.notifier.subscribe()
    return StreamingResponse(
        _event_stream(request, subscription),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
