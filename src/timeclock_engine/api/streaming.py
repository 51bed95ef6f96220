"""Server-sent event streams over the in-process broadcaster."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterable
from datetime import datetime, timezone
from typing import Protocol

from fastapi.responses import StreamingResponse

from timeclock_engine.events import Broadcaster, EventName, NotificationEvent, Subscription

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class Disconnectable(Protocol):
    async def is_disconnected(self) -> bool: ...


async def event_stream(
    request: Disconnectable,
    broadcaster: Broadcaster,
    subscription: Subscription,
    initial: Iterable[NotificationEvent],
    heartbeat_seconds: float,
) -> AsyncIterator[str]:
    """Yield SSE frames until the client goes away.

    The subscription is released when the stream ends, however it ends.
    """
    try:
        for event in initial:
            yield event.to_sse()
        while not await request.is_disconnected():
            event = await subscription.get(timeout=heartbeat_seconds)
            if event is None:
                event = NotificationEvent(
                    channel=subscription.channel,
                    event=EventName.HEARTBEAT,
                    payload={"ts": datetime.now(timezone.utc).isoformat()},
                )
            yield event.to_sse()
    finally:
        broadcaster.unsubscribe(subscription)
        logger.debug("stream closed on %s", subscription.channel)


def sse_response(
    request: Disconnectable,
    broadcaster: Broadcaster,
    subscription: Subscription,
    initial: Iterable[NotificationEvent],
    heartbeat_seconds: float,
) -> StreamingResponse:
    return StreamingResponse(
        event_stream(request, broadcaster, subscription, list(initial), heartbeat_seconds),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
