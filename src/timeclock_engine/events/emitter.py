"""In-process notification fan-out.

The services only see the Notifier protocol. Broadcaster is the
in-process implementation used by the SSE routes:

- Listeners subscribe to a channel and get their own bounded queue
- notify() never blocks and never raises into the caller
- A slow listener whose queue is full loses the event, others still get it
- Listeners unsubscribe when their connection closes

Request handlers wrap it in a DeferredNotifier so nothing is published
until their transaction has committed.

Usage:
    broadcaster = Broadcaster()

    sub = broadcaster.subscribe(user_channel(user_id))
    try:
        event = await sub.get(timeout=25)
    finally:
        broadcaster.unsubscribe(sub)

    outbox = DeferredNotifier(broadcaster)
    outbox.notify(user_channel(user_id), "clock-in", {"clockIn": ...})
    await session.commit()
    outbox.flush()
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Protocol, runtime_checkable

from timeclock_engine.events.types import NotificationEvent

logger = logging.getLogger(__name__)


@runtime_checkable
class Notifier(Protocol):
    """Port used by the services to publish events."""

    def notify(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        """Publish an event. Must not raise."""
        ...


class NullNotifier:
    """Notifier that drops everything."""

    def notify(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        return None


class Subscription:
    """One listener's queue on one channel."""

    def __init__(self, channel: str, max_queue: int):
        self.channel = channel
        self.queue: asyncio.Queue[NotificationEvent] = asyncio.Queue(maxsize=max_queue)
        self.dropped = 0

    async def get(self, timeout: float | None = None) -> NotificationEvent | None:
        """Next event, or None if nothing arrived within timeout."""
        try:
            if timeout is None:
                return await self.queue.get()
            return await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    def get_nowait(self) -> NotificationEvent | None:
        try:
            return self.queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def drain(self) -> list[NotificationEvent]:
        events: list[NotificationEvent] = []
        while (event := self.get_nowait()) is not None:
            events.append(event)
        return events


class Broadcaster:
    """Channel-keyed fan-out to subscriber queues."""

    def __init__(self, max_queue: int = 100) -> None:
        self._max_queue = max_queue
        self._subscriptions: dict[str, set[Subscription]] = defaultdict(set)

    def subscribe(self, channel: str) -> Subscription:
        """Register a listener on a channel."""
        sub = Subscription(channel, self._max_queue)
        self._subscriptions[channel].add(sub)
        logger.debug("subscriber added on %s (%d total)", channel, len(self._subscriptions[channel]))
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        """Remove a listener; empty channels are forgotten."""
        subs = self._subscriptions.get(sub.channel)
        if not subs:
            return
        subs.discard(sub)
        if not subs:
            del self._subscriptions[sub.channel]
        logger.debug("subscriber removed from %s", sub.channel)

    def subscriber_count(self, channel: str) -> int:
        return len(self._subscriptions.get(channel, ()))

    def notify(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        """Publish to every subscriber of channel."""
        subs = self._subscriptions.get(channel)
        if not subs:
            return

        message = NotificationEvent(channel=channel, event=event, payload=payload)
        for sub in list(subs):
            try:
                sub.queue.put_nowait(message)
            except asyncio.QueueFull:
                sub.dropped += 1
                logger.warning(
                    "Dropping %s event for slow subscriber on %s (%d dropped)",
                    event,
                    channel,
                    sub.dropped,
                )


class DeferredNotifier:
    """Holds events back until the unit of work they describe has committed.

    notify() only queues. flush() forwards the queue, in order, to the
    target; discard() forgets it, for the rollback path.
    """

    def __init__(self, target: Notifier) -> None:
        self.target = target
        self.pending: list[NotificationEvent] = []

    def notify(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        self.pending.append(NotificationEvent(channel=channel, event=event, payload=payload))

    def flush(self) -> int:
        """Publish the queued events; returns how many were sent."""
        events, self.pending = self.pending, []
        for message in events:
            self.target.notify(message.channel, message.event, message.payload)
        return len(events)

    def discard(self) -> None:
        if self.pending:
            logger.debug("discarding %d unpublished events", len(self.pending))
        self.pending = []
