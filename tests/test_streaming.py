"""Tests for the server-sent event stream generator."""

from timeclock_engine.api.streaming import event_stream
from timeclock_engine.events import ADMIN_CHANNEL, Broadcaster, EventName, NotificationEvent


class FakeRequest:
    """Reports a disconnect after a fixed number of checks."""

    def __init__(self, checks_before_disconnect: int):
        self.remaining = checks_before_disconnect

    async def is_disconnected(self) -> bool:
        if self.remaining <= 0:
            return True
        self.remaining -= 1
        return False


class TestEventStream:
    """Snapshot, live events, heartbeats and cleanup."""

    async def test_snapshot_then_events(self):
        broadcaster = Broadcaster()
        sub = broadcaster.subscribe(ADMIN_CHANNEL)
        snapshot = NotificationEvent(ADMIN_CHANNEL, EventName.PENDING_SUMMARY, {"pending_count": 0})
        broadcaster.notify(ADMIN_CHANNEL, EventName.PENDING_ENTRY_CREATED, {"entry": {}})

        frames = [
            frame
            async for frame in event_stream(FakeRequest(1), broadcaster, sub, [snapshot], 0.01)
        ]

        assert frames[0].startswith("event: pending-summary")
        assert frames[1].startswith("event: pending-entry-created")
        assert len(frames) == 2

    async def test_heartbeat_when_idle(self):
        broadcaster = Broadcaster()
        sub = broadcaster.subscribe(ADMIN_CHANNEL)

        frames = [frame async for frame in event_stream(FakeRequest(2), broadcaster, sub, [], 0.01)]

        assert len(frames) == 2
        assert all(frame.startswith("event: heartbeat") for frame in frames)

    async def test_unsubscribes_on_disconnect(self):
        broadcaster = Broadcaster()
        sub = broadcaster.subscribe(ADMIN_CHANNEL)

        async for _ in event_stream(FakeRequest(0), broadcaster, sub, [], 0.01):
            pass

        assert broadcaster.subscriber_count(ADMIN_CHANNEL) == 0
