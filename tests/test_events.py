"""Tests for notification fan-out."""

import json

from timeclock_engine.events import (
    ADMIN_CHANNEL,
    Broadcaster,
    DeferredNotifier,
    EventName,
    NotificationEvent,
    Notifier,
    NullNotifier,
    user_channel,
)

from tests.conftest import EMPLOYEE_ID, OTHER_EMPLOYEE_ID


class TestBroadcaster:
    """Channel subscriptions."""

    async def test_delivers_only_to_channel(self):
        broadcaster = Broadcaster()
        mine = broadcaster.subscribe(user_channel(EMPLOYEE_ID))
        theirs = broadcaster.subscribe(user_channel(OTHER_EMPLOYEE_ID))

        broadcaster.notify(user_channel(EMPLOYEE_ID), EventName.CLOCK_IN, {"entry_id": "1"})

        event = await mine.get(timeout=0.1)
        assert event is not None
        assert event.event == EventName.CLOCK_IN
        assert event.payload == {"entry_id": "1"}
        assert theirs.get_nowait() is None

    async def test_every_subscriber_gets_a_copy(self):
        broadcaster = Broadcaster()
        first = broadcaster.subscribe(ADMIN_CHANNEL)
        second = broadcaster.subscribe(ADMIN_CHANNEL)

        broadcaster.notify(ADMIN_CHANNEL, EventName.PENDING_ENTRY_CREATED, {})

        assert len(first.drain()) == 1
        assert len(second.drain()) == 1

    async def test_full_queue_drops_for_that_subscriber_only(self):
        broadcaster = Broadcaster(max_queue=1)
        slow = broadcaster.subscribe(ADMIN_CHANNEL)
        fast = broadcaster.subscribe(ADMIN_CHANNEL)

        broadcaster.notify(ADMIN_CHANNEL, "a", {})
        fast.drain()
        broadcaster.notify(ADMIN_CHANNEL, "b", {})

        assert slow.dropped == 1
        assert [e.event for e in slow.drain()] == ["a"]
        assert [e.event for e in fast.drain()] == ["b"]

    async def test_unsubscribe(self):
        broadcaster = Broadcaster()
        sub = broadcaster.subscribe(ADMIN_CHANNEL)
        assert broadcaster.subscriber_count(ADMIN_CHANNEL) == 1

        broadcaster.unsubscribe(sub)
        assert broadcaster.subscriber_count(ADMIN_CHANNEL) == 0

        broadcaster.notify(ADMIN_CHANNEL, "ignored", {})
        assert sub.get_nowait() is None

    async def test_get_times_out(self):
        broadcaster = Broadcaster()
        sub = broadcaster.subscribe(ADMIN_CHANNEL)
        assert await sub.get(timeout=0.01) is None


class TestDeferredNotifier:
    """Events held until the caller says the work is committed."""

    async def test_nothing_published_before_flush(self):
        broadcaster = Broadcaster()
        sub = broadcaster.subscribe(user_channel(EMPLOYEE_ID))
        outbox = DeferredNotifier(broadcaster)

        outbox.notify(user_channel(EMPLOYEE_ID), EventName.CLOCK_IN, {"entry_id": "1"})
        outbox.notify(ADMIN_CHANNEL, EventName.PENDING_ENTRY_CREATED, {})

        assert sub.get_nowait() is None
        assert len(outbox.pending) == 2

    async def test_flush_publishes_in_order(self):
        broadcaster = Broadcaster()
        sub = broadcaster.subscribe(user_channel(EMPLOYEE_ID))
        outbox = DeferredNotifier(broadcaster)
        outbox.notify(user_channel(EMPLOYEE_ID), EventName.CLOCK_IN, {"n": 1})
        outbox.notify(user_channel(EMPLOYEE_ID), EventName.CLOCK_OUT, {"n": 2})

        assert outbox.flush() == 2
        assert [(e.event, e.payload) for e in sub.drain()] == [
            (EventName.CLOCK_IN, {"n": 1}),
            (EventName.CLOCK_OUT, {"n": 2}),
        ]
        assert outbox.flush() == 0

    async def test_discard_drops_everything(self):
        broadcaster = Broadcaster()
        sub = broadcaster.subscribe(ADMIN_CHANNEL)
        outbox = DeferredNotifier(broadcaster)
        outbox.notify(ADMIN_CHANNEL, EventName.PENDING_ENTRY_CREATED, {})

        outbox.discard()
        outbox.flush()

        assert sub.get_nowait() is None


class TestNotificationEvent:
    """Wire rendering."""

    def test_sse_frame(self):
        event = NotificationEvent(ADMIN_CHANNEL, EventName.PENDING_SUMMARY, {"pending_count": 2})
        frame = event.to_sse()

        assert frame.startswith("event: pending-summary\n")
        assert frame.endswith("\n\n")
        data = frame.split("data: ", 1)[1].strip()
        assert json.loads(data) == {"pending_count": 2}

    def test_notifier_protocol(self):
        assert isinstance(Broadcaster(), Notifier)
        assert isinstance(NullNotifier(), Notifier)
        assert isinstance(DeferredNotifier(NullNotifier()), Notifier)
        NullNotifier().notify(ADMIN_CHANNEL, "anything", {})
