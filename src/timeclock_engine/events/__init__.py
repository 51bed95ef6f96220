"""Notification events and fan-out."""

from timeclock_engine.events.emitter import (
    Broadcaster,
    DeferredNotifier,
    Notifier,
    NullNotifier,
    Subscription,
)
from timeclock_engine.events.types import (
    ADMIN_CHANNEL,
    EventName,
    NotificationEvent,
    user_channel,
)

__all__ = [
    "ADMIN_CHANNEL",
    "Broadcaster",
    "DeferredNotifier",
    "EventName",
    "NotificationEvent",
    "Notifier",
    "NullNotifier",
    "Subscription",
    "user_channel",
]
