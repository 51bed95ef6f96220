"""Notification event types.

Events are fire-and-forget messages published on a channel after a time
entry mutation has been written. Listeners are real-time UIs; nothing in
the engine depends on delivery.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

ADMIN_CHANNEL = "admin"


def user_channel(user_id: UUID | str) -> str:
    """Channel carrying one user's own clock and entry events."""
    return f"user:{user_id}"


class EventName:
    """Event names published by the services."""

    STATUS = "status"
    HEARTBEAT = "heartbeat"
    PENDING_SUMMARY = "pending-summary"
    CLOCK_IN = "clock-in"
    CLOCK_OUT = "clock-out"
    MANUAL_ENTRY_CREATED = "manual-entry-created"
    MANUAL_ENTRY_UPDATED = "manual-entry-updated"
    ENTRY_DELETED = "entry-deleted"
    ENTRY_REVIEWED = "entry-reviewed"
    PENDING_ENTRY_CREATED = "pending-entry-created"
    PENDING_ENTRY_UPDATED = "pending-entry-updated"
    PENDING_ENTRY_FLAGGED = "pending-entry-flagged"


@dataclass(frozen=True)
class NotificationEvent:
    """A named payload published on a channel."""

    channel: str
    event: str
    payload: dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_json(self) -> str:
        """Serialize the payload to JSON."""
        return json.dumps(self.payload, default=_json_default)

    def to_sse(self) -> str:
        """Render as a server-sent-events frame."""
        return f"event: {self.event}\ndata: {self.to_json()}\n\n"


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)
