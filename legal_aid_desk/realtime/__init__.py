"""Realtime delivery: the fan-out bus and the connection/room manager."""

from .bus import (
    Event,
    EventBus,
    EventKind,
    MessageDelivered,
    NotificationDelivered,
)
from .connections import (
    NEW_MESSAGE,
    NEW_NOTIFICATION,
    Connection,
    ConnectionManager,
    ConnectionState,
    UnknownConnectionError,
)

__all__ = [
    # Bus
    "Event",
    "EventBus",
    "EventKind",
    "MessageDelivered",
    "NotificationDelivered",
    # Connections
    "NEW_MESSAGE",
    "NEW_NOTIFICATION",
    "Connection",
    "ConnectionManager",
    "ConnectionState",
    "UnknownConnectionError",
]
