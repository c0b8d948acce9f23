"""
Fan-out Bus: in-process publish point between persistence and live delivery.

There are exactly two event kinds. Publishing is synchronous and
fire-and-forget: handlers run inline in the publisher's task, nothing is
queued, retried or replayed, and an event with no subscribers is dropped.
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any


logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    MESSAGE_DELIVERED = "message-delivered"
    NOTIFICATION_DELIVERED = "notification-delivered"


@dataclass(frozen=True)
class MessageDelivered:
    """A message was committed to a conversation."""
    conversation_id: str
    message: dict[str, Any]

    kind = EventKind.MESSAGE_DELIVERED


@dataclass(frozen=True)
class NotificationDelivered:
    """A notification was committed for a recipient."""
    recipient_id: str
    notification: dict[str, Any]

    kind = EventKind.NOTIFICATION_DELIVERED


Event = MessageDelivered | NotificationDelivered
Handler = Callable[[Event], None]


class EventBus:
    """Synchronous publish/subscribe registry.

    One bus is created per application and handed to the services that
    publish and to the connection manager that subscribes.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventKind, list[Handler]] = defaultdict(list)

    def subscribe(self, kind: EventKind, handler: Handler) -> None:
        self._handlers[EventKind(kind)].append(handler)

    def unsubscribe(self, kind: EventKind, handler: Handler) -> None:
        handlers = self._handlers.get(EventKind(kind), [])
        if handler in handlers:
            handlers.remove(handler)

    def subscriber_count(self, kind: EventKind) -> int:
        return len(self._handlers.get(EventKind(kind), []))

    def publish(self, event: Event) -> None:
        """Deliver an event to every current subscriber of its kind.

        A failing handler is logged and skipped; the publisher never sees
        delivery errors.
        """
        handlers = list(self._handlers.get(event.kind, []))
        if not handlers:
            logger.debug(f"No subscribers for {event.kind.value}, event dropped")
            return

        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Handler {handler!r} failed for {event.kind.value}")
