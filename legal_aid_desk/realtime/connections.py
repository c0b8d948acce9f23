"""
Connection/Room Manager: routes fan-out events to live sockets.

Each live connection is indexed by id, together with the set of room keys
it has joined. Rooms are keyed by user id (personal rooms) or conversation
id. Joins are additive for the lifetime of the connection; disconnecting
removes every membership in one step, so no stale entries survive a
reconnect.

Broadcasting never awaits: frames are put on each connection's outbox
and a writer task per connection drains the outbox onto the socket.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Protocol
from uuid import uuid4

from .bus import EventBus, EventKind, MessageDelivered, NotificationDelivered


logger = logging.getLogger(__name__)


# Outbound event names seen by clients
NEW_MESSAGE = "new_message"
NEW_NOTIFICATION = "new_notification"


class FrameSink(Protocol):
    async def send_json(self, data: Any) -> None: ...


class ConnectionState(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class UnknownConnectionError(Exception):
    """The connection id is not (or no longer) registered."""
    pass


class Connection:
    """A live client connection and its pending outbound frames."""

    def __init__(self, connection_id: str, sink: FrameSink | None = None):
        self.id = connection_id
        self.sink = sink
        self.state = ConnectionState.CONNECTED
        self.outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    @property
    def is_connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED

    def enqueue(self, event: str, data: Any) -> bool:
        if not self.is_connected:
            return False
        self.outbox.put_nowait({"event": event, "data": data})
        return True

    async def drain(self) -> None:
        """Write queued frames to the socket until cancelled.

        A failed write marks the connection disconnected, so nothing more
        is queued for it, and re-raises.
        """
        if self.sink is None:
            raise RuntimeError(f"Connection {self.id} has no socket to write to")
        while True:
            frame = await self.outbox.get()
            try:
                await self.sink.send_json(frame)
            except Exception:
                self.state = ConnectionState.DISCONNECTED
                while not self.outbox.empty():
                    self.outbox.get_nowait()
                raise


class ConnectionManager:
    """Registry of live connections and their room memberships."""

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}
        self._memberships: dict[str, set[str]] = {}
        self._rooms: dict[str, set[str]] = {}

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def connect(self, sink: FrameSink | None = None) -> Connection:
        connection = Connection(uuid4().hex, sink)
        self._connections[connection.id] = connection
        self._memberships[connection.id] = set()
        logger.info(f"Client connected: {connection.id}")
        return connection

    def join(self, connection_id: str, room: str) -> None:
        if connection_id not in self._connections:
            raise UnknownConnectionError(connection_id)
        room = str(room)
        self._memberships[connection_id].add(room)
        self._rooms.setdefault(room, set()).add(connection_id)
        logger.info(f"Connection {connection_id} joined room: {room}")

    def disconnect(self, connection_id: str) -> None:
        connection = self._connections.pop(connection_id, None)
        if connection is None:
            return
        connection.state = ConnectionState.DISCONNECTED

        for room in self._memberships.pop(connection_id, set()):
            members = self._rooms.get(room)
            if members is None:
                continue
            members.discard(connection_id)
            if not members:
                del self._rooms[room]
        logger.info(f"Client disconnected: {connection_id}")

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def rooms_of(self, connection_id: str) -> frozenset[str]:
        return frozenset(self._memberships.get(connection_id, ()))

    def members_of(self, room: str) -> frozenset[str]:
        return frozenset(self._rooms.get(str(room), ()))

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    # =========================================================================
    # DELIVERY
    # =========================================================================

    def broadcast(self, room: str, event: str, data: Any) -> int:
        """Queue a frame for every connection in the room.

        Returns how many connections it was queued for. An empty room is
        not an error: the event is simply dropped.
        """
        delivered = 0
        for connection_id in self._rooms.get(str(room), ()):
            connection = self._connections.get(connection_id)
            if connection is not None and connection.enqueue(event, data):
                delivered += 1
        if not delivered:
            logger.debug(f"No live connections in room {room}, {event} dropped")
        return delivered

    def on_message_delivered(self, event: MessageDelivered) -> None:
        self.broadcast(event.conversation_id, NEW_MESSAGE, event.message)

    def on_notification_delivered(self, event: NotificationDelivered) -> None:
        self.broadcast(event.recipient_id, NEW_NOTIFICATION, event.notification)

    def attach(self, bus: EventBus) -> None:
        """Subscribe this manager to both fan-out event kinds."""
        bus.subscribe(EventKind.MESSAGE_DELIVERED, self.on_message_delivered)
        bus.subscribe(EventKind.NOTIFICATION_DELIVERED, self.on_notification_delivered)

    def detach(self, bus: EventBus) -> None:
        bus.unsubscribe(EventKind.MESSAGE_DELIVERED, self.on_message_delivered)
        bus.unsubscribe(EventKind.NOTIFICATION_DELIVERED, self.on_notification_delivered)
