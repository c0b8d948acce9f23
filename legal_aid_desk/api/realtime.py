"""
Realtime WebSocket endpoint.

Frames are JSON text objects of the form {"event": <name>, "data": <payload>}.

Inbound:
- join_user_room      data = user id          -> personal notifications
- join_conversation   data = conversation id  -> new messages

Outbound:
- joined              data = {"room": <key>}
- new_message         data = message
- new_notification    data = notification
- error               data = {"message": <reason>}

Room ids that parse as UUIDs are joined in their canonical lowercase,
hyphenated form, which is the form events are published under.
"""

import asyncio
import json
import logging
from uuid import UUID

from fastapi import APIRouter, WebSocket

from ..realtime import Connection, ConnectionManager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

JOIN_EVENTS = ("join_user_room", "join_conversation")


def room_key(room: str) -> str:
    room = room.strip()
    try:
        return str(UUID(room))
    except ValueError:
        return room


def handle_frame(manager: ConnectionManager, connection: Connection, raw: str) -> None:
    """Apply one inbound frame; replies go through the connection's outbox."""
    try:
        frame = json.loads(raw)
    except json.JSONDecodeError:
        connection.enqueue("error", {"message": "Frames must be JSON."})
        return

    if not isinstance(frame, dict):
        connection.enqueue("error", {"message": "Frames must be JSON objects."})
        return

    event = frame.get("event")
    room = frame.get("data")

    if event not in JOIN_EVENTS:
        connection.enqueue("error", {"message": f"Unknown event: {event}"})
        return
    if not isinstance(room, str) or not room.strip():
        connection.enqueue("error", {"message": f"{event} requires a room id."})
        return

    key = room_key(room)
    manager.join(connection.id, key)
    connection.enqueue("joined", {"room": key})


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket):
    manager: ConnectionManager = websocket.app.state.connections

    await websocket.accept()
    connection = manager.connect(websocket)
    writer = asyncio.create_task(connection.drain())

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            if message.get("text") is not None:
                handle_frame(manager, connection, message["text"])
            else:
                connection.enqueue("error", {"message": "Frames must be text."})
    finally:
        # Memberships go away with the connection
        manager.disconnect(connection.id)
        writer.cancel()
        results = await asyncio.gather(writer, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.warning(f"Writer for {connection.id} stopped with error: {result!r}")
