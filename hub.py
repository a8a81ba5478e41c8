import asyncio
from typing import Any, Dict, Optional

from directory import UserDirectory
from logging_config import get_logger

logger = get_logger(__name__)


class ConnectionHub:
    """Outbound side of every live connection.

    Each connection gets an outbox queue drained by its own writer task, so
    protocol handlers only enqueue frames and never await the network.
    Room broadcasts target the members recorded in the directory at the
    moment of the call, filtered to connections subscribed to that room.
    """

    def __init__(self, directory: UserDirectory):
        self.directory = directory
        # Format: {connection_id: outbox}
        self._outboxes: Dict[str, asyncio.Queue] = {}
        # Format: {connection_id: room}
        self._subscriptions: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._outboxes)

    def register(self, connection_id: str) -> asyncio.Queue:
        outbox = asyncio.Queue()
        self._outboxes[connection_id] = outbox
        logger.debug(f"Registered outbox for connection {connection_id} (live connections: {len(self._outboxes)})")
        return outbox

    def unregister(self, connection_id: str):
        self._subscriptions.pop(connection_id, None)
        outbox = self._outboxes.pop(connection_id, None)
        if outbox is not None and not outbox.empty():
            logger.debug(f"Dropping {outbox.qsize()} undelivered frames for connection {connection_id}")

    def subscribe(self, connection_id: str, room: str):
        self._subscriptions[connection_id] = room
        logger.debug(f"Connection {connection_id} subscribed to room {room}")

    def unsubscribe(self, connection_id: str):
        self._subscriptions.pop(connection_id, None)

    def send(self, connection_id: str, event: str, data: Any) -> bool:
        outbox = self._outboxes.get(connection_id)
        if outbox is None:
            logger.debug(f"Skipping '{event}' for unknown connection {connection_id}")
            return False
        outbox.put_nowait({"event": event, "data": data})
        return True

    def broadcast(self, room: str, event: str, data: Any, exclude: Optional[str] = None) -> int:
        delivered = 0
        for user in self.directory.get_users_in_room(room):
            if user.connection_id == exclude:
                continue
            if self._subscriptions.get(user.connection_id) != user.room:
                continue
            if self.send(user.connection_id, event, data):
                delivered += 1
        logger.debug(f"Broadcast '{event}' to {delivered} connections in room {room}")
        return delivered

    def ack(self, connection_id: str, ack_id: int, error: Optional[str] = None):
        outbox = self._outboxes.get(connection_id)
        if outbox is not None:
            outbox.put_nowait({"event": "ack", "ack": ack_id, "error": error})

    async def pump(self, connection_id: str, websocket):
        """Writer task: deliver queued frames to the socket in order."""
        outbox = self._outboxes[connection_id]
        while True:
            frame = await outbox.get()
            try:
                await websocket.send_json(frame)
            except Exception as e:
                logger.warning(f"Error sending to connection {connection_id}, stopping writer: {e}", exc_info=True)
                return
