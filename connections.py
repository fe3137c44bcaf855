import asyncio
import json
from typing import Dict, Iterable, List, Optional, Set
from fastapi import WebSocket
from constants import OUTBOUND_QUEUE_SIZE
from logging_config import get_logger

logger = get_logger(__name__)


class ClientConnection:
    """One WebSocket plus its outbound queue.

    Messages are queued without awaiting and sent by a single task, so a
    slow client never holds up the room and per-connection order is FIFO.
    """

    def __init__(self, connection_id: str, websocket: WebSocket, max_queued: int = OUTBOUND_QUEUE_SIZE):
        self.connection_id = connection_id
        self.websocket = websocket
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=max_queued)
        self.sent_count = 0
        self.dropped_count = 0
        self._sender_task: Optional[asyncio.Task] = None

    def start(self):
        if self._sender_task is None or self._sender_task.done():
            self._sender_task = asyncio.create_task(self._send_loop())

    async def stop(self):
        if self._sender_task:
            self._sender_task.cancel()
            try:
                await self._sender_task
            except asyncio.CancelledError:
                pass
            self._sender_task = None

    def enqueue(self, message: dict) -> bool:
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            self.dropped_count += 1
            logger.warning(f"Outbound queue full for connection {self.connection_id}, dropping message ({self.dropped_count} dropped)")
            return False
        return True

    async def _send_loop(self):
        while True:
            message = await self.queue.get()
            try:
                await self.websocket.send_text(json.dumps(message))
                self.sent_count += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # Best-effort delivery: the receive loop notices a dead socket and disconnects
                logger.warning(f"Error sending to connection {self.connection_id}: {e}")
            finally:
                self.queue.task_done()


class ConnectionRegistry:
    """Connection id -> room memberships, plus the live sockets to deliver to."""

    def __init__(self):
        self._memberships: Dict[str, Set[str]] = {}
        self._connections: Dict[str, ClientConnection] = {}

    # Memberships

    def add_membership(self, connection_id: str, room_id: str):
        self._memberships.setdefault(connection_id, set()).add(room_id)

    def remove_membership(self, connection_id: str, room_id: str):
        rooms = self._memberships.get(connection_id)
        if rooms is None:
            return
        rooms.discard(room_id)
        if not rooms:
            del self._memberships[connection_id]

    def rooms_for(self, connection_id: str) -> List[str]:
        return sorted(self._memberships.get(connection_id, ()))

    def forget(self, connection_id: str):
        self._memberships.pop(connection_id, None)

    # Transport

    def register(self, connection_id: str, websocket: WebSocket, max_queued: int = OUTBOUND_QUEUE_SIZE) -> ClientConnection:
        connection = ClientConnection(connection_id, websocket, max_queued=max_queued)
        self._connections[connection_id] = connection
        connection.start()
        logger.debug(f"Registered connection {connection_id} (total: {len(self._connections)})")
        return connection

    async def unregister(self, connection_id: str):
        connection = self._connections.pop(connection_id, None)
        if connection:
            await connection.stop()
            logger.debug(f"Unregistered connection {connection_id} (total: {len(self._connections)})")

    def get(self, connection_id: str) -> Optional[ClientConnection]:
        return self._connections.get(connection_id)

    def deliver(self, recipients: Iterable[str], message: dict) -> int:
        """Queue message for every known recipient. Returns how many were queued."""
        queued = 0
        for connection_id in recipients:
            connection = self._connections.get(connection_id)
            if connection is None:
                logger.debug(f"Skipping delivery to unknown connection {connection_id}")
                continue
            if connection.enqueue(message):
                queued += 1
        return queued

    def __len__(self) -> int:
        return len(self._connections)
