"""
Transport layer for WebSocket connections.

Wraps ``websockets`` server connections with an id and an ordered outbound
queue, and keeps the registry of open connections that broadcasts are
resolved against.
"""

import asyncio
import logging
import uuid
from typing import Dict, List, Optional

from websockets.asyncio.server import ServerConnection
from websockets.protocol import State

from RelayChat.core.server.interfaces import ConnectionRegistry

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 256


class WebSocketConnection:
    """
    Wrapper around ServerConnection that implements TransportConnection.

    Events are queued with ``enqueue`` and written by a per-connection writer
    task, so the order in which the relay produced them is the order the
    client receives them, and a slow client never stalls the others.
    """

    def __init__(
        self,
        websocket: ServerConnection,
        conn_id: Optional[str] = None,
        queue_size: int = DEFAULT_QUEUE_SIZE
    ):
        """
        Args:
            websocket: Underlying WebSocket connection
            conn_id: Connection id (random when omitted)
            queue_size: Maximum number of queued outbound events
        """
        self._websocket = websocket
        self._closed = False
        self.conn_id: str = conn_id or uuid.uuid4().hex
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._writer: Optional[asyncio.Task] = None

    @property
    def raw_websocket(self) -> ServerConnection:
        """Get underlying WebSocket connection."""
        return self._websocket

    @property
    def pending(self) -> int:
        """Number of events waiting in the outbound queue."""
        return self._queue.qsize()

    def start_writer(self) -> None:
        """Start draining the outbound queue."""
        if self._writer is None:
            self._writer = asyncio.create_task(self._write_loop())

    async def send(self, message: str) -> bool:
        """
        Send a message through the connection immediately.

        Args:
            message: Serialized event

        Returns:
            True if message was sent successfully
        """
        if self._closed:
            return False

        try:
            await self._websocket.send(message)
            return True
        except Exception as e:
            logger.debug("Failed to send to %s: %s", self.conn_id, e)
            return False

    def enqueue(self, message: str) -> bool:
        """
        Queue a message for the writer task.

        Args:
            message: Serialized event

        Returns:
            False if the connection is closed or its queue is full
        """
        if self._closed:
            return False
        try:
            self._queue.put_nowait(message)
            return True
        except asyncio.QueueFull:
            logger.warning("Outbound queue full for %s, dropping event", self.conn_id)
            return False

    async def close(self, code: int = 1000, reason: str = "") -> None:
        """
        Close the connection and stop the writer.

        Args:
            code: Close code
            reason: Close reason
        """
        if self._closed:
            return
        self._closed = True
        if self._writer is not None:
            self._writer.cancel()
            try:
                await self._writer
            except asyncio.CancelledError:
                pass
            self._writer = None
        try:
            await self._websocket.close(code=code, reason=reason)
        except Exception as e:
            logger.debug("Error closing connection %s: %s", self.conn_id, e)

    def is_open(self) -> bool:
        """Check if connection is open."""
        if self._closed:
            return False
        return self._websocket.state is State.OPEN

    async def _write_loop(self) -> None:
        while True:
            message = await self._queue.get()
            if not await self.send(message):
                # Undeliverable events for a closing connection are dropped
                logger.debug("Dropped event for %s", self.conn_id)


class WebSocketConnectionRegistry(ConnectionRegistry):
    """
    Registry of open WebSocket connections, keyed by connection id.

    Iteration order is registration order.
    """

    def __init__(self):
        self._connections: Dict[str, WebSocketConnection] = {}

    def register(self, connection: WebSocketConnection) -> None:
        """Register a newly accepted connection."""
        self._connections[connection.conn_id] = connection
        logger.debug("Registered connection %s (%d open)", connection.conn_id, len(self._connections))

    def unregister(self, conn_id: str) -> Optional[WebSocketConnection]:
        """Unregister a connection; unknown ids are ignored."""
        connection = self._connections.pop(conn_id, None)
        if connection is not None:
            logger.debug("Unregistered connection %s (%d open)", conn_id, len(self._connections))
        return connection

    def get_connection(self, conn_id: str) -> Optional[WebSocketConnection]:
        return self._connections.get(conn_id)

    def get_all_connections(self) -> Dict[str, WebSocketConnection]:
        return self._connections.copy()

    def connection_ids(self) -> List[str]:
        return list(self._connections)

    def is_connected(self, conn_id: str) -> bool:
        connection = self._connections.get(conn_id)
        return connection is not None and connection.is_open()

    def __len__(self) -> int:
        return len(self._connections)


class TransportFactory:
    """Creates transport layer components."""

    @staticmethod
    def create_connection(
        websocket: ServerConnection,
        queue_size: int = DEFAULT_QUEUE_SIZE
    ) -> WebSocketConnection:
        return WebSocketConnection(websocket, queue_size=queue_size)

    @staticmethod
    def create_registry() -> WebSocketConnectionRegistry:
        return WebSocketConnectionRegistry()


__all__ = [
    'WebSocketConnection',
    'WebSocketConnectionRegistry',
    'TransportFactory',
    'DEFAULT_QUEUE_SIZE',
]
