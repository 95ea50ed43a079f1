"""
WebSocket relay server.

Bridges the ``websockets`` transport and the relay core:

    accept ──► register ──► relay.connect ──► router.route
    frame  ──► parse_frame ──► relay.dispatch ──► router.route
    close  ──► unregister ──► relay.disconnect ──► router.route

Malformed frames stop at ``parse_frame``: the sender gets an ``error``
event, the connection stays open and the core never sees the frame.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional, Union

import websockets
from websockets.asyncio.server import Server, ServerConnection

from RelayChat.core.exceptions import ProtocolError
from RelayChat.core.message.protocol import Event, EventName, parse_frame
from RelayChat.core.server.interfaces import ServerLifecycle
from RelayChat.core.server.relay import EventRelay
from RelayChat.core.server.routing import MessageRouter
from RelayChat.core.server.transport import (
    DEFAULT_QUEUE_SIZE,
    TransportFactory,
    WebSocketConnection,
    WebSocketConnectionRegistry,
)

logger = logging.getLogger(__name__)


class RelayServer(ServerLifecycle):
    """
    Serves the relay over WebSocket.

    Example:
        server = RelayServer(EventRelay(max_history=100))

        async with server.run("0.0.0.0", 8001):
            await asyncio.Future()
    """

    def __init__(
        self,
        relay: Optional[EventRelay] = None,
        registry: Optional[WebSocketConnectionRegistry] = None,
        queue_size: int = DEFAULT_QUEUE_SIZE
    ):
        """
        Args:
            relay: Relay core (a default one is created when omitted)
            registry: Registry of open connections
            queue_size: Outbound queue size per connection
        """
        self._relay = relay or EventRelay()
        self._registry = registry or TransportFactory.create_registry()
        self._router = MessageRouter(self._registry)
        self._queue_size = queue_size

        self._server: Optional[Server] = None
        self._running = False

    @property
    def relay(self) -> EventRelay:
        return self._relay

    @property
    def registry(self) -> WebSocketConnectionRegistry:
        return self._registry

    @property
    def router(self) -> MessageRouter:
        return self._router

    @property
    def bound_port(self) -> Optional[int]:
        """Port actually listened on (useful when started on port 0)."""
        if self._server is None or not self._server.sockets:
            return None
        return self._server.sockets[0].getsockname()[1]

    def is_running(self) -> bool:
        return self._running

    @asynccontextmanager
    async def run(self, host: str = "localhost", port: int = 8001):
        """
        Run the server as an async context manager.

        Args:
            host: Host to bind to
            port: Port to listen on
        """
        await self.start(host, port)
        try:
            yield self
        finally:
            await self.stop()

    async def start(self, host: str = "localhost", port: int = 8001) -> None:
        """
        Start accepting connections.

        Args:
            host: Host to bind to
            port: Port to listen on
        """
        self._server = await websockets.serve(self.handle_connection, host, port)
        self._running = True
        logger.info("Relay server started on ws://%s:%s", host, port)

    async def stop(self) -> None:
        """Close every connection and stop the server."""
        self._running = False

        for conn_id, connection in self._registry.get_all_connections().items():
            try:
                await connection.close(1001, "Server shutting down")
            except Exception as e:
                logger.debug("Error closing connection %s: %s", conn_id, e)

        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

        logger.info("Relay server stopped")

    async def serve_forever(self, host: str, port: int) -> None:
        """Run until cancelled."""
        async with self.run(host, port):
            await asyncio.Future()

    async def handle_connection(self, websocket: ServerConnection) -> None:
        """
        Handle one client connection from accept to close.
        """
        connection = TransportFactory.create_connection(websocket, self._queue_size)
        connection.start_writer()
        self._registry.register(connection)
        self._router.route(self._relay.connect(connection.conn_id))

        try:
            async for raw in websocket:
                self.handle_frame(connection, raw)
        except websockets.exceptions.ConnectionClosed:
            logger.debug("Connection closed for %s", connection.conn_id)
        except Exception as e:
            logger.exception("Error handling connection %s: %s", connection.conn_id, e)
        finally:
            self._registry.unregister(connection.conn_id)
            self._router.route(self._relay.disconnect(connection.conn_id))
            await connection.close()

    def handle_frame(self, connection: WebSocketConnection, raw: Union[str, bytes]) -> None:
        """
        Validate a frame, apply it to the relay and queue the resulting events.

        Args:
            connection: Connection the frame arrived on
            raw: Frame data
        """
        try:
            event = parse_frame(raw, connection.conn_id)
        except ProtocolError as e:
            logger.warning("Rejected frame from %s: %s", connection.conn_id, e)
            connection.enqueue(Event(EventName.ERROR, {"message": e.message}).serialize())
            return

        self._router.route(self._relay.dispatch(event))


def create_server(max_history: int = 100, queue_size: int = DEFAULT_QUEUE_SIZE) -> RelayServer:
    """
    Factory function to create a relay server with a fresh relay core.

    Args:
        max_history: Capacity of the shared history
        queue_size: Outbound queue size per connection

    Returns:
        Configured RelayServer instance
    """
    return RelayServer(EventRelay(max_history=max_history), queue_size=queue_size)


__all__ = ['RelayServer', 'create_server']
