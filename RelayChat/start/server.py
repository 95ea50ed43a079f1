"""
Server startup module for RelayChat application.
Starts the WebSocket relay and the HTTP front (uploads, static content).
"""

import asyncio
import logging
import threading
from typing import Optional

import uvicorn

from RelayChat.config import config
from RelayChat.core.logging import auto_configure
from RelayChat.core.server import EventRelay, RelayServer
from RelayChat.web.routes import create_app

logger = logging.getLogger(__name__)


def _start_http_server(app, host: str, port: int) -> None:
    uvicorn.run(app, host=host, port=port, log_config=None)


def server(
    host: Optional[str] = None,
    port: Optional[int] = None,
    ws_port: Optional[int] = None,
    max_history: Optional[int] = None,
    relay_only: bool = False
):
    """
    Start the relay and, unless relay_only, the HTTP front in a daemon thread.

    Args:
        host (str): Bind address (default: config.HOST)
        port (int): HTTP port (default: config.PORT)
        ws_port (int): WebSocket port (default: config.WS_PORT)
        max_history (int): History capacity (default: config.MAX_MESSAGE_HISTORY)
        relay_only (bool): Serve the WebSocket relay only
    """
    auto_configure(config.ENV)

    host = host or config.HOST
    port = port or config.PORT
    ws_port = ws_port or config.WS_PORT
    max_history = max_history or config.MAX_MESSAGE_HISTORY

    relay = EventRelay(max_history=max_history)
    relay_server = RelayServer(relay, queue_size=config.OUTBOUND_QUEUE_SIZE)

    try:
        if not relay_only:
            app = create_app(relay)
            http_thread = threading.Thread(
                target=_start_http_server, args=(app, host, port), daemon=True
            )
            http_thread.start()
            logger.info("Server is running on port %s", port)

        asyncio.run(relay_server.serve_forever(host, ws_port))
    except KeyboardInterrupt:
        logger.info("Closed by user.")


def http(host: Optional[str] = None, port: Optional[int] = None):
    """
    Serve only the HTTP front (uploads and static content).

    Args:
        host (str): Bind address (default: config.HOST)
        port (int): HTTP port (default: config.PORT)
    """
    auto_configure(config.ENV)
    _start_http_server(create_app(), host or config.HOST, port or config.PORT)
