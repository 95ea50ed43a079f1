"""
Server module for RelayChat.

Architecture Overview:
---------------------

1. **Identity Registry** (`identity/`)
   - IdentityRegistry: connection id -> display name

2. **History Buffer** (`history/`)
   - HistoryBuffer: bounded FIFO of chat and file messages, shared by all

3. **Session Lifecycle** (`session/`)
   - SessionLifecycleController: connect, login, logout, disconnect

4. **Broadcast Engine** (`broadcast/`)
   - BroadcastEngine: stamps, records and fans out chat/file messages

5. **Event Relay** (`relay.py`)
   - EventRelay: owns the shared state and dispatches inbound events;
     every handler returns a list of Delivery objects

6. **Routing and Transport** (`routing/`, `transport/`)
   - MessageRouter: resolves ALL / ALL_EXCEPT / ONLY and queues frames
   - WebSocketConnection, WebSocketConnectionRegistry

7. **Relay Server** (`websocket_manager.py`)
   - RelayServer: `websockets` server wiring the pieces together

Usage:

    from RelayChat.core.server import create_server

    server = create_server(max_history=100)
    async with server.run("0.0.0.0", 8001):
        await asyncio.Future()
"""

from RelayChat.core.server.broadcast import BroadcastEngine
from RelayChat.core.server.history import HistoryBuffer
from RelayChat.core.server.identity import IdentityRegistry
from RelayChat.core.server.interfaces import (
    Addressing,
    ConnectionRegistry,
    Delivery,
    ServerLifecycle,
    TransportConnection,
)
from RelayChat.core.server.relay import EventRelay
from RelayChat.core.server.routing import DeliveryResult, DeliveryStatus, MessageRouter
from RelayChat.core.server.session import (
    ConnectionSession,
    SessionLifecycleController,
    SessionState,
)
from RelayChat.core.server.transport import (
    TransportFactory,
    WebSocketConnection,
    WebSocketConnectionRegistry,
)
from RelayChat.core.server.websocket_manager import RelayServer, create_server

__all__ = [
    'Addressing',
    'Delivery',
    'TransportConnection',
    'ConnectionRegistry',
    'ServerLifecycle',

    'IdentityRegistry',
    'HistoryBuffer',
    'SessionState',
    'ConnectionSession',
    'SessionLifecycleController',
    'BroadcastEngine',
    'EventRelay',

    'MessageRouter',
    'DeliveryResult',
    'DeliveryStatus',

    'WebSocketConnection',
    'WebSocketConnectionRegistry',
    'TransportFactory',

    'RelayServer',
    'create_server',
]
