"""
Event relay: the single event-processing path of the server.

Owns the identity registry and the history buffer, injects them into the
session controller and the broadcast engine, and turns each inbound event
into the deliveries it causes. Handlers are synchronous so one event is
fully applied before the next one starts.
"""

import logging
from typing import List, Optional

from RelayChat.core.message.protocol import (
    ChatPayload,
    EventName,
    FilePayload,
    InboundEvent,
    LoginPayload,
    LogoutPayload,
)
from RelayChat.core.server.broadcast import BroadcastEngine, Clock
from RelayChat.core.server.history import DEFAULT_CAPACITY, HistoryBuffer
from RelayChat.core.server.identity import IdentityRegistry
from RelayChat.core.server.interfaces import Delivery
from RelayChat.core.server.session import SessionLifecycleController

logger = logging.getLogger(__name__)


class EventRelay:
    """
    Composes the relay core.

    Example:
        relay = EventRelay(max_history=100)
        deliveries = relay.connect("c1")
        deliveries += relay.dispatch(parse_frame(raw, "c1"))
    """

    def __init__(self, max_history: int = DEFAULT_CAPACITY, clock: Optional[Clock] = None):
        """
        Args:
            max_history: Capacity of the shared history
            clock: Source of message receipt times
        """
        self._identities = IdentityRegistry()
        self._history = HistoryBuffer(max_history)
        self._sessions = SessionLifecycleController(self._identities, self._history)
        self._engine = BroadcastEngine(self._history, is_active=self._sessions.is_active, clock=clock)

    @property
    def identities(self) -> IdentityRegistry:
        return self._identities

    @property
    def history(self) -> HistoryBuffer:
        return self._history

    @property
    def sessions(self) -> SessionLifecycleController:
        return self._sessions

    @property
    def engine(self) -> BroadcastEngine:
        return self._engine

    def connect(self, connection: str) -> List[Delivery]:
        """Handle a connection accepted by the transport."""
        return self._sessions.on_connect(connection)

    def disconnect(self, connection: str) -> List[Delivery]:
        """Handle a connection closed by the transport."""
        return self._sessions.on_disconnect(connection)

    def dispatch(self, event: InboundEvent) -> List[Delivery]:
        """
        Apply one inbound event.

        Events from unknown or closed connections are ignored.

        Args:
            event: Validated inbound event

        Returns:
            Deliveries caused by the event, in order
        """
        connection = event.connection
        if not self._sessions.is_active(connection):
            logger.debug("Ignoring '%s' from closed connection %s", event.name.value, connection)
            return []
        self._sessions.touch(connection)

        payload = event.payload
        if event.name is EventName.USER_LOGIN and isinstance(payload, LoginPayload):
            return self._sessions.on_login(connection, payload.username)
        if event.name is EventName.CHAT_MESSAGE and isinstance(payload, ChatPayload):
            return self._engine.on_chat_message(connection, payload.text, payload.username)
        if event.name is EventName.FILE_MESSAGE and isinstance(payload, FilePayload):
            return self._engine.on_file_message(connection, payload.file_data, payload.username)
        if event.name is EventName.USER_LOGOUT and isinstance(payload, LogoutPayload):
            return self._sessions.on_logout(connection, payload.username)

        logger.warning("No handler for '%s' with %s payload", event.name.value, type(payload).__name__)
        return []


__all__ = ['EventRelay']
