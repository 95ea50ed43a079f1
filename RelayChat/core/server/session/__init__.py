"""
Session lifecycle for relay connections.

Each connection moves through ``CONNECTED -> IDENTIFIED -> CLOSED``.
Transitions update the identity registry and the shared history and
return the deliveries they cause; nothing here performs I/O.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional

from RelayChat.core.message.protocol import Event, EventName
from RelayChat.core.server.history import HistoryBuffer
from RelayChat.core.server.identity import IdentityRegistry
from RelayChat.core.server.interfaces import Delivery

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """States of a connection's session."""
    CONNECTED = auto()
    IDENTIFIED = auto()
    CLOSED = auto()


@dataclass
class ConnectionSession:
    """
    Per-connection session record.

    Attributes:
        connection: Connection id
        state: Current lifecycle state
        connected_at: Accept timestamp
        last_active: Timestamp of the last accepted event
    """
    connection: str
    state: SessionState = SessionState.CONNECTED
    connected_at: float = field(default_factory=time.time)
    last_active: float = field(default_factory=time.time)

    def touch(self) -> None:
        """Update last activity timestamp."""
        self.last_active = time.time()


class SessionLifecycleController:
    """
    Governs connect, login, logout and disconnect.

    The controller and the broadcast engine are the only writers of the
    identity registry and the history buffer they are constructed with.
    """

    def __init__(self, identities: IdentityRegistry, history: HistoryBuffer):
        self._identities = identities
        self._history = history
        self._sessions: Dict[str, ConnectionSession] = {}

    def state(self, connection: str) -> SessionState:
        """State of a connection; unknown and closed connections report CLOSED."""
        session = self._sessions.get(connection)
        return session.state if session else SessionState.CLOSED

    def is_active(self, connection: str) -> bool:
        """True while the connection is open (connected or identified)."""
        return connection in self._sessions

    def touch(self, connection: str) -> None:
        session = self._sessions.get(connection)
        if session:
            session.touch()

    def get_session(self, connection: str) -> Optional[ConnectionSession]:
        return self._sessions.get(connection)

    def connections(self) -> List[str]:
        """Open connections, in connect order."""
        return list(self._sessions)

    @property
    def user_count(self) -> int:
        """Number of open connections, logged in or not."""
        return len(self._sessions)

    def on_connect(self, connection: str) -> List[Delivery]:
        """
        Register a newly accepted connection and announce the new count.

        Args:
            connection: Connection id

        Returns:
            ``user count`` to every connection
        """
        if connection in self._sessions:
            logger.debug("Ignoring duplicate connect for %s", connection)
            return []

        self._sessions[connection] = ConnectionSession(connection)
        logger.info("A user connected: %s (%d online)", connection, self.user_count)
        return [self._user_count_delivery()]

    def on_login(self, connection: str, name: str) -> List[Delivery]:
        """
        Bind a display name and replay the history to this connection only.

        Logging in again rebinds the name and replays the history again.

        Args:
            connection: Connection id
            name: Display name

        Returns:
            ``chat history`` to the logging-in connection
        """
        session = self._sessions.get(connection)
        if session is None:
            logger.debug("Ignoring login from unknown connection %s", connection)
            return []

        self._identities.bind(connection, name)
        session.state = SessionState.IDENTIFIED
        session.touch()
        logger.info("%s logged in with connection id: %s", name, connection)

        return [Delivery.to_only(connection, Event(EventName.CHAT_HISTORY, self._history.snapshot()))]

    def on_logout(self, connection: str, name: str) -> List[Delivery]:
        """
        Log a connection out and wipe the shared history for everyone.

        The connection stays open and returns to CONNECTED.

        Args:
            connection: Connection id
            name: Display name announced to the other connections

        Returns:
            ``user logged out`` to all but the origin, then ``messages cleared``
            and the empty ``chat history`` to all
        """
        session = self._sessions.get(connection)
        if session is None or session.state is not SessionState.IDENTIFIED:
            logger.debug("Ignoring logout from connection %s (not logged in)", connection)
            return []

        logger.info("%s is logging out, clearing entire chat...", name)
        deleted = self._history.clear()
        logger.info("Deleted all %d messages from chat", deleted)

        self._identities.unbind(connection)
        session.state = SessionState.CONNECTED
        session.touch()

        return [
            Delivery.to_all_except(connection, Event(EventName.USER_LOGGED_OUT, {"username": name})),
            Delivery.to_all(Event(EventName.MESSAGES_CLEARED)),
            Delivery.to_all(Event(EventName.CHAT_HISTORY, self._history.snapshot())),
        ]

    def on_disconnect(self, connection: str) -> List[Delivery]:
        """
        Close a connection's session and announce the new count.

        Args:
            connection: Connection id

        Returns:
            ``user count`` to every remaining connection
        """
        session = self._sessions.pop(connection, None)
        if session is None:
            logger.debug("Ignoring disconnect of unknown connection %s", connection)
            return []

        session.state = SessionState.CLOSED
        name = self._identities.unbind(connection)
        logger.info("user disconnected: %s (%d online)", name or connection, self.user_count)
        return [self._user_count_delivery()]

    def _user_count_delivery(self) -> Delivery:
        return Delivery.to_all(Event(EventName.USER_COUNT, self.user_count))


__all__ = [
    'SessionState',
    'ConnectionSession',
    'SessionLifecycleController',
]
