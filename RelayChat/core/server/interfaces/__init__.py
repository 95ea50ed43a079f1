"""
Contracts shared between the relay core and the transport layer.

The core never talks to sockets. Each handler returns a list of
``Delivery`` objects (an addressing mode plus an outbound event); the
transport side resolves the addressing mode against its live connections.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterable, List, Optional, Protocol, runtime_checkable

from RelayChat.core.message.protocol import Event


class Addressing(Enum):
    """Fan-out modes used by the relay."""
    ALL = auto()
    ALL_EXCEPT = auto()
    ONLY = auto()


@dataclass(frozen=True)
class Delivery:
    """
    An outbound event together with the set of connections it is for.

    Attributes:
        addressing: Fan-out mode
        event: Event to deliver
        connection: Reference connection for ALL_EXCEPT and ONLY
    """
    addressing: Addressing
    event: Event
    connection: Optional[str] = None

    @classmethod
    def to_all(cls, event: Event) -> 'Delivery':
        return cls(Addressing.ALL, event)

    @classmethod
    def to_all_except(cls, connection: str, event: Event) -> 'Delivery':
        return cls(Addressing.ALL_EXCEPT, event, connection)

    @classmethod
    def to_only(cls, connection: str, event: Event) -> 'Delivery':
        return cls(Addressing.ONLY, event, connection)

    def targets(self, open_connections: Iterable[str]) -> List[str]:
        """
        Resolve the addressing mode against the currently open connections.

        Args:
            open_connections: Ids of open connections, in delivery order

        Returns:
            Ids the event should be sent to
        """
        if self.addressing is Addressing.ALL:
            return list(open_connections)
        if self.addressing is Addressing.ALL_EXCEPT:
            return [c for c in open_connections if c != self.connection]
        return [c for c in open_connections if c == self.connection]


@runtime_checkable
class TransportConnection(Protocol):
    """Protocol for transport layer connections."""

    conn_id: str

    async def send(self, message: str) -> bool:
        """Send a serialized event through the connection."""
        ...

    def enqueue(self, message: str) -> bool:
        """Queue a serialized event for ordered, non-blocking delivery."""
        ...

    async def close(self, code: int = 1000, reason: str = "") -> None:
        """Close the connection."""
        ...

    def is_open(self) -> bool:
        """Check if connection is open."""
        ...


class ConnectionRegistry(ABC):
    """Abstract base class for registries of open transport connections."""

    @abstractmethod
    def register(self, connection: TransportConnection) -> None:
        """Register a new connection."""
        pass

    @abstractmethod
    def unregister(self, conn_id: str) -> Optional[TransportConnection]:
        """Unregister a connection, returning it if it was known."""
        pass

    @abstractmethod
    def get_connection(self, conn_id: str) -> Optional[TransportConnection]:
        """Get a connection by id."""
        pass

    @abstractmethod
    def connection_ids(self) -> List[str]:
        """Ids of all registered connections, in registration order."""
        pass


class ServerLifecycle(ABC):
    """Abstract base class for server lifecycle management."""

    @abstractmethod
    async def start(self, host: str, port: int) -> None:
        """Start the server."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop the server."""
        pass

    @abstractmethod
    def is_running(self) -> bool:
        """Check if server is running."""
        pass


__all__ = [
    'Addressing',
    'Delivery',
    'TransportConnection',
    'ConnectionRegistry',
    'ServerLifecycle',
]
