"""
Message routing: hands the deliveries computed by the relay core to the
transport, one serialized frame per event.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterable, List, Optional

from RelayChat.core.server.interfaces import ConnectionRegistry, Delivery

logger = logging.getLogger(__name__)


class DeliveryStatus(Enum):
    """Status of a delivery to one connection."""
    QUEUED = auto()
    FAILED = auto()
    CLOSED = auto()


@dataclass
class DeliveryResult:
    """Result of handing one event to one connection."""
    status: DeliveryStatus
    conn_id: str
    event: str
    error: Optional[str] = None


class MessageRouter:
    """
    Resolves addressing modes against the open connections and queues each
    event on its targets.

    A failure on one connection never prevents delivery to the others.
    """

    def __init__(self, connection_registry: ConnectionRegistry):
        """
        Args:
            connection_registry: Registry of open connections
        """
        self._registry = connection_registry

    def route(self, deliveries: Iterable[Delivery]) -> List[DeliveryResult]:
        """
        Queue every delivery on its target connections, in order.

        Args:
            deliveries: Output of a relay handler

        Returns:
            One result per (event, target) pair
        """
        results: List[DeliveryResult] = []
        for delivery in deliveries:
            frame = delivery.event.serialize()
            event_name = delivery.event.name.value
            for conn_id in delivery.targets(self._registry.connection_ids()):
                results.append(self._send(conn_id, event_name, frame))
        return results

    def _send(self, conn_id: str, event_name: str, frame: str) -> DeliveryResult:
        connection = self._registry.get_connection(conn_id)
        if connection is None or not connection.is_open():
            # Closed between computing and delivering; dropped
            logger.debug("'%s' undeliverable to closed connection %s", event_name, conn_id)
            return DeliveryResult(DeliveryStatus.CLOSED, conn_id, event_name)

        try:
            if connection.enqueue(frame):
                return DeliveryResult(DeliveryStatus.QUEUED, conn_id, event_name)
            return DeliveryResult(DeliveryStatus.FAILED, conn_id, event_name, error="Queue rejected event")
        except Exception as e:
            logger.exception("Error queueing '%s' for %s: %s", event_name, conn_id, e)
            return DeliveryResult(DeliveryStatus.FAILED, conn_id, event_name, error=str(e))


__all__ = [
    'MessageRouter',
    'DeliveryResult',
    'DeliveryStatus',
]
