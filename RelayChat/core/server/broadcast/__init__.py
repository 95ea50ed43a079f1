"""
Broadcast engine: stamps chat and file messages, records them in the shared
history and fans them out to every connection, sender included.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from RelayChat.core.message.protocol import Event, EventName, Message, utc_timestamp
from RelayChat.core.server.history import HistoryBuffer
from RelayChat.core.server.interfaces import Delivery

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BroadcastEngine:
    """
    Handles ``chat message`` and ``file message`` events.

    Timestamps come from the server clock, never from the client, so every
    connection sees the same ordering.
    """

    def __init__(
        self,
        history: HistoryBuffer,
        is_active: Optional[Callable[[str], bool]] = None,
        clock: Optional[Clock] = None
    ):
        """
        Args:
            history: Shared history buffer
            is_active: Predicate telling whether a connection is open;
                messages from other connections are dropped
            clock: Source of receipt times (defaults to the UTC wall clock)
        """
        self._history = history
        self._is_active = is_active or (lambda connection: True)
        self._clock = clock or _utc_now

    def on_chat_message(self, connection: str, text: str, name: str) -> List[Delivery]:
        """
        Record a chat message and send it to every connection.

        Args:
            connection: Sending connection id
            text: Message body
            name: Author display name

        Returns:
            ``chat message`` to all
        """
        if not self._is_active(connection):
            logger.debug("Dropping chat message from closed connection %s", connection)
            return []

        message = Message.chat(text, name, connection, self._stamp())
        return self._publish(EventName.CHAT_MESSAGE, message)

    def on_file_message(self, connection: str, file_ref: Dict[str, Any], name: str) -> List[Delivery]:
        """
        Record a file message and send it to every connection.

        The file reference is passed through exactly as received.

        Args:
            connection: Sending connection id
            file_ref: Upload descriptor
            name: Author display name

        Returns:
            ``file message`` to all
        """
        if not self._is_active(connection):
            logger.debug("Dropping file message from closed connection %s", connection)
            return []

        message = Message.file(file_ref, name, connection, self._stamp())
        return self._publish(EventName.FILE_MESSAGE, message)

    def _publish(self, event_name: EventName, message: Message) -> List[Delivery]:
        self._history.append(message)
        logger.debug(
            "%s from %s stored (%d/%d in history)",
            message.kind.value, message.author_name, len(self._history), self._history.capacity
        )
        return [Delivery.to_all(Event(event_name, message))]

    def _stamp(self) -> str:
        return utc_timestamp(self._clock())


__all__ = ['BroadcastEngine', 'Clock']
