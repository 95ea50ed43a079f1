"""
Bounded history of chat and file messages shared by all connections.
"""

import logging
from collections import deque
from typing import Deque, List

from RelayChat.core.message.protocol import Message

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100


class HistoryBuffer:
    """
    FIFO log of the most recent messages.

    Appending past capacity evicts the oldest entries; there is one copy for
    every connection.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        """
        Args:
            capacity: Maximum number of messages kept (must be >= 1)

        Raises:
            ValueError: If capacity is not positive
        """
        if capacity < 1:
            raise ValueError(f"History capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._messages: Deque[Message] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, message: Message) -> None:
        """Add a message at the tail, evicting from the head when full."""
        self._messages.append(message)

    def snapshot(self) -> List[Message]:
        """Copy of the current contents, oldest first."""
        return list(self._messages)

    def clear(self) -> int:
        """
        Drop every message.

        Returns:
            Number of messages discarded
        """
        count = len(self._messages)
        self._messages.clear()
        return count

    def __len__(self) -> int:
        return len(self._messages)


__all__ = ['HistoryBuffer', 'DEFAULT_CAPACITY']
