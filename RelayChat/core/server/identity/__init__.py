"""
Identity registry: which display name each open connection logged in with.
"""

import logging
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class IdentityRegistry:
    """
    Mapping of connection id to display name.

    Names are not unique: two connections may log in under the same name.
    """

    def __init__(self):
        self._identities: Dict[str, str] = {}

    def bind(self, connection: str, name: str) -> None:
        """
        Bind a display name to a connection, replacing any previous one.

        Args:
            connection: Connection id
            name: Display name
        """
        self._identities[connection] = name
        logger.debug("Bound %s to connection %s", name, connection)

    def unbind(self, connection: str) -> Optional[str]:
        """
        Remove the identity of a connection. Unknown connections are ignored.

        Args:
            connection: Connection id

        Returns:
            The name that was bound, or None
        """
        name = self._identities.pop(connection, None)
        if name is not None:
            logger.debug("Unbound %s from connection %s", name, connection)
        return name

    def lookup(self, connection: str) -> Optional[str]:
        """Get the name bound to a connection, or None."""
        return self._identities.get(connection)

    def names(self) -> List[str]:
        """Names currently bound, one entry per connection."""
        return list(self._identities.values())

    def __len__(self) -> int:
        return len(self._identities)

    def __contains__(self, connection: str) -> bool:
        return connection in self._identities


__all__ = ['IdentityRegistry']
