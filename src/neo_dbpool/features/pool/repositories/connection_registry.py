"""In-memory registry of live pooled connections."""

import logging
from collections import Counter
from typing import Dict, Iterator, List, Optional

from ....config.constants import ConnectionRole
from ..entities.connection import PooledConnection

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Keyed registry of live connections.

    All methods are synchronous, so a check-then-mutate sequence in the pool
    completes without an await in between.
    """

    def __init__(self):
        self._connections: Dict[str, PooledConnection] = {}  # connection_id -> connection

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection: PooledConnection) -> bool:
        return self._connections.get(connection.id) is connection

    def __iter__(self) -> Iterator[PooledConnection]:
        return iter(list(self._connections.values()))

    def add(self, connection: PooledConnection) -> None:
        """Register a new connection."""
        if connection.id in self._connections:
            raise ValueError(f"Connection '{connection.id}' is already registered")
        self._connections[connection.id] = connection
        logger.debug(f"Registered {connection.role.value} connection {connection.id}")

    def remove(self, connection: PooledConnection) -> bool:
        """Remove a connection; returns False if it was not registered."""
        if self._connections.get(connection.id) is not connection:
            return False
        del self._connections[connection.id]
        logger.debug(f"Removed connection {connection.id}")
        return True

    def get(self, connection_id: str) -> Optional[PooledConnection]:
        """Get a connection by id."""
        return self._connections.get(connection_id)

    def list_connections(self, role: Optional[ConnectionRole] = None) -> List[PooledConnection]:
        """List connections, optionally filtered by role."""
        connections = list(self._connections.values())
        if role is not None:
            connections = [c for c in connections if c.role == role]
        return connections

    def checkout_idle(self, role: ConnectionRole, now: float) -> Optional[PooledConnection]:
        """Mark the least recently used healthy idle connection of ``role`` in use.

        Returns:
            The checked-out connection, or None if none is available
        """
        candidates = [
            c for c in self._connections.values()
            if c.role == role and c.is_healthy and not c.in_use
        ]
        if not candidates:
            return None

        connection = min(candidates, key=lambda c: c.last_used)
        connection.in_use = True
        connection.last_used = now
        return connection

    def loads_by_target(self, role: Optional[ConnectionRole] = None) -> Dict[str, int]:
        """Live connection count per target URL."""
        return dict(Counter(c.target_url for c in self.list_connections(role)))
