"""Idle connection reaper for the connection pool."""

import logging
import time
from typing import Awaitable, Callable

from ..entities.connection import PooledConnection
from ..entities.stats import ReapResult
from .acquisition_queue import AcquisitionQueue
from .connection_registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class ConnectionReaper:
    """Evicts idle connections past their TTL and expires stale waiters."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        queue: AcquisitionQueue,
        evict: Callable[[PooledConnection, str], Awaitable[None]],
        idle_timeout_seconds: float,
        min_connections: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._registry = registry
        self._queue = queue
        self._evict = evict
        self._idle_timeout = idle_timeout_seconds
        self._min_connections = min_connections
        self._clock = clock

    async def reap(self) -> ReapResult:
        """Run one reaper pass.

        Connections are evicted oldest-idle first and never below
        ``min_connections``; the registry is re-checked before every
        eviction since it may change while a client is being closed.
        """
        now = self._clock()
        candidates = sorted(
            (
                c for c in self._registry
                if not c.in_use and c.idle_for(now) > self._idle_timeout
            ),
            key=lambda c: c.last_used,
        )

        evicted = 0
        for connection in candidates:
            if len(self._registry) <= self._min_connections:
                break
            if connection not in self._registry or connection.in_use:
                continue
            if connection.idle_for(self._clock()) <= self._idle_timeout:
                continue
            await self._evict(connection, "idle timeout")
            evicted += 1

        expired = self._queue.expire_overdue(self._clock())

        if evicted or expired:
            logger.info(
                f"Reaper evicted {evicted} idle connections and expired {expired} waiting requests"
            )
        return ReapResult(evicted_connections=evicted, expired_requests=expired)
