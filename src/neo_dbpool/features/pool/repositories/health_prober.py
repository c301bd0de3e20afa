"""Liveness probing for pooled connections."""

import asyncio
import logging
from typing import Awaitable, Callable, List

from ....config.constants import MAX_CONNECTION_ERRORS
from ..entities.connection import PooledConnection
from ..entities.protocols import ConnectionFactory
from ..entities.stats import HealthCheckSummary
from .connection_registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class ConnectionHealthProber:
    """Grades pooled connections healthy or unhealthy with a liveness query.

    Only idle connections are probed; a connection running a query is
    reported by its current flag. While a probe runs the connection is
    marked in use so it cannot be acquired, and afterwards it goes back
    through ``return_to_service`` so queued waiters are served first.
    A health check does not count as use; the connection keeps aging
    toward its idle timeout.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        factory: ConnectionFactory,
        evict: Callable[[PooledConnection, str], Awaitable[None]],
        return_to_service: Callable[[PooledConnection], None],
        probe_timeout_seconds: float,
    ):
        self._registry = registry
        self._factory = factory
        self._evict = evict
        self._return_to_service = return_to_service
        self._probe_timeout = probe_timeout_seconds

    async def check_all(self) -> HealthCheckSummary:
        """Probe every idle connection concurrently and evict broken ones."""
        to_probe: List[PooledConnection] = []
        for connection in self._registry:
            if not connection.in_use:
                connection.in_use = True
                to_probe.append(connection)

        results = await asyncio.gather(
            *(self._probe(connection) for connection in to_probe),
            return_exceptions=True,
        )
        for connection, result in zip(to_probe, results):
            if isinstance(result, BaseException):
                logger.error(f"Health probe error for connection {connection.id}: {result}")

        evicted = 0
        for connection in self._registry:
            if not connection.in_use and connection.error_count > MAX_CONNECTION_ERRORS:
                await self._evict(
                    connection, f"{connection.error_count} consecutive errors"
                )
                evicted += 1

        connections = self._registry.list_connections()
        healthy = sum(1 for c in connections if c.is_healthy)
        summary = HealthCheckSummary(
            healthy=healthy,
            unhealthy=len(connections) - healthy,
            total=len(connections),
            evicted=evicted,
        )

        if summary.unhealthy or evicted:
            logger.warning(
                f"Pool health check: {summary.healthy}/{summary.total} healthy, "
                f"{evicted} evicted"
            )
        else:
            logger.debug(f"Pool health check: {summary.healthy}/{summary.total} healthy")
        return summary

    async def _probe(self, connection: PooledConnection) -> None:
        try:
            await self._factory.ping(connection.client, self._probe_timeout)
        except Exception as e:
            connection.record_probe_failure()
            logger.warning(
                f"Health probe failed for connection {connection.id} "
                f"({connection.safe_target}): {e}"
            )
        else:
            if not connection.is_healthy:
                logger.info(f"Connection {connection.id} recovered")
            connection.record_probe_success()
        finally:
            if connection in self._registry:
                self._return_to_service(connection)
