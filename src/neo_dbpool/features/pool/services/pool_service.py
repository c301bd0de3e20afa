"""Connection pool service with read/write routing and resilience.

ConnectionPool orchestrates the registry, the acquisition queue, the
circuit breaker, the reaper and the health prober, and reports every query
outcome to a QueryMonitor.
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
)

from ....config.constants import ACTIVE_WINDOW_SECONDS, ConnectionRole
from ....config.settings import MonitorSettings, PoolSettings, get_monitor_settings, get_pool_settings
from ....core.exceptions.database import (
    AcquisitionTimeoutError,
    CircuitOpenError,
    ConnectionCreationError,
    ConnectionPoolError,
    PoolClosedError,
    QueryExecutionError,
    QueryTimeoutError,
)
from ....utils.periodic import PeriodicTask
from ...monitoring.services.query_monitor import QueryMonitor
from ..entities.config import PoolConfig
from ..entities.connection import PooledConnection, generate_connection_id
from ..entities.protocols import ConnectionFactory, LoadBalancer
from ..entities.stats import HealthCheckSummary, PoolStats
from ..repositories.acquisition_queue import AcquisitionQueue
from ..repositories.circuit_breaker import CircuitBreaker
from ..repositories.connection_registry import ConnectionRegistry
from ..repositories.health_prober import ConnectionHealthProber
from ..repositories.load_balancer import create_load_balancer
from ..repositories.reaper import ConnectionReaper
from ..utils.connection_factory import AsyncpgConnectionFactory, mask_url

logger = logging.getLogger(__name__)

QueryFunction = Callable[[Any], Awaitable[Any]]


@dataclass
class BatchResult:
    """Outcome of ``execute_batch``.

    ``results`` keeps input order; failed entries hold None and their
    exception is in ``errors`` under the same index.
    """

    results: List[Any] = field(default_factory=list)
    errors: Dict[int, BaseException] = field(default_factory=dict)

    @property
    def succeeded(self) -> int:
        return len(self.results) - len(self.errors)

    @property
    def failed(self) -> int:
        return len(self.errors)


def _rows_affected(result: Any) -> Optional[int]:
    if isinstance(result, (list, tuple)):
        return len(result)
    return None


class ConnectionPool:
    """Bounded pool of driver connections split into read and write roles.

    Usage:
        async with ConnectionPool(config) as pool:
            rows = await pool.execute_read_query(
                "list_users", lambda conn: conn.fetch("SELECT * FROM users")
            )
    """

    def __init__(
        self,
        config: Optional[PoolConfig] = None,
        factory: Optional[ConnectionFactory] = None,
        monitor: Optional[QueryMonitor] = None,
        load_balancer: Optional[LoadBalancer] = None,
        clock: Callable[[], float] = time.monotonic,
        name: str = "database",
    ):
        self.config = config or PoolConfig()
        self.name = name
        self._factory = factory or AsyncpgConnectionFactory()
        self._owns_monitor = monitor is None
        self.monitor = monitor if monitor is not None else QueryMonitor()
        self._load_balancer = load_balancer or create_load_balancer(self.config.load_balancing)
        self._clock = clock

        self._registry = ConnectionRegistry()
        self._queue = AcquisitionQueue(self.config.max_queue_depth, clock)
        self.circuit_breaker = CircuitBreaker(f"{name}-pool", self.config.circuit_breaker, clock)

        self._reaper = ConnectionReaper(
            registry=self._registry,
            queue=self._queue,
            evict=self._evict,
            idle_timeout_seconds=self.config.idle_timeout_seconds,
            min_connections=self.config.min_connections,
            clock=clock,
        )
        self._prober = ConnectionHealthProber(
            registry=self._registry,
            factory=self._factory,
            evict=self._evict,
            return_to_service=self._return_checked,
            probe_timeout_seconds=self.config.health_check_timeout_seconds,
        )
        self._reaper_task = PeriodicTask(
            f"{name}-pool-reaper", self._reaper.reap, self.config.reap_interval_seconds
        )
        self._health_task = PeriodicTask(
            f"{name}-pool-health", self.health_check, self.config.health_check_interval_seconds
        )

        self._pending_creations = 0
        self._background_tasks: Set[asyncio.Task] = set()
        self._started = False
        self._closing = False
        self._closed = False

        # Lifetime counters
        self._created = 0
        self._destroyed = 0
        self._acquired = 0
        self._handoffs = 0
        self._failed_acquisitions = 0
        self._timeouts = 0
        self._errors = 0
        self._query_count = 0
        self._query_time_ms = 0.0

        self.monitor.attach_pool(self)

    # Lifecycle

    async def __aenter__(self) -> "ConnectionPool":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.shutdown()

    @property
    def is_closing(self) -> bool:
        """True once ``shutdown()`` has started."""
        return self._closing

    @property
    def is_closed(self) -> bool:
        """True once ``shutdown()`` has finished."""
        return self._closed

    @property
    def size(self) -> int:
        """Number of live connections, not counting ones being created."""
        return len(self._registry)

    async def start(self) -> None:
        """Warm ``min_connections`` and start the reaper and health prober."""
        if self._closing:
            raise PoolClosedError()
        if self._started:
            return
        self._started = True

        roles = (ConnectionRole.WRITE, ConnectionRole.READ)
        warm_roles = []
        for i in range(self.config.min_connections):
            if not self._try_reserve():
                break
            warm_roles.append(roles[i % len(roles)])

        results = await asyncio.gather(
            *(self._open_connection(role) for role in warm_roles),
            return_exceptions=True,
        )
        warmed = 0
        for role, result in zip(warm_roles, results):
            if isinstance(result, BaseException):
                logger.warning(f"Failed to warm {role.value} connection: {result}")
                continue
            self._make_available(result)
            warmed += 1

        self._reaper_task.start()
        self._health_task.start()
        if self._owns_monitor:
            self.monitor.start()

        logger.info(
            f"Connection pool '{self.name}' started with {warmed}/{self.config.min_connections} "
            f"warm connections (max {self.config.max_connections}, "
            f"write={mask_url(self.config.write_url)}, "
            f"replicas={len(self.config.read_replica_urls) if self.config.uses_read_replicas else 0})"
        )

    async def shutdown(self) -> None:
        """Stop background work, drain the waiting queue and close every connection."""
        if self._closed:
            return
        logger.info(f"Shutting down connection pool '{self.name}'")

        await self._reaper_task.stop()
        await self._health_task.stop()
        self._closing = True

        while len(self._queue):
            await asyncio.sleep(0.1)

        pending = list(self._background_tasks)
        if pending:
            results = await asyncio.gather(*pending, return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.error(f"Background pool task failed during shutdown: {result}")

        connections = self._registry.list_connections()
        for connection in connections:
            self._registry.remove(connection)
        results = await asyncio.gather(
            *(self._factory.close(c.client) for c in connections),
            return_exceptions=True,
        )
        for connection, result in zip(connections, results):
            if isinstance(result, Exception):
                logger.error(f"Error closing connection {connection.id}: {result}")
        self._destroyed += len(connections)
        self._closed = True

        if self._owns_monitor:
            await self.monitor.stop()

        logger.info(f"Connection pool '{self.name}' shut down, closed {len(connections)} connections")

    # Acquire / release

    async def acquire(self, role: ConnectionRole = ConnectionRole.READ) -> PooledConnection:
        """Check out a connection for ``role``.

        Raises:
            PoolClosedError: If shutdown has begun
            PoolExhaustedError: If the waiting queue is full
            AcquisitionTimeoutError: If no connection became available in time
            ConnectionCreationError: If a new connection could not be opened
        """
        role = ConnectionRole(role)
        if self._closing:
            raise PoolClosedError()

        try:
            connection = await self._acquire(role)
        except AcquisitionTimeoutError:
            self._timeouts += 1
            self._failed_acquisitions += 1
            raise
        except ConnectionPoolError:
            self._failed_acquisitions += 1
            raise

        self._acquired += 1
        return connection

    def release(self, connection: PooledConnection) -> None:
        """Return a connection; hands it to the oldest waiter of its role if any."""
        if connection not in self._registry:
            logger.debug(f"Ignoring release of unknown connection {connection.id}")
            return
        if not connection.in_use:
            logger.warning(f"Connection {connection.id} released while not in use")
            return
        self._make_available(connection)

    @asynccontextmanager
    async def connection(
        self, role: ConnectionRole = ConnectionRole.READ
    ) -> AsyncIterator[PooledConnection]:
        """Acquire a connection for the duration of the block."""
        conn = await self.acquire(role)
        try:
            yield conn
        finally:
            self.release(conn)

    async def _acquire(self, role: ConnectionRole) -> PooledConnection:
        connection = self._registry.checkout_idle(role, self._clock())
        if connection is not None:
            return connection

        if self._try_reserve() or (
            not self._queue.has_waiters(role) and self._recycle_idle_for(role)
        ):
            try:
                return await self._open_connection(role)
            except (ConnectionCreationError, asyncio.CancelledError):
                self._on_capacity_freed()
                raise

        request = self._queue.enqueue(role, self.config.acquire_timeout_seconds)
        logger.debug(
            f"Queued {role.value} acquisition ({self._queue.pending_count(role)} waiting)"
        )
        try:
            return await request.future
        except asyncio.CancelledError:
            future = request.future
            if future.done() and not future.cancelled() and future.exception() is None:
                # Handed over at the same instant the caller was cancelled
                self.release(future.result())
            else:
                self._queue.remove(request)
            raise

    def _try_reserve(self) -> bool:
        """Reserve a creation slot if the pool is below max_connections."""
        if self._at_capacity():
            return False
        self._pending_creations += 1
        return True

    def _recycle_idle_for(self, role: ConnectionRole) -> bool:
        """Free a slot by discarding an idle connection that cannot serve ``role``.

        Unhealthy idle connections go first, then idle connections of the
        other role. Returns True with a slot reserved on success.
        """
        candidates = [
            c for c in self._registry
            if not c.in_use and (not c.is_healthy or c.role != role)
        ]
        if not candidates:
            return False
        victim = min(candidates, key=lambda c: (c.is_healthy, c.last_used))
        self._discard(victim, f"recycled for {role.value} request", notify=False)
        self._pending_creations += 1
        return True

    def _at_capacity(self) -> bool:
        return len(self._registry) + self._pending_creations >= self.config.max_connections

    async def _open_connection(self, role: ConnectionRole) -> PooledConnection:
        """Create a connection in a slot already reserved by the caller.

        The new connection is registered as in use.
        """
        target = ""
        try:
            target = self._select_target(role)
            try:
                client = await self._factory.create(target, self.config.create_timeout_seconds)
            except Exception as e:
                self._errors += 1
                logger.error(
                    f"Failed to create {role.value} connection to {mask_url(target)}: {e}"
                )
                raise ConnectionCreationError(role.value, mask_url(target), str(e)) from e

            now = self._clock()
            connection = PooledConnection(
                id=generate_connection_id(role),
                role=role,
                target_url=target,
                client=client,
                created_at=now,
                last_used=now,
                in_use=True,
            )
            self._registry.add(connection)
            self._created += 1
        finally:
            self._pending_creations -= 1

        logger.debug(f"Created {role.value} connection {connection.id} to {connection.safe_target}")
        return connection

    def _select_target(self, role: ConnectionRole) -> str:
        if role == ConnectionRole.READ and self.config.uses_read_replicas:
            return self._load_balancer.select(
                self.config.read_replica_urls,
                self._registry.loads_by_target(ConnectionRole.READ),
            )
        return self.config.write_url

    def _make_available(self, connection: PooledConnection, touch: bool = True) -> None:
        """Hand ``connection`` to a waiter or mark it idle.

        With ``touch=False`` the last-used time only moves if a waiter takes
        the connection.
        """
        if connection.is_healthy and self._queue.fulfill(connection.role, connection):
            connection.in_use = True
            connection.last_used = self._clock()
            self._handoffs += 1
            return

        if touch:
            connection.last_used = self._clock()
        connection.in_use = False
        if len(self._queue) and self._at_capacity():
            # Nobody waiting can use this one; make room for a connection they can
            self._discard(connection, "cannot serve waiting requests")

    def _return_checked(self, connection: PooledConnection) -> None:
        # A health check is not use; idle time keeps counting
        self._make_available(connection, touch=False)

    def _on_capacity_freed(self) -> None:
        """Open one replacement connection for the oldest waiting request."""
        if self._closed:
            return
        role = self._queue.oldest_waiting_role()
        if role is None or not self._try_reserve():
            return
        self._spawn(self._open_for_waiter(role))

    async def _open_for_waiter(self, role: ConnectionRole) -> None:
        try:
            connection = await self._open_connection(role)
        except ConnectionCreationError as e:
            logger.warning(f"Replacement {role.value} connection for waiting request failed: {e}")
            return
        self._make_available(connection)

    # Eviction

    async def _evict(self, connection: PooledConnection, reason: str) -> None:
        """Remove a connection from the pool and close its client."""
        if not self._registry.remove(connection):
            return
        self._destroyed += 1
        logger.info(f"Evicting connection {connection.id} ({reason})")
        self._on_capacity_freed()
        await self._close_client(connection)

    def _discard(self, connection: PooledConnection, reason: str, notify: bool = True) -> None:
        """Synchronous eviction; the client is closed in the background."""
        if not self._registry.remove(connection):
            return
        self._destroyed += 1
        logger.info(f"Discarding connection {connection.id} ({reason})")
        self._spawn(self._close_client(connection))
        if notify:
            self._on_capacity_freed()

    async def _close_client(self, connection: PooledConnection) -> None:
        try:
            await self._factory.close(connection.client)
        except Exception as e:
            logger.error(f"Error closing connection {connection.id}: {e}")

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    # Query execution

    async def execute_query(
        self,
        name: str,
        fn: QueryFunction,
        role: ConnectionRole = ConnectionRole.READ,
    ) -> Any:
        """Run ``fn(client)`` on a connection of ``role`` under the circuit breaker.

        Raises:
            CircuitOpenError: If the breaker rejected the call
            QueryExecutionError: If ``fn`` raised (original error chained)
            ConnectionPoolError: If no connection could be acquired
        """
        role = ConnectionRole(role)
        try:
            return await self.circuit_breaker.execute(lambda: self._run_query(name, fn, role))
        except CircuitOpenError as e:
            self.monitor.record_query(name, 0.0, False, error=str(e))
            raise

    async def execute_read_query(self, name: str, fn: QueryFunction) -> Any:
        """Run ``fn`` on a read connection."""
        return await self.execute_query(name, fn, ConnectionRole.READ)

    async def execute_write_query(self, name: str, fn: QueryFunction) -> Any:
        """Run ``fn`` on a write connection."""
        return await self.execute_query(name, fn, ConnectionRole.WRITE)

    async def execute_transaction(self, name: str, fn: QueryFunction) -> Any:
        """Run ``fn(client)`` inside a driver transaction on a write connection.

        The wait for a connection is bounded by ``acquire_timeout_seconds``;
        the transaction body by ``create_timeout_seconds``. A body that runs
        out of time is rolled back and raises QueryTimeoutError.
        """
        tx_name = f"{name}:transaction"
        try:
            return await self.circuit_breaker.execute(lambda: self._run_transaction(tx_name, fn))
        except CircuitOpenError as e:
            self.monitor.record_query(tx_name, 0.0, False, error=str(e))
            raise

    async def execute_batch(
        self,
        fns: Sequence[QueryFunction],
        role: ConnectionRole = ConnectionRole.READ,
        batch_size: int = 10,
        fail_fast: bool = False,
        name: str = "batch",
    ) -> BatchResult:
        """Run query functions in concurrent chunks of ``batch_size``.

        With ``fail_fast`` the first error is raised and later chunks are not
        started; otherwise every error is collected in the result.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")

        batch = BatchResult()
        for start in range(0, len(fns), batch_size):
            chunk = fns[start:start + batch_size]
            outcomes = await asyncio.gather(
                *(
                    self.execute_query(f"{name}[{start + offset}]", fn, role)
                    for offset, fn in enumerate(chunk)
                ),
                return_exceptions=True,
            )
            for offset, outcome in enumerate(outcomes):
                index = start + offset
                if isinstance(outcome, BaseException):
                    if fail_fast:
                        raise outcome
                    batch.errors[index] = outcome
                    batch.results.append(None)
                else:
                    batch.results.append(outcome)

        if batch.errors:
            logger.warning(f"Batch '{name}' finished with {batch.failed}/{len(fns)} failures")
        return batch

    async def _acquire_for(self, name: str, role: ConnectionRole) -> PooledConnection:
        start = time.perf_counter()
        try:
            return await self.acquire(role)
        except ConnectionPoolError as e:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self.monitor.record_query(name, elapsed_ms, False, error=str(e))
            raise

    async def _run_query(self, name: str, fn: QueryFunction, role: ConnectionRole) -> Any:
        connection = await self._acquire_for(name, role)
        start = time.perf_counter()
        try:
            result = await fn(connection.client)
        except Exception as e:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self._record_failure(connection, name, elapsed_ms, e)
            raise QueryExecutionError(name, e) from e
        else:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self._record_success(connection, name, elapsed_ms, result)
            return result
        finally:
            self.release(connection)

    async def _run_transaction(self, name: str, fn: QueryFunction) -> Any:
        connection = await self._acquire_for(name, ConnectionRole.WRITE)
        timeout = self.config.create_timeout_seconds
        start = time.perf_counter()
        try:
            async with self._factory.transaction(connection.client):
                result = await asyncio.wait_for(fn(connection.client), timeout=timeout)
        except asyncio.TimeoutError as e:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self._record_failure(connection, name, elapsed_ms, e)
            raise QueryTimeoutError(name, timeout) from e
        except Exception as e:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self._record_failure(connection, name, elapsed_ms, e)
            raise QueryExecutionError(name, e) from e
        else:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self._record_success(connection, name, elapsed_ms, result)
            return result
        finally:
            self.release(connection)

    def _record_success(
        self, connection: PooledConnection, name: str, elapsed_ms: float, result: Any
    ) -> None:
        connection.record_success(elapsed_ms)
        self._query_count += 1
        self._query_time_ms += elapsed_ms
        self.monitor.record_query(name, elapsed_ms, True, rows_affected=_rows_affected(result))

    def _record_failure(
        self, connection: PooledConnection, name: str, elapsed_ms: float, error: BaseException
    ) -> None:
        connection.record_failure()
        self._errors += 1
        logger.error(f"Query '{name}' failed on connection {connection.id}: {error}")
        self.monitor.record_query(name, elapsed_ms, False, error=str(error) or type(error).__name__)

    # Observability

    def get_stats(self) -> PoolStats:
        """Snapshot of pool usage; reading it changes nothing."""
        now = self._clock()
        connections = self._registry.list_connections()
        active = sum(
            1 for c in connections
            if c.in_use or (now - c.last_used) < ACTIVE_WINDOW_SECONDS
        )
        breaker = self.circuit_breaker.get_state()
        return PoolStats(
            active=active,
            idle=len(connections) - active,
            pending=len(self._queue),
            total=len(connections),
            max_connections=self.config.max_connections,
            utilization=active / self.config.max_connections * 100,
            errors=self._errors,
            avg_response_time_ms=(
                self._query_time_ms / self._query_count if self._query_count else 0.0
            ),
            connections_created=self._created,
            connections_destroyed=self._destroyed,
            acquired_connections=self._acquired,
            handoffs=self._handoffs,
            failed_acquisitions=self._failed_acquisitions,
            timeouts=self._timeouts,
            circuit_state=breaker.state,
            circuit_breaker_trips=breaker.trip_count,
        )

    def list_connections(self, role: Optional[ConnectionRole] = None) -> List[PooledConnection]:
        """Live connections, optionally filtered by role."""
        return self._registry.list_connections(role)

    async def health_check(self) -> HealthCheckSummary:
        """Probe idle connections and evict the ones with too many errors."""
        return await self._prober.check_all()

    async def reap(self):
        """Run one reaper pass immediately."""
        return await self._reaper.reap()


def create_database_layer(
    pool_settings: Optional[PoolSettings] = None,
    monitor_settings: Optional[MonitorSettings] = None,
    factory: Optional[ConnectionFactory] = None,
) -> Tuple[ConnectionPool, QueryMonitor]:
    """Build a pool and its monitor from settings.

    The monitor is returned separately so the caller owns its lifecycle
    (``monitor.start()`` / ``await monitor.stop()``).
    """
    pool_settings = pool_settings or get_pool_settings()
    monitor_settings = monitor_settings or get_monitor_settings()

    monitor = QueryMonitor(monitor_settings.to_monitor_config())
    pool = ConnectionPool(pool_settings.to_pool_config(), factory=factory, monitor=monitor)
    return pool, monitor
