"""Connection pool feature for neo-dbpool.

Feature-First layout:
- entities/: configuration, pooled connection, protocols and stats
- repositories/: registry, acquisition queue, circuit breaker, reaper, prober
- services/: the ConnectionPool orchestrating all of the above
- utils/: asyncpg connection factory and validation helpers
"""

from .entities import PoolConfig, CircuitBreakerConfig, PooledConnection, PoolStats
from .services import ConnectionPool, BatchResult, create_database_layer

__all__ = [
    "PoolConfig",
    "CircuitBreakerConfig",
    "PooledConnection",
    "PoolStats",
    "ConnectionPool",
    "BatchResult",
    "create_database_layer",
]
