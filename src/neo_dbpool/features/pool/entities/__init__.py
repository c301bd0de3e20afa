"""Connection pool domain objects and protocols."""

from .config import PoolConfig, CircuitBreakerConfig
from .connection import PooledConnection, generate_connection_id
from .protocols import ConnectionFactory, LoadBalancer
from .stats import PoolStats, CircuitBreakerState, HealthCheckSummary, ReapResult

__all__ = [
    "PoolConfig",
    "CircuitBreakerConfig",
    "PooledConnection",
    "generate_connection_id",
    "ConnectionFactory",
    "LoadBalancer",
    "PoolStats",
    "CircuitBreakerState",
    "HealthCheckSummary",
    "ReapResult",
]
