"""Neo-DBPool - resilient database access layer for asyncio services.

Bounded connection pool with read/write routing, a circuit breaker, a
waiting-request queue, periodic health probing, and a query monitor that
scores database health and emits optimization recommendations.
"""

# Initialize logging configuration on import
from .config.logging_config import setup_logging
setup_logging()

from .__version__ import __version__

from .config.constants import (
    ConnectionRole,
    CircuitState,
    HealthStatus,
    AnalyticsRange,
    LoadBalancingStrategy,
    RecommendationType,
    RecommendationPriority,
)

from .core.exceptions import (
    NeoPoolError,
    DatabaseError,
    ConnectionPoolError,
    ConnectionCreationError,
    AcquisitionTimeoutError,
    PoolExhaustedError,
    PoolClosedError,
    CircuitOpenError,
    QueryError,
    QueryTimeoutError,
    QueryExecutionError,
)

# Features (pool before settings: settings build the pool's config entities)
from .features.pool import (
    PoolConfig,
    CircuitBreakerConfig,
    PooledConnection,
    PoolStats,
    ConnectionPool,
    BatchResult,
    create_database_layer,
)
from .features.monitoring import (
    MonitorConfig,
    DatabaseHealth,
    PerformanceAnalytics,
    OptimizationRecommendation,
    QueryMonitor,
    with_monitoring,
    monitored,
)

from .config.settings import (
    PoolSettings,
    MonitorSettings,
    get_pool_settings,
    get_monitor_settings,
)

__all__ = [
    "__version__",
    "setup_logging",

    # Enums
    "ConnectionRole",
    "CircuitState",
    "HealthStatus",
    "AnalyticsRange",
    "LoadBalancingStrategy",
    "RecommendationType",
    "RecommendationPriority",

    # Exceptions
    "NeoPoolError",
    "DatabaseError",
    "ConnectionPoolError",
    "ConnectionCreationError",
    "AcquisitionTimeoutError",
    "PoolExhaustedError",
    "PoolClosedError",
    "CircuitOpenError",
    "QueryError",
    "QueryTimeoutError",
    "QueryExecutionError",

    # Pool
    "PoolConfig",
    "CircuitBreakerConfig",
    "PooledConnection",
    "PoolStats",
    "ConnectionPool",
    "BatchResult",
    "create_database_layer",

    # Monitoring
    "MonitorConfig",
    "DatabaseHealth",
    "PerformanceAnalytics",
    "OptimizationRecommendation",
    "QueryMonitor",
    "with_monitoring",
    "monitored",

    # Settings
    "PoolSettings",
    "MonitorSettings",
    "get_pool_settings",
    "get_monitor_settings",
]
