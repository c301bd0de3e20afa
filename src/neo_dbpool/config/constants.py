"""Constants and enums for neo-dbpool.

Thresholds used across the pool and the query monitor live here so the
scoring rules and the pool limits stay in one place.
"""

from enum import Enum


class ConnectionRole(str, Enum):
    """Role a pooled connection serves."""

    READ = "read"
    WRITE = "write"


class CircuitState(str, Enum):
    """Circuit breaker modes."""

    CLOSED = "closed"        # Normal operation, calls allowed
    OPEN = "open"            # Calls rejected without being attempted
    HALF_OPEN = "half_open"  # Single trial call allowed


class HealthStatus(str, Enum):
    """Database health status derived from the health score."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


class AnalyticsRange(str, Enum):
    """Time ranges supported by performance analytics."""

    LAST_HOUR = "last_hour"
    LAST_DAY = "last_day"
    LAST_WEEK = "last_week"

    @property
    def seconds(self) -> int:
        """Length of the range in seconds."""
        return {
            AnalyticsRange.LAST_HOUR: 60 * 60,
            AnalyticsRange.LAST_DAY: 24 * 60 * 60,
            AnalyticsRange.LAST_WEEK: 7 * 24 * 60 * 60,
        }[self]


class LoadBalancingStrategy(str, Enum):
    """Replica selection strategies for read connections."""

    RANDOM = "random"
    ROUND_ROBIN = "round_robin"
    LEAST_LOADED = "least_loaded"


class RecommendationType(str, Enum):
    """Category of an optimization recommendation."""

    PERFORMANCE = "performance"
    INDEXING = "indexing"
    CACHING = "caching"
    CONNECTION = "connection"
    QUERY = "query"


class RecommendationPriority(str, Enum):
    """Priority of an optimization recommendation."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Connection error limits
UNHEALTHY_ERROR_THRESHOLD = 5   # query errors before a connection is marked unhealthy
MAX_CONNECTION_ERRORS = 10      # probe/query errors before a connection is evicted

# Connections used within this window count as active in pool stats
ACTIVE_WINDOW_SECONDS = 5.0

# Default cap on queued acquisitions across all roles
DEFAULT_MAX_QUEUE_DEPTH = 1000

# Query latency thresholds (milliseconds)
SLOW_QUERY_THRESHOLD_MS = 100.0
CRITICAL_QUERY_THRESHOLD_MS = 500.0

# Query history bounds
MAX_METRICS_HISTORY = 10000
METRICS_RETENTION_SECONDS = 60 * 60
METRICS_CLEANUP_INTERVAL_SECONDS = 5 * 60
HEALTH_WINDOW_SECONDS = 60
HEALTH_LOG_INTERVAL_SECONDS = 60

# Health scoring
HEALTHY_SCORE = 80.0
WARNING_SCORE = 60.0
HIGH_UTILIZATION_PERCENT = 80.0
LATENCY_BASELINE_MS = 50.0
MAX_LATENCY_PENALTY = 20.0

# Recommendation rules
SLOW_QUERY_RATE_LIMIT = 10.0
ERROR_RATE_LIMIT = 5.0
CACHE_HIT_RATE_LIMIT = 70.0
CACHE_MIN_SAMPLES = 100

# monitored_query retry backoff (seconds)
RETRY_BASE_DELAY_SECONDS = 1.0
RETRY_MAX_DELAY_SECONDS = 5.0
