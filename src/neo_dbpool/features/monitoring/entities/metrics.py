"""Query monitoring value objects.

Timestamps are epoch seconds from the monitor's clock. Every object
exposes ``to_dict()`` for dashboards and JSON responses.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ....config.constants import (
    AnalyticsRange,
    HealthStatus,
    RecommendationPriority,
    RecommendationType,
)


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


@dataclass(frozen=True)
class QueryMetric:
    """One recorded query outcome."""

    query_name: str
    execution_time_ms: float
    timestamp: float
    success: bool
    rows_affected: Optional[int] = None
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query_name": self.query_name,
            "execution_time_ms": round(self.execution_time_ms, 3),
            "timestamp": _iso(self.timestamp),
            "success": self.success,
            "rows_affected": self.rows_affected,
            "error_message": self.error_message,
        }


@dataclass
class MonitorCounters:
    """Lifetime counters; never pruned, reset only by ``reset_metrics``."""

    total_queries: int = 0
    successful_queries: int = 0
    failed_queries: int = 0
    slow_queries: int = 0
    critical_queries: int = 0
    total_execution_time_ms: float = 0.0
    cache_hits: int = 0
    cache_misses: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ConnectionMetrics:
    """Metrics over the trailing health window."""

    query_count: int
    average_query_time_ms: float
    error_rate: float           # percent
    slow_query_count: int
    pool_utilization: float     # percent
    active_connections: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query_count": self.query_count,
            "average_query_time_ms": round(self.average_query_time_ms, 3),
            "error_rate": round(self.error_rate, 2),
            "slow_query_count": self.slow_query_count,
            "pool_utilization": round(self.pool_utilization, 2),
            "active_connections": self.active_connections,
        }


@dataclass(frozen=True)
class DatabaseHealth:
    """Health score and status derived from ConnectionMetrics."""

    status: HealthStatus
    score: float
    metrics: ConnectionMetrics
    recommendations: List[str] = field(default_factory=list)

    @property
    def is_healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "score": round(self.score, 2),
            "metrics": self.metrics.to_dict(),
            "recommendations": list(self.recommendations),
        }


@dataclass
class QueryStats:
    """Aggregates for one query name inside an analytics range."""

    count: int = 0
    total_time_ms: float = 0.0
    min_time_ms: float = 0.0
    max_time_ms: float = 0.0
    error_count: int = 0

    @property
    def avg_time_ms(self) -> float:
        return self.total_time_ms / self.count if self.count else 0.0

    @property
    def success_rate(self) -> float:
        return (self.count - self.error_count) / self.count * 100 if self.count else 0.0

    def add(self, metric: QueryMetric) -> None:
        if self.count == 0:
            self.min_time_ms = metric.execution_time_ms
            self.max_time_ms = metric.execution_time_ms
        else:
            self.min_time_ms = min(self.min_time_ms, metric.execution_time_ms)
            self.max_time_ms = max(self.max_time_ms, metric.execution_time_ms)
        self.count += 1
        self.total_time_ms += metric.execution_time_ms
        if not metric.success:
            self.error_count += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "total_time_ms": round(self.total_time_ms, 3),
            "avg_time_ms": round(self.avg_time_ms, 3),
            "min_time_ms": round(self.min_time_ms, 3),
            "max_time_ms": round(self.max_time_ms, 3),
            "error_count": self.error_count,
            "success_rate": round(self.success_rate, 2),
        }


@dataclass(frozen=True)
class PerformanceAnalytics:
    """Query analytics over one AnalyticsRange."""

    time_range: AnalyticsRange
    total_queries: int
    unique_queries: int
    avg_response_time_ms: float
    error_rate: float
    slow_query_rate: float
    query_breakdown: Dict[str, QueryStats]
    top_slow_queries: List[QueryMetric]
    error_analysis: Dict[str, int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time_range": self.time_range.value,
            "total_queries": self.total_queries,
            "unique_queries": self.unique_queries,
            "avg_response_time_ms": round(self.avg_response_time_ms, 3),
            "error_rate": round(self.error_rate, 2),
            "slow_query_rate": round(self.slow_query_rate, 2),
            "query_breakdown": {name: s.to_dict() for name, s in self.query_breakdown.items()},
            "top_slow_queries": [m.to_dict() for m in self.top_slow_queries],
            "error_analysis": dict(self.error_analysis),
        }


@dataclass(frozen=True)
class OptimizationRecommendation:
    """Rule-based tuning advice."""

    type: RecommendationType
    priority: RecommendationPriority
    title: str
    description: str
    impact: str
    action: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "type": self.type.value,
            "priority": self.priority.value,
            "title": self.title,
            "description": self.description,
            "impact": self.impact,
            "action": self.action,
        }


@dataclass(frozen=True)
class CacheMetrics:
    """Hit rate of an adjoining cache layer."""

    hits: int
    misses: int

    @property
    def total(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        return self.hits / self.total * 100 if self.total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": round(self.hit_rate, 2),
            "total": self.total,
        }


@dataclass(frozen=True)
class PoolMetricsSnapshot:
    """Connection pool view used by dashboards."""

    active: int
    max: int
    utilization: float
    available: int
    pool_efficiency: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active": self.active,
            "max": self.max,
            "utilization": round(self.utilization, 2),
            "available": self.available,
            "pool_efficiency": round(self.pool_efficiency, 2),
        }


@dataclass(frozen=True)
class SystemStatus:
    """Combined health, pool, cache and counter view."""

    health: DatabaseHealth
    connections: Optional[PoolMetricsSnapshot]
    cache: CacheMetrics
    counters: MonitorCounters
    uptime_seconds: float
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "health": self.health.to_dict(),
            "connections": self.connections.to_dict() if self.connections else None,
            "cache": self.cache.to_dict(),
            "counters": self.counters.to_dict(),
            "uptime_seconds": round(self.uptime_seconds, 3),
            "timestamp": _iso(self.timestamp),
        }
