"""Query monitoring value objects."""

from .config import MonitorConfig
from .metrics import (
    QueryMetric,
    MonitorCounters,
    ConnectionMetrics,
    DatabaseHealth,
    QueryStats,
    PerformanceAnalytics,
    OptimizationRecommendation,
    CacheMetrics,
    PoolMetricsSnapshot,
    SystemStatus,
)

__all__ = [
    "MonitorConfig",
    "QueryMetric",
    "MonitorCounters",
    "ConnectionMetrics",
    "DatabaseHealth",
    "QueryStats",
    "PerformanceAnalytics",
    "OptimizationRecommendation",
    "CacheMetrics",
    "PoolMetricsSnapshot",
    "SystemStatus",
]
