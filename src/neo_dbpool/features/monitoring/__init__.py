"""Query monitoring feature for neo-dbpool."""

from .entities import MonitorConfig, DatabaseHealth, PerformanceAnalytics, OptimizationRecommendation
from .services import QueryMonitor
from .utils.monitoring import with_monitoring, monitored

__all__ = [
    "MonitorConfig",
    "DatabaseHealth",
    "PerformanceAnalytics",
    "OptimizationRecommendation",
    "QueryMonitor",
    "with_monitoring",
    "monitored",
]
