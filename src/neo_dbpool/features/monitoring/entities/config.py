"""Query monitor configuration."""

from dataclasses import dataclass

from ....config.constants import (
    CRITICAL_QUERY_THRESHOLD_MS,
    HEALTH_LOG_INTERVAL_SECONDS,
    HEALTH_WINDOW_SECONDS,
    MAX_METRICS_HISTORY,
    METRICS_CLEANUP_INTERVAL_SECONDS,
    METRICS_RETENTION_SECONDS,
    SLOW_QUERY_THRESHOLD_MS,
)
from ...pool.utils.validation import validate_positive_timeouts


@dataclass(frozen=True)
class MonitorConfig:
    """Thresholds and retention for a QueryMonitor."""

    slow_query_threshold_ms: float = SLOW_QUERY_THRESHOLD_MS
    critical_query_threshold_ms: float = CRITICAL_QUERY_THRESHOLD_MS
    max_history: int = MAX_METRICS_HISTORY
    retention_seconds: float = METRICS_RETENTION_SECONDS
    cleanup_interval_seconds: float = METRICS_CLEANUP_INTERVAL_SECONDS
    health_window_seconds: float = HEALTH_WINDOW_SECONDS
    health_log_interval_seconds: float = HEALTH_LOG_INTERVAL_SECONDS

    def __post_init__(self):
        if self.max_history < 1:
            raise ValueError("max_history must be >= 1")
        if self.critical_query_threshold_ms < self.slow_query_threshold_ms:
            raise ValueError(
                "critical_query_threshold_ms must be >= slow_query_threshold_ms"
            )
        validate_positive_timeouts(
            slow_query_threshold_ms=self.slow_query_threshold_ms,
            retention_seconds=self.retention_seconds,
            cleanup_interval_seconds=self.cleanup_interval_seconds,
            health_window_seconds=self.health_window_seconds,
            health_log_interval_seconds=self.health_log_interval_seconds,
        )
