"""Query performance monitor.

Records the outcome and latency of every query, keeps a bounded rolling
history, scores database health, and derives analytics and optimization
recommendations for dashboards.
"""

import asyncio
import logging
import time
from collections import Counter, deque
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Deque, Dict, List, Optional, Tuple, TypeVar, Union

from ....config.constants import (
    CACHE_HIT_RATE_LIMIT,
    CACHE_MIN_SAMPLES,
    ERROR_RATE_LIMIT,
    HIGH_UTILIZATION_PERCENT,
    RETRY_BASE_DELAY_SECONDS,
    RETRY_MAX_DELAY_SECONDS,
    SLOW_QUERY_RATE_LIMIT,
    AnalyticsRange,
    HealthStatus,
    RecommendationPriority,
    RecommendationType,
)
from ....core.exceptions.base import NeoPoolError
from ....core.exceptions.database import (
    CircuitOpenError,
    PoolClosedError,
    QueryExecutionError,
    QueryTimeoutError,
)
from ....utils.periodic import PeriodicTask
from ..entities.config import MonitorConfig
from ..entities.metrics import (
    CacheMetrics,
    ConnectionMetrics,
    DatabaseHealth,
    MonitorCounters,
    OptimizationRecommendation,
    PerformanceAnalytics,
    PoolMetricsSnapshot,
    QueryMetric,
    QueryStats,
    SystemStatus,
)
from ..utils.health_scoring import (
    calculate_health_score,
    generate_health_recommendations,
    health_status_for,
)

if TYPE_CHECKING:
    from ...pool.services.pool_service import ConnectionPool

logger = logging.getLogger(__name__)

T = TypeVar("T")

TOP_SLOW_QUERIES_LIMIT = 5

# Errors that retrying cannot fix
NON_RETRYABLE_ERRORS = (CircuitOpenError, PoolClosedError)


def retry_delay(attempt: int) -> float:
    """Backoff before the attempt after ``attempt`` (1-based): 1s, 2s, 4s, capped at 5s."""
    return min(RETRY_BASE_DELAY_SECONDS * 2 ** (attempt - 1), RETRY_MAX_DELAY_SECONDS)


class QueryMonitor:
    """Rolling query metrics with health scoring and recommendations.

    ``clock`` returns epoch seconds and ``sleep`` is awaited between retries;
    both are injectable so tests need no real waiting.
    """

    def __init__(
        self,
        config: Optional[MonitorConfig] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config or MonitorConfig()
        self._clock = clock
        self._sleep = sleep

        self._history: Deque[QueryMetric] = deque(maxlen=self.config.max_history)
        self.counters = MonitorCounters()
        self._pool: Optional["ConnectionPool"] = None
        self._started_at = clock()

        self._cleanup_task = PeriodicTask(
            "query-monitor-cleanup", self._run_cleanup, self.config.cleanup_interval_seconds
        )
        self._health_log_task = PeriodicTask(
            "query-monitor-health", self._log_health, self.config.health_log_interval_seconds
        )

    # Lifecycle

    def attach_pool(self, pool: "ConnectionPool") -> None:
        """Use ``pool`` for utilization and connection metrics."""
        self._pool = pool

    def detach_pool(self) -> None:
        self._pool = None

    def start(self) -> None:
        """Start the periodic history cleanup and health logging."""
        self._cleanup_task.start()
        self._health_log_task.start()

    async def stop(self) -> None:
        await self._cleanup_task.stop()
        await self._health_log_task.stop()

    @property
    def history(self) -> List[QueryMetric]:
        """Recorded metrics, oldest first."""
        return list(self._history)

    # Recording

    def record_query(
        self,
        query_name: str,
        execution_time_ms: float,
        success: bool,
        rows_affected: Optional[int] = None,
        error: Optional[Union[str, BaseException]] = None,
    ) -> QueryMetric:
        """Record one query outcome and update the counters."""
        error_message = None
        if error is not None:
            error_message = str(error) or type(error).__name__

        metric = QueryMetric(
            query_name=query_name,
            execution_time_ms=execution_time_ms,
            timestamp=self._clock(),
            success=success,
            rows_affected=rows_affected,
            error_message=error_message,
        )
        self._history.append(metric)

        self.counters.total_queries += 1
        self.counters.total_execution_time_ms += execution_time_ms
        if success:
            self.counters.successful_queries += 1
        else:
            self.counters.failed_queries += 1
            logger.debug(f"Query failed: {query_name}: {error_message}")

        if execution_time_ms > self.config.critical_query_threshold_ms:
            self.counters.critical_queries += 1
            logger.warning(f"Critical slow query detected: {query_name} ({execution_time_ms:.1f}ms)")
        elif execution_time_ms > self.config.slow_query_threshold_ms:
            self.counters.slow_queries += 1
            logger.warning(f"Slow query detected: {query_name} ({execution_time_ms:.1f}ms)")

        return metric

    async def monitored_query(
        self,
        query_name: str,
        fn: Callable[[], Awaitable[T]],
        retries: int = 3,
        timeout: float = 30.0,
    ) -> T:
        """Run ``fn()`` with a timeout and exponential-backoff retries.

        Only the final outcome is recorded, timed from the first attempt.

        Args:
            query_name: Name used in metrics and logs
            fn: Zero-argument coroutine function, called once per attempt
            retries: Total number of attempts
            timeout: Seconds allowed per attempt

        Raises:
            QueryTimeoutError: If the last attempt timed out
            CircuitOpenError: Immediately, without retrying
            PoolClosedError: Immediately, without retrying
            QueryExecutionError: Wrapping any other final failure
        """
        if retries < 1:
            raise ValueError("retries must be >= 1")

        start = time.perf_counter()
        last_error: Optional[Exception] = None

        for attempt in range(1, retries + 1):
            try:
                try:
                    result = await asyncio.wait_for(fn(), timeout=timeout)
                except asyncio.TimeoutError as e:
                    raise QueryTimeoutError(query_name, timeout) from e
            except NON_RETRYABLE_ERRORS as e:
                self.record_query(query_name, self._elapsed_ms(start), False, error=e)
                raise
            except Exception as e:
                last_error = e
            else:
                self.record_query(
                    query_name,
                    self._elapsed_ms(start),
                    True,
                    rows_affected=len(result) if isinstance(result, (list, tuple)) else None,
                )
                return result

            if attempt < retries:
                delay = retry_delay(attempt)
                logger.warning(
                    f"Query {query_name} attempt {attempt}/{retries} failed: {last_error}; "
                    f"retrying in {delay}s"
                )
                await self._sleep(delay)

        self.record_query(query_name, self._elapsed_ms(start), False, error=last_error)
        logger.error(f"Query {query_name} failed after {retries} attempts: {last_error}")
        if isinstance(last_error, NeoPoolError):
            raise last_error
        raise QueryExecutionError(query_name, last_error) from last_error

    def record_cache_hit(self) -> None:
        self.counters.cache_hits += 1

    def record_cache_miss(self) -> None:
        self.counters.cache_misses += 1

    # Health

    def get_database_health(self) -> DatabaseHealth:
        """Score the trailing health window (one minute by default)."""
        cutoff = self._clock() - self.config.health_window_seconds
        recent = [m for m in self._history if m.timestamp > cutoff]

        query_count = len(recent)
        utilization, active = self._pool_usage()
        if query_count:
            average = sum(m.execution_time_ms for m in recent) / query_count
            error_rate = sum(1 for m in recent if not m.success) / query_count * 100
        else:
            average = 0.0
            error_rate = 0.0

        metrics = ConnectionMetrics(
            query_count=query_count,
            average_query_time_ms=average,
            error_rate=error_rate,
            slow_query_count=sum(
                1 for m in recent if m.execution_time_ms > self.config.slow_query_threshold_ms
            ),
            pool_utilization=utilization,
            active_connections=active,
        )
        score = calculate_health_score(metrics)
        return DatabaseHealth(
            status=health_status_for(score),
            score=score,
            metrics=metrics,
            recommendations=generate_health_recommendations(metrics, score),
        )

    def _pool_usage(self) -> Tuple[float, int]:
        if self._pool is None:
            return 0.0, 0
        stats = self._pool.get_stats()
        return stats.utilization, stats.active

    # Analytics

    def get_performance_analytics(
        self, time_range: AnalyticsRange = AnalyticsRange.LAST_HOUR
    ) -> PerformanceAnalytics:
        """Aggregate metrics for ``time_range``; expired entries are pruned first."""
        time_range = AnalyticsRange(time_range)
        self.cleanup_expired()

        cutoff = self._clock() - time_range.seconds
        relevant = [m for m in self._history if m.timestamp > cutoff]

        breakdown: Dict[str, QueryStats] = {}
        for metric in relevant:
            breakdown.setdefault(metric.query_name, QueryStats()).add(metric)

        total = len(relevant)
        if total:
            avg_response = sum(m.execution_time_ms for m in relevant) / total
            error_rate = sum(1 for m in relevant if not m.success) / total * 100
            slow_rate = sum(
                1 for m in relevant if m.execution_time_ms > self.config.slow_query_threshold_ms
            ) / total * 100
        else:
            avg_response = error_rate = slow_rate = 0.0

        top_slow = sorted(
            (m for m in relevant if m.success),
            key=lambda m: m.execution_time_ms,
            reverse=True,
        )[:TOP_SLOW_QUERIES_LIMIT]
        error_analysis = Counter(
            m.error_message or "Unknown error" for m in relevant if not m.success
        )

        return PerformanceAnalytics(
            time_range=time_range,
            total_queries=total,
            unique_queries=len(breakdown),
            avg_response_time_ms=avg_response,
            error_rate=error_rate,
            slow_query_rate=slow_rate,
            query_breakdown=breakdown,
            top_slow_queries=top_slow,
            error_analysis=dict(error_analysis),
        )

    def get_optimization_recommendations(self) -> List[OptimizationRecommendation]:
        """Rule-based tuning advice over the last hour."""
        analytics = self.get_performance_analytics(AnalyticsRange.LAST_HOUR)
        health = self.get_database_health()
        cache = self.get_cache_metrics()
        recommendations = []

        if analytics.slow_query_rate > SLOW_QUERY_RATE_LIMIT:
            recommendations.append(OptimizationRecommendation(
                type=RecommendationType.PERFORMANCE,
                priority=RecommendationPriority.HIGH,
                title="High Slow Query Rate",
                description=(
                    f"{analytics.slow_query_rate:.1f}% of queries are slow "
                    f"(>{self.config.slow_query_threshold_ms:.0f}ms)"
                ),
                impact="Significant performance degradation",
                action="Review and optimize slow queries, add appropriate indexes",
            ))

        if analytics.error_rate > ERROR_RATE_LIMIT:
            recommendations.append(OptimizationRecommendation(
                type=RecommendationType.QUERY,
                priority=RecommendationPriority.CRITICAL,
                title="High Error Rate",
                description=f"{analytics.error_rate:.1f}% of queries are failing",
                impact="Application instability and data inconsistency",
                action="Investigate and fix failing queries immediately",
            ))

        if health.metrics.pool_utilization > HIGH_UTILIZATION_PERCENT:
            recommendations.append(OptimizationRecommendation(
                type=RecommendationType.CONNECTION,
                priority=RecommendationPriority.MEDIUM,
                title="High Connection Pool Utilization",
                description=f"Pool utilization at {health.metrics.pool_utilization:.1f}%",
                impact="Potential connection bottlenecks",
                action="Consider increasing pool size or optimizing query patterns",
            ))

        if cache.hit_rate < CACHE_HIT_RATE_LIMIT and cache.total > CACHE_MIN_SAMPLES:
            recommendations.append(OptimizationRecommendation(
                type=RecommendationType.CACHING,
                priority=RecommendationPriority.MEDIUM,
                title="Low Cache Hit Rate",
                description=f"Cache hit rate is only {cache.hit_rate:.1f}%",
                impact="Increased database load and slower response times",
                action="Review caching strategy and TTL values",
            ))

        return recommendations

    def get_connection_pool_metrics(self) -> Optional[PoolMetricsSnapshot]:
        """Pool usage and efficiency; None when no pool is attached."""
        if self._pool is None:
            return None

        stats = self._pool.get_stats()
        total = self.counters.total_queries
        avg_time = self.counters.total_execution_time_ms / total if total else 0.0
        return PoolMetricsSnapshot(
            active=stats.active,
            max=stats.max_connections,
            utilization=stats.utilization,
            available=max(0, stats.max_connections - stats.active),
            pool_efficiency=max(100 - avg_time / 10, 0.0),
        )

    def get_cache_metrics(self) -> CacheMetrics:
        return CacheMetrics(hits=self.counters.cache_hits, misses=self.counters.cache_misses)

    def get_system_status(self) -> SystemStatus:
        """Health, pool, cache and counters in one snapshot."""
        now = self._clock()
        return SystemStatus(
            health=self.get_database_health(),
            connections=self.get_connection_pool_metrics(),
            cache=self.get_cache_metrics(),
            counters=MonitorCounters(**self.counters.to_dict()),
            uptime_seconds=now - self._started_at,
            timestamp=now,
        )

    # Maintenance

    def cleanup_expired(self) -> int:
        """Drop metrics older than the retention window; returns how many."""
        cutoff = self._clock() - self.config.retention_seconds
        kept = [m for m in self._history if m.timestamp > cutoff]
        removed = len(self._history) - len(kept)
        if removed:
            self._history = deque(kept, maxlen=self.config.max_history)
            logger.debug(f"Pruned {removed} expired query metrics")
        return removed

    def reset_metrics(self) -> None:
        """Forget all history and counters."""
        self._history.clear()
        self.counters = MonitorCounters()
        logger.info("Query monitor metrics reset")

    async def _run_cleanup(self) -> None:
        self.cleanup_expired()

    async def _log_health(self) -> None:
        health = self.get_database_health()
        if health.status == HealthStatus.CRITICAL:
            logger.error(
                f"Database health critical (score {health.score:.1f}): {health.recommendations}"
            )
        elif health.status == HealthStatus.WARNING:
            logger.warning(
                f"Database health warning (score {health.score:.1f}): {health.recommendations}"
            )
        else:
            logger.debug(f"Database health ok (score {health.score:.1f})")

    @staticmethod
    def _elapsed_ms(start: float) -> float:
        return (time.perf_counter() - start) * 1000
