"""Health score rules for the query monitor.

Pure functions over ConnectionMetrics so the scoring can be tested without
a monitor or a pool.
"""

from dataclasses import dataclass
from typing import List

from ....config.constants import (
    HEALTHY_SCORE,
    HIGH_UTILIZATION_PERCENT,
    HealthStatus,
    LATENCY_BASELINE_MS,
    MAX_LATENCY_PENALTY,
    WARNING_SCORE,
)
from ..entities.metrics import ConnectionMetrics


@dataclass(frozen=True)
class ScorePenalties:
    """Points subtracted from a perfect score, per rule."""

    error_rate: float = 0.0
    slow_queries: float = 0.0
    utilization: float = 0.0
    latency: float = 0.0

    @property
    def total(self) -> float:
        return self.error_rate + self.slow_queries + self.utilization + self.latency


def calculate_penalties(metrics: ConnectionMetrics) -> ScorePenalties:
    """Break the score deductions down by rule."""
    slow = 0.0
    if metrics.query_count:
        slow = metrics.slow_query_count / metrics.query_count * 30

    utilization = 0.0
    if metrics.pool_utilization > HIGH_UTILIZATION_PERCENT:
        utilization = (metrics.pool_utilization - HIGH_UTILIZATION_PERCENT) * 2

    latency = 0.0
    if metrics.average_query_time_ms > LATENCY_BASELINE_MS:
        latency = min(
            (metrics.average_query_time_ms - LATENCY_BASELINE_MS) / 10,
            MAX_LATENCY_PENALTY,
        )

    return ScorePenalties(
        error_rate=metrics.error_rate * 2,
        slow_queries=slow,
        utilization=utilization,
        latency=latency,
    )


def calculate_health_score(metrics: ConnectionMetrics) -> float:
    """Score in [0, 100]; 100 means no penalty applied."""
    score = 100.0 - calculate_penalties(metrics).total
    return max(0.0, min(100.0, score))


def health_status_for(score: float) -> HealthStatus:
    if score >= HEALTHY_SCORE:
        return HealthStatus.HEALTHY
    if score >= WARNING_SCORE:
        return HealthStatus.WARNING
    return HealthStatus.CRITICAL


def generate_health_recommendations(metrics: ConnectionMetrics, score: float) -> List[str]:
    """One recommendation per non-zero penalty, plus a notice for critical scores."""
    penalties = calculate_penalties(metrics)
    recommendations = []

    if penalties.error_rate > 0:
        recommendations.append(
            f"High error rate detected ({metrics.error_rate:.1f}%) - investigate failing queries"
        )
    if penalties.slow_queries > 0:
        recommendations.append(
            f"{metrics.slow_query_count} slow queries in the last minute - "
            f"consider adding indexes or optimizing queries"
        )
    if penalties.utilization > 0:
        recommendations.append(
            f"High connection pool utilization ({metrics.pool_utilization:.1f}%) - "
            f"consider scaling or query optimization"
        )
    if penalties.latency > 0:
        recommendations.append(
            f"Average query time {metrics.average_query_time_ms:.1f}ms exceeds "
            f"{LATENCY_BASELINE_MS:.0f}ms - review query plans"
        )
    if score < WARNING_SCORE:
        recommendations.append(
            "Critical performance issues detected - immediate attention required"
        )

    return recommendations
