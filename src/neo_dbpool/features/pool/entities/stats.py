"""Pool statistics value objects."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ....config.constants import CircuitState


@dataclass(frozen=True)
class CircuitBreakerState:
    """Point-in-time view of a circuit breaker."""

    state: CircuitState
    failure_count: int
    last_failure_time: Optional[float]
    trip_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "failure_count": self.failure_count,
            "last_failure_time": self.last_failure_time,
            "trip_count": self.trip_count,
        }


@dataclass(frozen=True)
class PoolStats:
    """Point-in-time snapshot of a ConnectionPool."""

    active: int
    idle: int
    pending: int
    total: int
    max_connections: int
    utilization: float
    errors: int
    avg_response_time_ms: float

    # Lifetime counters
    connections_created: int = 0
    connections_destroyed: int = 0
    acquired_connections: int = 0
    handoffs: int = 0
    failed_acquisitions: int = 0
    timeouts: int = 0
    circuit_state: CircuitState = CircuitState.CLOSED
    circuit_breaker_trips: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active": self.active,
            "idle": self.idle,
            "pending": self.pending,
            "total": self.total,
            "max_connections": self.max_connections,
            "utilization": round(self.utilization, 2),
            "errors": self.errors,
            "avg_response_time_ms": round(self.avg_response_time_ms, 3),
            "connections_created": self.connections_created,
            "connections_destroyed": self.connections_destroyed,
            "acquired_connections": self.acquired_connections,
            "handoffs": self.handoffs,
            "failed_acquisitions": self.failed_acquisitions,
            "timeouts": self.timeouts,
            "circuit_state": self.circuit_state.value,
            "circuit_breaker_trips": self.circuit_breaker_trips,
        }


@dataclass(frozen=True)
class HealthCheckSummary:
    """Outcome of one health-check pass over the registry."""

    healthy: int
    unhealthy: int
    total: int
    evicted: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "healthy": self.healthy,
            "unhealthy": self.unhealthy,
            "total": self.total,
            "evicted": self.evicted,
        }


@dataclass(frozen=True)
class ReapResult:
    """Outcome of one reaper pass."""

    evicted_connections: int
    expired_requests: int
