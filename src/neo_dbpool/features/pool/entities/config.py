"""Pool configuration entities for neo-dbpool."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from ....config.constants import DEFAULT_MAX_QUEUE_DEPTH, LoadBalancingStrategy
from ..utils.validation import (
    validate_pool_configuration,
    validate_positive_timeouts,
    validate_routing,
)


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Thresholds for the pool's circuit breaker."""

    failure_threshold: int = 5              # failures inside the window that open the circuit
    reset_timeout_seconds: float = 60.0     # how long the circuit stays open
    monitoring_window_seconds: float = 300.0  # failures older than this are forgotten

    def __post_init__(self):
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        validate_positive_timeouts(
            reset_timeout_seconds=self.reset_timeout_seconds,
            monitoring_window_seconds=self.monitoring_window_seconds,
        )


@dataclass(frozen=True)
class PoolConfig:
    """Immutable configuration for a ConnectionPool.

    Timeouts and intervals are in seconds.
    """

    # Sizing
    min_connections: int = 5
    max_connections: int = 20
    max_queue_depth: Optional[int] = DEFAULT_MAX_QUEUE_DEPTH

    # Timeouts
    acquire_timeout_seconds: float = 30.0
    create_timeout_seconds: float = 30.0
    idle_timeout_seconds: float = 30.0
    reap_interval_seconds: float = 10.0

    # Routing
    write_url: str = ""
    enable_read_replicas: bool = False
    read_replica_urls: Tuple[str, ...] = ()
    load_balancing: LoadBalancingStrategy = LoadBalancingStrategy.RANDOM

    # Health probing
    health_check_interval_seconds: float = 60.0
    health_check_timeout_seconds: float = 5.0

    circuit_breaker: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)

    def __post_init__(self):
        """Validate configuration after initialization."""
        validate_pool_configuration(
            self.min_connections,
            self.max_connections,
            self.max_queue_depth,
        )
        validate_positive_timeouts(
            acquire_timeout_seconds=self.acquire_timeout_seconds,
            create_timeout_seconds=self.create_timeout_seconds,
            idle_timeout_seconds=self.idle_timeout_seconds,
            reap_interval_seconds=self.reap_interval_seconds,
            health_check_interval_seconds=self.health_check_interval_seconds,
            health_check_timeout_seconds=self.health_check_timeout_seconds,
        )
        validate_routing(self.write_url, self.enable_read_replicas, self.read_replica_urls)

        # Lists are accepted for convenience but stored as tuples
        if not isinstance(self.read_replica_urls, tuple):
            object.__setattr__(self, "read_replica_urls", tuple(self.read_replica_urls))
        if not isinstance(self.load_balancing, LoadBalancingStrategy):
            object.__setattr__(self, "load_balancing", LoadBalancingStrategy(self.load_balancing))

    @property
    def uses_read_replicas(self) -> bool:
        """Whether read connections are routed to replicas."""
        return self.enable_read_replicas and bool(self.read_replica_urls)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (URLs are not included)."""
        return {
            "min_connections": self.min_connections,
            "max_connections": self.max_connections,
            "max_queue_depth": self.max_queue_depth,
            "acquire_timeout_seconds": self.acquire_timeout_seconds,
            "create_timeout_seconds": self.create_timeout_seconds,
            "idle_timeout_seconds": self.idle_timeout_seconds,
            "reap_interval_seconds": self.reap_interval_seconds,
            "enable_read_replicas": self.enable_read_replicas,
            "read_replica_count": len(self.read_replica_urls),
            "load_balancing": self.load_balancing.value,
            "health_check_interval_seconds": self.health_check_interval_seconds,
            "health_check_timeout_seconds": self.health_check_timeout_seconds,
            "circuit_breaker": {
                "failure_threshold": self.circuit_breaker.failure_threshold,
                "reset_timeout_seconds": self.circuit_breaker.reset_timeout_seconds,
                "monitoring_window_seconds": self.circuit_breaker.monitoring_window_seconds,
            },
        }
