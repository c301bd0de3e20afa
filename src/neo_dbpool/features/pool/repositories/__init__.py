"""Connection pool repositories - concrete building blocks used by ConnectionPool."""

from .acquisition_queue import AcquisitionQueue, WaitingRequest
from .circuit_breaker import CircuitBreaker
from .connection_registry import ConnectionRegistry
from .health_prober import ConnectionHealthProber
from .load_balancer import (
    RandomLoadBalancer,
    RoundRobinLoadBalancer,
    LeastLoadedLoadBalancer,
    create_load_balancer,
)
from .reaper import ConnectionReaper

__all__ = [
    "AcquisitionQueue",
    "WaitingRequest",
    "CircuitBreaker",
    "ConnectionRegistry",
    "ConnectionHealthProber",
    "RandomLoadBalancer",
    "RoundRobinLoadBalancer",
    "LeastLoadedLoadBalancer",
    "create_load_balancer",
    "ConnectionReaper",
]
