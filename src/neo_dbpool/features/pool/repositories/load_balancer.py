"""Replica selection strategies for new read connections."""

import logging
import random
from typing import Mapping, Optional, Sequence

from ....config.constants import LoadBalancingStrategy
from ..entities.protocols import LoadBalancer

logger = logging.getLogger(__name__)


class RandomLoadBalancer(LoadBalancer):
    """Uniform random choice among replicas."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def select(self, targets: Sequence[str], loads: Mapping[str, int]) -> str:
        return self._rng.choice(list(targets))


class RoundRobinLoadBalancer(LoadBalancer):
    """Cycle through replicas in configuration order."""

    def __init__(self):
        self._index = 0

    def select(self, targets: Sequence[str], loads: Mapping[str, int]) -> str:
        selected = targets[self._index % len(targets)]
        self._index = (self._index + 1) % len(targets)
        return selected


class LeastLoadedLoadBalancer(LoadBalancer):
    """Pick the replica with the fewest live connections (first one on ties)."""

    def select(self, targets: Sequence[str], loads: Mapping[str, int]) -> str:
        return min(targets, key=lambda target: loads.get(target, 0))


def create_load_balancer(strategy: LoadBalancingStrategy) -> LoadBalancer:
    """Build the load balancer for a configured strategy."""
    strategy = LoadBalancingStrategy(strategy)
    if strategy == LoadBalancingStrategy.ROUND_ROBIN:
        balancer: LoadBalancer = RoundRobinLoadBalancer()
    elif strategy == LoadBalancingStrategy.LEAST_LOADED:
        balancer = LeastLoadedLoadBalancer()
    else:
        balancer = RandomLoadBalancer()
    logger.debug(f"Using {type(balancer).__name__} for read replica selection")
    return balancer
