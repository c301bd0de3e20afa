"""Tests for read replica selection strategies."""

import random

import pytest

from neo_dbpool.config.constants import LoadBalancingStrategy
from neo_dbpool.features.pool.repositories.load_balancer import (
    LeastLoadedLoadBalancer,
    RandomLoadBalancer,
    RoundRobinLoadBalancer,
    create_load_balancer,
)

REPLICAS = ["postgresql://r1/app", "postgresql://r2/app", "postgresql://r3/app"]


class TestLoadBalancers:

    def test_round_robin_cycles_in_order(self):
        balancer = RoundRobinLoadBalancer()

        picks = [balancer.select(REPLICAS, {}) for _ in range(4)]

        assert picks == REPLICAS + REPLICAS[:1]

    def test_least_loaded_prefers_fewest_connections(self):
        balancer = LeastLoadedLoadBalancer()
        loads = {REPLICAS[0]: 3, REPLICAS[1]: 1, REPLICAS[2]: 2}

        assert balancer.select(REPLICAS, loads) == REPLICAS[1]

    def test_least_loaded_breaks_ties_by_order(self):
        balancer = LeastLoadedLoadBalancer()

        assert balancer.select(REPLICAS, {REPLICAS[0]: 1}) == REPLICAS[1]

    def test_random_only_returns_configured_targets(self):
        balancer = RandomLoadBalancer(rng=random.Random(42))

        picks = {balancer.select(REPLICAS, {}) for _ in range(50)}

        assert picks <= set(REPLICAS)
        assert len(picks) > 1

    @pytest.mark.parametrize(
        "strategy,expected",
        [
            (LoadBalancingStrategy.RANDOM, RandomLoadBalancer),
            (LoadBalancingStrategy.ROUND_ROBIN, RoundRobinLoadBalancer),
            ("least_loaded", LeastLoadedLoadBalancer),
        ],
    )
    def test_factory(self, strategy, expected):
        assert isinstance(create_load_balancer(strategy), expected)
