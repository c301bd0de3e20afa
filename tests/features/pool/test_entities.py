"""Tests for pool configuration and connection entities."""

import pytest

from neo_dbpool.config.constants import ConnectionRole, LoadBalancingStrategy
from neo_dbpool.features.pool.entities.config import CircuitBreakerConfig, PoolConfig
from neo_dbpool.features.pool.entities.connection import PooledConnection
from neo_dbpool.features.pool.utils.connection_factory import mask_url


def make_connection(**overrides):
    values = dict(
        id="read_abc",
        role=ConnectionRole.READ,
        target_url="postgresql://app:secret@db:5432/app",
        client=object(),
    )
    values.update(overrides)
    return PooledConnection(**values)


class TestPoolConfig:

    def test_defaults(self):
        config = PoolConfig(write_url="postgresql://db/app")

        assert config.min_connections == 5
        assert config.max_connections == 20
        assert config.circuit_breaker.failure_threshold == 5
        assert not config.uses_read_replicas

    @pytest.mark.parametrize(
        "overrides",
        [
            {"min_connections": -1},
            {"max_connections": 0},
            {"min_connections": 5, "max_connections": 2},
            {"max_queue_depth": 0},
            {"acquire_timeout_seconds": 0},
            {"health_check_timeout_seconds": -1},
        ],
    )
    def test_rejects_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            PoolConfig(**overrides)

    def test_rejects_blank_replica_url(self):
        with pytest.raises(ValueError):
            PoolConfig(enable_read_replicas=True, read_replica_urls=["postgresql://r1/app", " "])

    def test_normalizes_lists_and_strategy_names(self):
        config = PoolConfig(
            enable_read_replicas=True,
            read_replica_urls=["postgresql://r1/app"],
            load_balancing="round_robin",
        )

        assert config.read_replica_urls == ("postgresql://r1/app",)
        assert config.load_balancing == LoadBalancingStrategy.ROUND_ROBIN
        assert config.uses_read_replicas

    def test_replicas_ignored_unless_enabled(self):
        config = PoolConfig(read_replica_urls=["postgresql://r1/app"])

        assert not config.uses_read_replicas

    def test_to_dict_leaves_out_urls(self):
        data = PoolConfig(write_url="postgresql://app:secret@db/app").to_dict()

        assert "write_url" not in data
        assert "secret" not in str(data)

    def test_circuit_breaker_config_validation(self):
        with pytest.raises(ValueError):
            CircuitBreakerConfig(failure_threshold=0)
        with pytest.raises(ValueError):
            CircuitBreakerConfig(reset_timeout_seconds=0)


class TestPooledConnection:

    def test_rolling_average(self):
        conn = make_connection()

        conn.record_success(10.0)
        conn.record_success(20.0)
        conn.record_success(60.0)

        assert conn.total_queries == 3
        assert conn.avg_response_time_ms == pytest.approx(30.0)

    def test_unhealthy_after_more_than_five_errors(self):
        conn = make_connection()

        for _ in range(5):
            conn.record_failure()
        assert conn.is_healthy

        conn.record_failure()
        assert not conn.is_healthy

    def test_probe_recovery_never_goes_negative(self):
        conn = make_connection(is_healthy=False)

        conn.record_probe_success()

        assert conn.error_count == 0
        assert conn.is_healthy

    def test_probe_failure_is_immediately_unhealthy(self):
        conn = make_connection()

        conn.record_probe_failure()

        assert conn.error_count == 1
        assert not conn.is_healthy

    def test_idle_for(self):
        conn = make_connection(last_used=100.0)

        assert conn.idle_for(130.0) == 30.0
        assert conn.idle_for(90.0) == 0.0

    def test_to_dict_masks_password(self):
        data = make_connection().to_dict()

        assert data["target"] == "postgresql://app:***@db:5432/app"
        assert data["role"] == "read"


class TestMaskUrl:

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("postgresql://app:secret@db:5432/app", "postgresql://app:***@db:5432/app"),
            ("postgresql://db/app", "postgresql://db/app"),
            ("", "<unset>"),
        ],
    )
    def test_mask_url(self, url, expected):
        assert mask_url(url) == expected
