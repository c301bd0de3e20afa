"""Tests for the exception hierarchy."""

import pytest

from neo_dbpool.core.exceptions import (
    AcquisitionTimeoutError,
    CircuitOpenError,
    ConnectionCreationError,
    ConnectionPoolError,
    DatabaseError,
    NeoPoolError,
    PoolClosedError,
    PoolExhaustedError,
    QueryError,
    QueryExecutionError,
    QueryTimeoutError,
)


class TestExceptions:

    @pytest.mark.parametrize(
        "error,parent",
        [
            (ConnectionCreationError("read", "postgresql://db/app"), ConnectionPoolError),
            (AcquisitionTimeoutError("write", 30), ConnectionPoolError),
            (PoolExhaustedError("read", 1000), ConnectionPoolError),
            (PoolClosedError(), ConnectionPoolError),
            (CircuitOpenError("database-pool"), DatabaseError),
            (QueryTimeoutError("users.list", 30), QueryError),
            (QueryExecutionError("users.list", RuntimeError("boom")), QueryError),
        ],
    )
    def test_hierarchy(self, error, parent):
        assert isinstance(error, parent)
        assert isinstance(error, NeoPoolError)

    def test_to_dict(self):
        error = AcquisitionTimeoutError("write", 30)

        assert error.to_dict() == {
            "code": "AcquisitionTimeoutError",
            "message": "Connection acquisition timeout for write after 30s",
            "details": {"role": "write", "timeout_seconds": 30},
            "type": "AcquisitionTimeoutError",
        }

    def test_creation_error_message(self):
        error = ConnectionCreationError("read", "postgresql://app:***@db/app", "refused")

        assert str(error) == "Failed to create read connection to postgresql://app:***@db/app: refused"

    def test_circuit_open_retry_hint(self):
        assert "retry after 12.5s" in str(CircuitOpenError("database-pool", 12.5))
        assert CircuitOpenError("database-pool").retry_after_seconds is None

    def test_execution_error_keeps_original(self):
        original = RuntimeError("boom")
        error = QueryExecutionError("users.list", original)

        assert error.original_error is original
        assert error.details["error_type"] == "RuntimeError"
