"""Exception hierarchy for neo-dbpool."""

from .base import NeoPoolError
from .database import (
    DatabaseError,
    ConnectionPoolError,
    ConnectionCreationError,
    AcquisitionTimeoutError,
    PoolExhaustedError,
    PoolClosedError,
    CircuitOpenError,
    QueryError,
    QueryTimeoutError,
    QueryExecutionError,
)

__all__ = [
    "NeoPoolError",
    "DatabaseError",
    "ConnectionPoolError",
    "ConnectionCreationError",
    "AcquisitionTimeoutError",
    "PoolExhaustedError",
    "PoolClosedError",
    "CircuitOpenError",
    "QueryError",
    "QueryTimeoutError",
    "QueryExecutionError",
]
