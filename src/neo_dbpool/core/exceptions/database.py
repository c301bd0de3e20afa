"""Database-related exceptions for neo-dbpool."""

from typing import Optional

from .base import NeoPoolError


class DatabaseError(NeoPoolError):
    """Base class for database-related errors."""
    pass


class ConnectionPoolError(DatabaseError):
    """Base class for connection pool errors."""
    pass


class ConnectionCreationError(ConnectionPoolError):
    """Raised when the driver connect or the initial liveness check fails."""

    def __init__(self, role: str, target: str, reason: str = ""):
        self.role = role
        self.target = target
        self.reason = reason
        message = f"Failed to create {role} connection to {target}"
        if reason:
            message += f": {reason}"
        super().__init__(message, details={"role": role, "target": target})


class AcquisitionTimeoutError(ConnectionPoolError):
    """Raised when a waiting acquisition request passes its deadline."""

    def __init__(self, role: str, timeout_seconds: float):
        self.role = role
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Connection acquisition timeout for {role} after {timeout_seconds}s",
            details={"role": role, "timeout_seconds": timeout_seconds},
        )


class PoolExhaustedError(ConnectionPoolError):
    """Raised when the waiting queue is full and no connection can be handed out."""

    def __init__(self, role: str, queue_depth: int):
        self.role = role
        self.queue_depth = queue_depth
        super().__init__(
            f"Connection pool exhausted: {queue_depth} requests already waiting ({role} requested)",
            details={"role": role, "queue_depth": queue_depth},
        )


class PoolClosedError(ConnectionPoolError):
    """Raised when an acquisition is attempted on a pool that is shutting down."""

    def __init__(self, message: str = "Connection pool is shut down"):
        super().__init__(message)


class CircuitOpenError(DatabaseError):
    """Raised when the circuit breaker rejects a call without attempting it."""

    def __init__(self, name: str, retry_after_seconds: Optional[float] = None):
        self.name = name
        self.retry_after_seconds = retry_after_seconds
        message = f"Circuit breaker '{name}' is OPEN"
        if retry_after_seconds is not None:
            message += f", retry after {retry_after_seconds:.1f}s"
        super().__init__(
            message,
            details={"breaker": name, "retry_after_seconds": retry_after_seconds},
        )


class QueryError(DatabaseError):
    """Base class for query execution errors."""
    pass


class QueryTimeoutError(QueryError):
    """Raised when a query does not finish within its timeout."""

    def __init__(self, query_name: str, timeout_seconds: float):
        self.query_name = query_name
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Query timeout: {query_name} after {timeout_seconds}s",
            details={"query_name": query_name, "timeout_seconds": timeout_seconds},
        )


class QueryExecutionError(QueryError):
    """Raised when the wrapped query operation itself fails."""

    def __init__(self, query_name: str, error: BaseException):
        self.query_name = query_name
        self.original_error = error
        super().__init__(
            f"Query '{query_name}' failed: {error}",
            details={"query_name": query_name, "error_type": type(error).__name__},
        )
