"""Connection pool services."""

from .pool_service import ConnectionPool, BatchResult, create_database_layer

__all__ = ["ConnectionPool", "BatchResult", "create_database_layer"]
