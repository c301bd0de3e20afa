"""Query monitoring services."""

from .query_monitor import QueryMonitor

__all__ = ["QueryMonitor"]
