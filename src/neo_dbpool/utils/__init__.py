"""Shared utilities for neo-dbpool."""

from .periodic import PeriodicTask

__all__ = ["PeriodicTask"]
