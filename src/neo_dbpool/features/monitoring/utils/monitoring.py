"""Helpers for running functions under a QueryMonitor."""

import functools
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ..services.query_monitor import QueryMonitor

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def with_monitoring(
    monitor: QueryMonitor,
    query_name: str,
    fn: F,
    retries: int = 3,
    timeout: float = 30.0,
) -> F:
    """Wrap coroutine function ``fn`` so every call goes through ``monitored_query``."""

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        return await monitor.monitored_query(
            query_name,
            lambda: fn(*args, **kwargs),
            retries=retries,
            timeout=timeout,
        )

    return wrapper  # type: ignore[return-value]


def monitored(
    monitor: QueryMonitor,
    name: Optional[str] = None,
    retries: int = 3,
    timeout: float = 30.0,
) -> Callable[[F], F]:
    """Decorator form of ``with_monitoring``; the name defaults to the function's."""

    def decorator(fn: F) -> F:
        query_name = name or f"{fn.__module__}.{fn.__qualname__}"
        return with_monitoring(monitor, query_name, fn, retries=retries, timeout=timeout)

    return decorator
