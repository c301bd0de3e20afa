"""FIFO queue of callers waiting for a pooled connection.

One sub-queue per role, so read contention never starves write waiters
(and vice versa). Every entry owns a deadline timer; when it fires the
entry is removed and its caller rejected, whether or not a connection is
ever released.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, Optional

from ....config.constants import ConnectionRole
from ....core.exceptions.database import AcquisitionTimeoutError, PoolExhaustedError

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class WaitingRequest:
    """A caller suspended in ``acquire`` until a connection is handed over."""

    role: ConnectionRole
    deadline: float
    enqueued_at: float
    timeout_seconds: float
    future: asyncio.Future = field(repr=False)
    timer: Optional[asyncio.TimerHandle] = field(default=None, repr=False)

    @property
    def is_pending(self) -> bool:
        return not self.future.done()

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


class AcquisitionQueue:
    """Per-role FIFO of WaitingRequests with deadlines and a depth cap."""

    def __init__(
        self,
        max_depth: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._max_depth = max_depth
        self._clock = clock
        self._queues: Dict[ConnectionRole, Deque[WaitingRequest]] = {
            role: deque() for role in ConnectionRole
        }
        self.expired_count = 0

    def __len__(self) -> int:
        return sum(len(q) for q in self._queues.values())

    def pending_count(self, role: Optional[ConnectionRole] = None) -> int:
        """Number of queued requests, overall or for one role."""
        if role is None:
            return len(self)
        return len(self._queues[role])

    def has_waiters(self, role: ConnectionRole) -> bool:
        return bool(self._queues[role])

    def oldest_waiting_role(self) -> Optional[ConnectionRole]:
        """Role of the request that has waited longest, if any."""
        heads = [q[0] for q in self._queues.values() if q]
        if not heads:
            return None
        return min(heads, key=lambda r: r.enqueued_at).role

    def enqueue(self, role: ConnectionRole, timeout_seconds: float) -> WaitingRequest:
        """Queue a new request and arm its deadline timer.

        Raises:
            PoolExhaustedError: If the queue is already at its maximum depth
        """
        depth = len(self)
        if self._max_depth is not None and depth >= self._max_depth:
            raise PoolExhaustedError(role.value, depth)

        loop = asyncio.get_running_loop()
        now = self._clock()
        request = WaitingRequest(
            role=role,
            deadline=now + timeout_seconds,
            enqueued_at=now,
            timeout_seconds=timeout_seconds,
            future=loop.create_future(),
        )
        request.timer = loop.call_later(timeout_seconds, self._expire, request)
        self._queues[role].append(request)
        return request

    def fulfill(self, role: ConnectionRole, connection: Any) -> bool:
        """Hand ``connection`` to the oldest pending request of ``role``.

        Returns:
            True if a waiter received the connection
        """
        queue = self._queues[role]
        while queue:
            request = queue.popleft()
            request.cancel_timer()
            if request.is_pending:
                request.future.set_result(connection)
                return True
        return False

    def remove(self, request: WaitingRequest) -> bool:
        """Drop a request (used when its caller is cancelled)."""
        request.cancel_timer()
        try:
            self._queues[request.role].remove(request)
        except ValueError:
            return False
        return True

    def expire_overdue(self, now: Optional[float] = None) -> int:
        """Reject every request whose deadline has passed.

        Backstop for deadline timers that fired late or not at all.

        Returns:
            Number of requests rejected
        """
        now = self._clock() if now is None else now
        expired = 0
        for queue in self._queues.values():
            for request in [r for r in queue if r.deadline <= now]:
                if self._reject(request):
                    expired += 1
        return expired

    def _expire(self, request: WaitingRequest) -> None:
        request.timer = None
        self._reject(request)

    def _reject(self, request: WaitingRequest) -> bool:
        if not self.remove(request):
            return False
        if not request.is_pending:
            return False
        self.expired_count += 1
        logger.warning(
            f"Connection acquisition timeout for {request.role.value} "
            f"after {request.timeout_seconds}s"
        )
        request.future.set_exception(
            AcquisitionTimeoutError(request.role.value, request.timeout_seconds)
        )
        return True
