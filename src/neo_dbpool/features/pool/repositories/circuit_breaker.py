"""Circuit breaker guarding pool operations.

Keeps the failure history for one class of operation and fast-fails calls
while the downstream is considered broken:

- CLOSED: calls pass; failures inside the monitoring window are counted and
  reaching the threshold opens the circuit
- OPEN: calls are rejected with CircuitOpenError until the reset timeout has
  elapsed since the last failure
- HALF_OPEN: a single trial call is let through; success closes the circuit,
  failure reopens it and restarts the cooldown
"""

import logging
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Optional, TypeVar

from ....config.constants import CircuitState
from ....core.exceptions.database import CircuitOpenError
from ..entities.config import CircuitBreakerConfig
from ..entities.stats import CircuitBreakerState

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitBreaker:
    """Failure-counting circuit breaker with a single-trial half-open state."""

    def __init__(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._failures: Deque[float] = deque()
        self._last_failure_time: Optional[float] = None
        self._trial_in_flight = False
        self._trip_count = 0

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def trip_count(self) -> int:
        return self._trip_count

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` under the breaker.

        Raises:
            CircuitOpenError: If the call is rejected without being attempted
            Exception: Whatever ``operation`` raises, after it is counted
        """
        is_trial = self._before_call()
        try:
            result = await operation()
        except BaseException as e:
            if isinstance(e, Exception):
                self._on_failure(is_trial)
            elif is_trial:
                # Cancelled trial: let the next caller try instead
                self._trial_in_flight = False
            raise

        self._on_success(is_trial)
        return result

    def get_state(self) -> CircuitBreakerState:
        """Snapshot of the breaker."""
        self._prune_failures()
        return CircuitBreakerState(
            state=self._state,
            failure_count=len(self._failures),
            last_failure_time=self._last_failure_time,
            trip_count=self._trip_count,
        )

    def reset(self) -> None:
        """Manually close the circuit and forget all failures."""
        if self._state != CircuitState.CLOSED:
            logger.info(f"Circuit breaker '{self.name}' manually reset to CLOSED")
        self._close()

    def _before_call(self) -> bool:
        """Admit or reject a call; returns True if it is the half-open trial."""
        if self._state == CircuitState.OPEN:
            elapsed = self._clock() - (self._last_failure_time or 0.0)
            if elapsed < self.config.reset_timeout_seconds:
                raise CircuitOpenError(
                    self.name,
                    retry_after_seconds=self.config.reset_timeout_seconds - elapsed,
                )
            self._state = CircuitState.HALF_OPEN
            logger.info(f"Circuit breaker '{self.name}' transitioned to HALF_OPEN")

        if self._state == CircuitState.HALF_OPEN:
            if self._trial_in_flight:
                raise CircuitOpenError(self.name)
            self._trial_in_flight = True
            return True

        return False

    def _on_success(self, is_trial: bool) -> None:
        if is_trial:
            logger.info(f"Circuit breaker '{self.name}' trial succeeded, transitioned to CLOSED")
            self._close()

    def _on_failure(self, is_trial: bool) -> None:
        now = self._clock()
        self._last_failure_time = now
        self._failures.append(now)
        self._prune_failures(now)

        if is_trial:
            self._trial_in_flight = False
            self._open("trial call failed")
        elif self._state == CircuitState.CLOSED and len(self._failures) >= self.config.failure_threshold:
            self._open(f"{len(self._failures)} failures within {self.config.monitoring_window_seconds}s")

    def _open(self, reason: str) -> None:
        self._state = CircuitState.OPEN
        self._trip_count += 1
        logger.warning(
            f"Circuit breaker '{self.name}' transitioned to OPEN ({reason}), "
            f"retry in {self.config.reset_timeout_seconds}s"
        )

    def _close(self) -> None:
        self._state = CircuitState.CLOSED
        self._failures.clear()
        self._trial_in_flight = False

    def _prune_failures(self, now: Optional[float] = None) -> None:
        now = self._clock() if now is None else now
        cutoff = now - self.config.monitoring_window_seconds
        while self._failures and self._failures[0] < cutoff:
            self._failures.popleft()
