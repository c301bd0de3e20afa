"""Background task that runs an async action on a fixed interval."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Run ``action`` every ``interval`` seconds until stopped.

    The first run happens one interval after ``start()``. Errors raised by
    the action are logged and the loop keeps going.
    """

    def __init__(
        self,
        name: str,
        action: Callable[[], Awaitable[object]],
        interval: float,
    ):
        self.name = name
        self.interval = interval
        self._action = action
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the loop; a no-op if it is already running."""
        if not self.is_running:
            self._stop_event.clear()
            self._task = asyncio.create_task(self._run_loop(), name=self.name)
            logger.debug(f"Started periodic task '{self.name}' every {self.interval}s")

    async def stop(self, timeout: float = 5.0) -> None:
        """Signal the loop to stop and wait for it, cancelling if it hangs."""
        self._stop_event.set()

        if self._task and not self._task.done():
            try:
                await asyncio.wait_for(self._task, timeout=timeout)
            except asyncio.TimeoutError:
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    pass
        self._task = None

        logger.debug(f"Stopped periodic task '{self.name}'")

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
                break  # Stop event was set
            except asyncio.TimeoutError:
                pass

            try:
                await self._action()
            except Exception as e:
                logger.error(f"Error in periodic task '{self.name}': {e}")
