"""Pool protocols for neo-dbpool."""

from abc import abstractmethod
from typing import Any, AsyncContextManager, Mapping, Protocol, Sequence, runtime_checkable


@runtime_checkable
class ConnectionFactory(Protocol):
    """Protocol for the database driver seam used by the pool."""

    @abstractmethod
    async def create(self, url: str, timeout: float) -> Any:
        """Open a driver client against ``url`` and verify it is alive."""
        ...

    @abstractmethod
    async def ping(self, client: Any, timeout: float) -> None:
        """Issue a trivial liveness query; raise on failure."""
        ...

    @abstractmethod
    async def close(self, client: Any) -> None:
        """Close a driver client."""
        ...

    @abstractmethod
    def transaction(self, client: Any) -> AsyncContextManager[Any]:
        """Return an async context manager wrapping a driver transaction."""
        ...


@runtime_checkable
class LoadBalancer(Protocol):
    """Protocol for choosing the target URL of a new read connection."""

    @abstractmethod
    def select(self, targets: Sequence[str], loads: Mapping[str, int]) -> str:
        """Pick one of ``targets``.

        Args:
            targets: Candidate URLs (never empty)
            loads: Live connection count per URL
        """
        ...
