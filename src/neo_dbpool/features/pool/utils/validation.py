"""Pool validation utilities shared by the configuration entities."""

from typing import Optional, Sequence


def validate_pool_configuration(
    min_connections: int,
    max_connections: int,
    max_queue_depth: Optional[int] = None,
) -> None:
    """Validate pool sizing parameters.

    Args:
        min_connections: Connections kept warm
        max_connections: Hard ceiling on live connections
        max_queue_depth: Cap on queued acquisitions (None disables the cap)

    Raises:
        ValueError: If validation fails
    """
    if min_connections < 0:
        raise ValueError("min_connections must be >= 0")

    if max_connections < 1:
        raise ValueError("max_connections must be >= 1")

    if max_connections < min_connections:
        raise ValueError("max_connections must be >= min_connections")

    if max_queue_depth is not None and max_queue_depth < 1:
        raise ValueError("max_queue_depth must be >= 1 when set")


def validate_positive_timeouts(**timeouts: float) -> None:
    """Validate that every named timeout is strictly positive.

    Raises:
        ValueError: Naming the first offending timeout
    """
    for name, value in timeouts.items():
        if value is None or value <= 0:
            raise ValueError(f"{name} must be > 0")


def validate_routing(write_url: str, enable_read_replicas: bool, read_replica_urls: Sequence[str]) -> None:
    """Validate read/write routing targets.

    Raises:
        ValueError: If a URL is blank
    """
    if write_url and not write_url.strip():
        raise ValueError("write_url cannot be blank")

    if enable_read_replicas:
        for url in read_replica_urls:
            if not url or not url.strip():
                raise ValueError("read_replica_urls cannot contain empty entries")
