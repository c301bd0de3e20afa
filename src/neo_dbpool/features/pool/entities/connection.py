"""Pooled connection entity for neo-dbpool."""

from dataclasses import dataclass, field
from typing import Any, Dict
from uuid import uuid4

from ....config.constants import ConnectionRole, UNHEALTHY_ERROR_THRESHOLD
from ..utils.connection_factory import mask_url


def generate_connection_id(role: ConnectionRole) -> str:
    """Build a unique, role-prefixed connection id."""
    return f"{role.value}_{uuid4().hex[:12]}"


@dataclass(eq=False)
class PooledConnection:
    """A live driver connection owned by the pool's registry.

    Timestamps come from the pool's clock (monotonic seconds by default).
    ``in_use`` is toggled only by acquire/release, never inferred from
    timestamps.
    """

    id: str
    role: ConnectionRole
    target_url: str
    client: Any = field(repr=False)

    created_at: float = 0.0
    last_used: float = 0.0

    in_use: bool = False
    is_healthy: bool = True
    error_count: int = 0
    total_queries: int = 0
    avg_response_time_ms: float = 0.0

    def idle_for(self, now: float) -> float:
        """Seconds since the connection was last used."""
        return max(0.0, now - self.last_used)

    def record_success(self, response_time_ms: float) -> None:
        """Fold a successful query into the rolling average."""
        self.total_queries += 1
        self.avg_response_time_ms = (
            (self.avg_response_time_ms * (self.total_queries - 1) + response_time_ms)
            / self.total_queries
        )

    def record_failure(self) -> None:
        """Count a failed query; too many marks the connection unhealthy."""
        self.error_count += 1
        if self.error_count > UNHEALTHY_ERROR_THRESHOLD:
            self.is_healthy = False

    def record_probe_success(self) -> None:
        """Gradual recovery: one successful probe forgives one error."""
        self.error_count = max(0, self.error_count - 1)
        self.is_healthy = True

    def record_probe_failure(self) -> None:
        """A failed probe always marks the connection unhealthy."""
        self.error_count += 1
        self.is_healthy = False

    @property
    def safe_target(self) -> str:
        """Target URL without credentials, for logging."""
        return mask_url(self.target_url)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "role": self.role.value,
            "target": self.safe_target,
            "created_at": self.created_at,
            "last_used": self.last_used,
            "in_use": self.in_use,
            "is_healthy": self.is_healthy,
            "error_count": self.error_count,
            "total_queries": self.total_queries,
            "avg_response_time_ms": round(self.avg_response_time_ms, 3),
        }
