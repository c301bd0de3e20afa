"""Query monitoring utilities.

``with_monitoring`` lives in ``utils.monitoring`` and is exported from the
feature package, since it depends on the QueryMonitor service.
"""

from .health_scoring import (
    calculate_health_score,
    calculate_penalties,
    generate_health_recommendations,
    health_status_for,
)

__all__ = [
    "calculate_health_score",
    "calculate_penalties",
    "generate_health_recommendations",
    "health_status_for",
]
