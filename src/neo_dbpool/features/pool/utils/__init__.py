"""Connection pool utilities."""

from .connection_factory import AsyncpgConnectionFactory, mask_url
from .validation import validate_pool_configuration, validate_positive_timeouts, validate_routing

__all__ = [
    "AsyncpgConnectionFactory",
    "mask_url",
    "validate_pool_configuration",
    "validate_positive_timeouts",
    "validate_routing",
]
