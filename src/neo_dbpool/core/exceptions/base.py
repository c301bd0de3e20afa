"""Base exceptions for neo-dbpool.

All exceptions inherit from NeoPoolError and carry an error code and
structured details so callers (for example an admin dashboard) can report
them without parsing messages.
"""

from typing import Any, Dict, Optional


class NeoPoolError(Exception):
    """Base exception for all neo-dbpool errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Standardized error representation."""
        return {
            "code": self.error_code,
            "message": self.message,
            "details": self.details,
            "type": self.__class__.__name__,
        }
