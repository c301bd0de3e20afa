"""Configuration module for neo-dbpool.

Settings classes live in ``neo_dbpool.config.settings`` and are imported
from there directly; this package only exposes constants and logging.
"""

from .constants import *

from .logging_config import (
    setup_logging,
    LogLevel,
    LogVerbosity,
    LogFormat,
    LoggingOptions,
    LoggingConfig,
)
