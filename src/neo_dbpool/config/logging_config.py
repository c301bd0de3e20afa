"""Centralized logging configuration for neo-dbpool.

Verbosity and format come from environment variables:

- ``LOG_LEVEL``: explicit level, wins over ``LOG_VERBOSITY``
- ``LOG_VERBOSITY``: QUIET, NORMAL (default), VERBOSE or DEBUG
- ``LOG_FORMAT``: simple (default), detailed or json
- ``ENABLE_POOL_LOGGING``: surface acquire/release and eviction chatter at INFO
- ``ENABLE_SQL_LOGGING``: let asyncpg log below WARNING
"""

import logging
import logging.config
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class LogLevel(str, Enum):
    """Supported log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogVerbosity(str, Enum):
    """Log verbosity modes."""
    QUIET = "QUIET"      # Only errors and critical
    NORMAL = "NORMAL"    # Warnings and above
    VERBOSE = "VERBOSE"  # Info level logging
    DEBUG = "DEBUG"      # Full debug logging


class LogFormat(str, Enum):
    """Log format options."""
    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"


_VERBOSITY_LEVELS = {
    LogVerbosity.QUIET: LogLevel.ERROR,
    LogVerbosity.NORMAL: LogLevel.WARNING,
    LogVerbosity.VERBOSE: LogLevel.INFO,
    LogVerbosity.DEBUG: LogLevel.DEBUG,
}

_FORMATS = {
    LogFormat.SIMPLE: "%(asctime)s - %(levelname)s - %(message)s",
    LogFormat.DETAILED: "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
    LogFormat.JSON: '{"time":"%(asctime)s","level":"%(levelname)s","module":"%(name)s","message":"%(message)s"}',
}


def get_log_level_from_verbosity(verbosity: str) -> LogLevel:
    """Map a verbosity mode to a log level; unknown modes mean NORMAL."""
    try:
        return _VERBOSITY_LEVELS[LogVerbosity(verbosity.upper())]
    except ValueError:
        return LogLevel.WARNING


def _env_flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "false").lower() == "true"


@dataclass(frozen=True)
class LoggingOptions:
    """Resolved logging options."""

    level: LogLevel = LogLevel.WARNING
    format: LogFormat = LogFormat.SIMPLE
    pool_logging: bool = False
    sql_logging: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "LoggingOptions":
        env = os.environ if env is None else env

        explicit_level = env.get("LOG_LEVEL", "").upper()
        if explicit_level in LogLevel.__members__:
            level = LogLevel(explicit_level)
        else:
            level = get_log_level_from_verbosity(env.get("LOG_VERBOSITY", "NORMAL"))

        try:
            log_format = LogFormat(env.get("LOG_FORMAT", LogFormat.SIMPLE.value).lower())
        except ValueError:
            log_format = LogFormat.SIMPLE

        return cls(
            level=level,
            format=log_format,
            pool_logging=_env_flag(env, "ENABLE_POOL_LOGGING"),
            sql_logging=_env_flag(env, "ENABLE_SQL_LOGGING"),
        )


class LoggingConfig:
    """Builds and applies the dictConfig for neo-dbpool."""

    # Per-connection chatter (probes, reaps) stays quiet unless debugging
    DEFAULT_QUIET_MODULES = [
        "neo_dbpool.features.pool.repositories.health_prober",
        "neo_dbpool.features.pool.repositories.reaper",
    ]

    # Modules that should only log errors
    ERROR_ONLY_MODULES = [
        "asyncio",
    ]

    POOL_LOGGER = "neo_dbpool.features.pool"
    DRIVER_LOGGER = "asyncpg"

    @classmethod
    def build(cls, options: LoggingOptions) -> Dict[str, Any]:
        """Return the dictConfig for ``options`` without applying it."""
        level = options.level.value
        debugging = options.level == LogLevel.DEBUG
        loggers: Dict[str, Dict[str, str]] = {}

        for module in cls.DEFAULT_QUIET_MODULES:
            loggers[module] = {"level": "DEBUG" if debugging else "WARNING"}

        for module in cls.ERROR_ONLY_MODULES:
            loggers[module] = {"level": "ERROR"}

        if not options.sql_logging:
            loggers[cls.DRIVER_LOGGER] = {"level": "WARNING"}

        if options.pool_logging:
            loggers[cls.POOL_LOGGER] = {"level": "DEBUG" if debugging else "INFO"}

        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": _FORMATS[options.format],
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": level,
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {
                "level": level,
                "handlers": ["console"],
            },
            "loggers": loggers,
        }

    @classmethod
    def configure(cls, options: Optional[LoggingOptions] = None) -> LoggingOptions:
        """Apply ``options`` (read from the environment by default)."""
        options = options or LoggingOptions.from_env()
        logging.config.dictConfig(cls.build(options))

        logging.getLogger(__name__).debug(
            f"Logging configured: level={options.level.value}, format={options.format.value}"
        )
        return options


def setup_logging() -> None:
    """Setup logging configuration from environment variables.

    Called once when ``neo_dbpool`` is imported.
    """
    LoggingConfig.configure()

