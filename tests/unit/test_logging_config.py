"""Tests for the logging configuration."""

import pytest

from neo_dbpool.config.logging_config import (
    LogFormat,
    LoggingConfig,
    LoggingOptions,
    LogLevel,
    get_log_level_from_verbosity,
)


class TestLoggingOptions:

    def test_defaults(self):
        options = LoggingOptions.from_env({})

        assert options.level == LogLevel.WARNING
        assert options.format == LogFormat.SIMPLE
        assert not options.pool_logging
        assert not options.sql_logging

    def test_explicit_level_wins_over_verbosity(self):
        options = LoggingOptions.from_env({"LOG_LEVEL": "info", "LOG_VERBOSITY": "QUIET"})

        assert options.level == LogLevel.INFO

    def test_unknown_values_fall_back(self):
        options = LoggingOptions.from_env({"LOG_LEVEL": "LOUD", "LOG_FORMAT": "xml"})

        assert options.level == LogLevel.WARNING
        assert options.format == LogFormat.SIMPLE

    @pytest.mark.parametrize(
        "verbosity,level",
        [
            ("quiet", LogLevel.ERROR),
            ("NORMAL", LogLevel.WARNING),
            ("verbose", LogLevel.INFO),
            ("DEBUG", LogLevel.DEBUG),
            ("chatty", LogLevel.WARNING),
        ],
    )
    def test_verbosity_mapping(self, verbosity, level):
        assert get_log_level_from_verbosity(verbosity) == level


class TestLoggingConfig:

    def test_driver_quiet_unless_sql_logging(self):
        quiet = LoggingConfig.build(LoggingOptions())
        loud = LoggingConfig.build(LoggingOptions(sql_logging=True))

        assert quiet["loggers"]["asyncpg"] == {"level": "WARNING"}
        assert "asyncpg" not in loud["loggers"]

    def test_pool_logging(self):
        config = LoggingConfig.build(LoggingOptions(level=LogLevel.DEBUG, pool_logging=True))

        assert config["loggers"]["neo_dbpool.features.pool"] == {"level": "DEBUG"}
        assert config["loggers"]["neo_dbpool.features.pool.repositories.reaper"] == {"level": "DEBUG"}
        assert config["root"]["level"] == "DEBUG"

    def test_json_format(self):
        config = LoggingConfig.build(LoggingOptions(format=LogFormat.JSON))

        assert config["formatters"]["default"]["format"].startswith('{"time"')


class TestConfigPackage:

    def test_exposes_configuration_not_logger_factory(self):
        import neo_dbpool.config as config

        assert config.setup_logging is not None
        assert config.LoggingConfig is LoggingConfig
        assert not hasattr(config, "get_logger")
