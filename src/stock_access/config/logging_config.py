"""Logging setup for stock-access.

Driven by environment variables:

- ``LOG_VERBOSITY``: QUIET | NORMAL | VERBOSE | DEBUG (default NORMAL)
- ``LOG_FORMAT``: simple | detailed | json (default simple)
- ``ENABLE_HTTP_LOGGING``: let the store client's request lines through
- ``ENABLE_CACHE_LOGGING``: keep per-lookup cache hit/miss lines at DEBUG
"""

import logging
import logging.config
import os
from enum import Enum
from typing import Any, Dict


class LogLevel(str, Enum):
    """Supported log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogVerbosity(str, Enum):
    """Verbosity modes exposed to operators."""
    QUIET = "QUIET"      # errors only
    NORMAL = "NORMAL"    # drift, denials and failures
    VERBOSE = "VERBOSE"  # plus resolutions and reloads
    DEBUG = "DEBUG"      # everything


class LogFormat(str, Enum):
    """Output formats."""
    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"


_VERBOSITY_LEVELS = {
    LogVerbosity.QUIET: LogLevel.ERROR,
    LogVerbosity.NORMAL: LogLevel.WARNING,
    LogVerbosity.VERBOSE: LogLevel.INFO,
    LogVerbosity.DEBUG: LogLevel.DEBUG,
}

_FORMAT_STRINGS = {
    LogFormat.SIMPLE: "%(asctime)s - %(levelname)s - %(message)s",
    LogFormat.DETAILED: "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
    LogFormat.JSON: '{"time":"%(asctime)s","level":"%(levelname)s","module":"%(name)s","message":"%(message)s"}',
}


def get_log_level_from_verbosity(verbosity: str) -> str:
    """Map a verbosity mode to a log level name; unknown modes mean WARNING."""
    try:
        return _VERBOSITY_LEVELS[LogVerbosity(verbosity.strip().upper())].value
    except ValueError:
        return LogLevel.WARNING.value


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").strip().lower() in ("1", "true", "yes")


class LoggingConfig:
    """Builds and applies the ``dictConfig`` for the library."""

    # Third-party loggers limited to errors
    ERROR_ONLY_MODULES = [
        "httpcore",
        "asyncio",
    ]

    # Emits one line per lookup at DEBUG
    CACHE_MODULE = "stock_access.features.roles.services.resolution_cache"

    @classmethod
    def build(
        cls,
        verbosity: str = LogVerbosity.NORMAL.value,
        log_format: str = LogFormat.SIMPLE.value,
        enable_http_logging: bool = False,
        enable_cache_logging: bool = False
    ) -> Dict[str, Any]:
        """Build a ``dictConfig`` mapping for the given options."""
        level = get_log_level_from_verbosity(verbosity)
        try:
            format_string = _FORMAT_STRINGS[LogFormat(log_format.strip().lower())]
        except ValueError:
            format_string = _FORMAT_STRINGS[LogFormat.SIMPLE]

        def quiet(logger_level: str) -> Dict[str, Any]:
            return {"level": logger_level, "handlers": ["console"], "propagate": False}

        loggers: Dict[str, Any] = {module: quiet(LogLevel.ERROR.value) for module in cls.ERROR_ONLY_MODULES}
        if not enable_http_logging:
            loggers["httpx"] = quiet(LogLevel.WARNING.value)
        if level == LogLevel.DEBUG.value and not enable_cache_logging:
            loggers[cls.CACHE_MODULE] = {"level": LogLevel.INFO.value}

        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": format_string, "datefmt": "%Y-%m-%d %H:%M:%S"},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": level,
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {"level": level, "handlers": ["console"]},
            "loggers": loggers,
        }

    @classmethod
    def configure(cls) -> None:
        """Configure logging from the environment."""
        verbosity = os.getenv("LOG_VERBOSITY", LogVerbosity.NORMAL.value)
        log_format = os.getenv("LOG_FORMAT", LogFormat.SIMPLE.value)
        logging.config.dictConfig(cls.build(
            verbosity=verbosity,
            log_format=log_format,
            enable_http_logging=_env_flag("ENABLE_HTTP_LOGGING"),
            enable_cache_logging=_env_flag("ENABLE_CACHE_LOGGING"),
        ))
        logging.getLogger(__name__).debug(f"Logging configured: verbosity={verbosity}, format={log_format}")

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        return logging.getLogger(name)

    @classmethod
    def set_module_level(cls, module_name: str, level: str) -> None:
        """Override the level of one logger."""
        logging.getLogger(module_name).setLevel(getattr(logging, level.upper()))

    @classmethod
    def silence_module(cls, module_name: str) -> None:
        cls.set_module_level(module_name, LogLevel.CRITICAL.value)


def setup_logging() -> None:
    """Apply logging configuration from the environment.

    Runs once when the package is imported.
    """
    LoggingConfig.configure()


def get_logger(name: str) -> logging.Logger:
    """Get a logger by module name (usually ``__name__``)."""
    return LoggingConfig.get_logger(name)
