"""Configuration module for stock-access."""

from .constants import (
    Roles,
    Permissions,
    ROLE_DESCRIPTIONS,
    VIEW_IDS,
    VIEW_PERMISSION_PREFIX,
    DEFAULT_VIEW_ROLES,
    ResolutionDefaults,
    StoreTables,
)

from .settings import AccessSettings, get_settings

from .logging_config import (
    setup_logging,
    get_logger,
    LogVerbosity,
    LogFormat,
    LoggingConfig,
)

__all__ = [
    # Constants
    "Roles",
    "Permissions",
    "ROLE_DESCRIPTIONS",
    "VIEW_IDS",
    "VIEW_PERMISSION_PREFIX",
    "DEFAULT_VIEW_ROLES",
    "ResolutionDefaults",
    "StoreTables",

    # Settings
    "AccessSettings",
    "get_settings",

    # Logging
    "setup_logging",
    "get_logger",
    "LogVerbosity",
    "LogFormat",
    "LoggingConfig",
]
