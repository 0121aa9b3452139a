"""Exception hierarchy for stock-access."""

from .base import (
    StockAccessError,
    ConfigurationError,
    ValidationError,
)
from .resolution import (
    ResolutionError,
    AuthorizationDeniedError,
    TransientResolutionError,
    ProfileNotFoundError,
)

__all__ = [
    "StockAccessError",
    "ConfigurationError",
    "ValidationError",
    "ResolutionError",
    "AuthorizationDeniedError",
    "TransientResolutionError",
    "ProfileNotFoundError",
]
