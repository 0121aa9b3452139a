"""Core building blocks shared by every feature: exceptions and value objects."""

from .exceptions import (
    StockAccessError,
    ConfigurationError,
    ValidationError,
    ResolutionError,
    AuthorizationDeniedError,
    TransientResolutionError,
    ProfileNotFoundError,
)
from .value_objects import UserId

__all__ = [
    "StockAccessError",
    "ConfigurationError",
    "ValidationError",
    "ResolutionError",
    "AuthorizationDeniedError",
    "TransientResolutionError",
    "ProfileNotFoundError",
    "UserId",
]
