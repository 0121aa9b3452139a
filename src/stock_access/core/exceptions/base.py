"""Base exceptions for stock-access.

All exceptions inherit from StockAccessError and carry an error code and
structured details so callers can display or log them uniformly.
"""

from typing import Any, Dict, Optional


class StockAccessError(Exception):
    """Base exception for all stock-access errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        *args,
        **kwargs
    ):
        super().__init__(message, *args, **kwargs)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


class ConfigurationError(StockAccessError):
    """Raised when required configuration is missing or invalid."""
    pass


class ValidationError(StockAccessError):
    """Raised when a value object or entity fails validation."""
    pass
