"""Value objects for stock-access."""

from .identifiers import UserId

__all__ = ["UserId"]
