"""Role resolution exceptions.

Resolvers raise these so the resolution service can tell a policy refusal
(never cached) apart from a transient failure (cached as a default role)
and a missing profile (repaired once).
"""

from typing import Any, Dict, Optional

from .base import StockAccessError


class ResolutionError(StockAccessError):
    """Base exception for role resolution failures."""

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if user_id is not None:
            details.setdefault("user_id", user_id)
        super().__init__(message, error_code=error_code, details=details)
        self.user_id = user_id


class AuthorizationDeniedError(ResolutionError):
    """The store's policy explicitly refused the lookup."""
    pass


class TransientResolutionError(ResolutionError):
    """Network failure, timeout or unexpected store response."""
    pass


class ProfileNotFoundError(ResolutionError):
    """No profile row exists for the identity."""
    pass
