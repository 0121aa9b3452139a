"""Role resolution value objects.

ResolvedRole is what a resolver returns, CacheEntry is what the resolution
cache stores, and RoleResolution is the snapshot handed to consumers.
"""

from dataclasses import dataclass, field
from typing import Optional

from .profile import Profile
from .role_definition import PermissionSet


@dataclass(frozen=True)
class ResolvedRole:
    """Authoritative answer for one identity."""

    role_name: str
    permissions: PermissionSet = field(default_factory=dict)
    profile: Optional[Profile] = None


@dataclass(frozen=True)
class RoleResolution:
    """Role, permissions and profile as seen by a consumer."""

    role_name: Optional[str] = None
    permissions: PermissionSet = field(default_factory=dict)
    profile: Optional[Profile] = None
    loading: bool = False
    error: Optional[str] = None
    is_default: bool = False

    @classmethod
    def anonymous(cls) -> "RoleResolution":
        """No identity: nothing resolved and nothing loading."""
        return cls()

    @classmethod
    def pending(cls) -> "RoleResolution":
        """Resolution has not produced a value yet."""
        return cls(loading=True)

    @classmethod
    def fallback(cls, role_name: str, error: Optional[str] = None) -> "RoleResolution":
        """Conservative default used when resolution could not finish."""
        return cls(role_name=role_name, error=error, is_default=True)


@dataclass
class CacheEntry:
    """Timestamped resolution result for one identity."""

    role_name: str
    permissions: PermissionSet
    profile: Optional[Profile]
    timestamp: float
    error: Optional[str] = None
    is_default: bool = False
    reverified: bool = False

    def age(self, now: float) -> float:
        """Seconds elapsed since the entry was written."""
        return max(0.0, now - self.timestamp)

    def to_resolution(self) -> RoleResolution:
        return RoleResolution(
            role_name=self.role_name,
            permissions=dict(self.permissions),
            profile=self.profile,
            loading=False,
            error=self.error,
            is_default=self.is_default,
        )
