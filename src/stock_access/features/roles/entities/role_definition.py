"""Role definition entity.

Represents one row of the role table: a role name, a human description and
a flat permission set mapping permission keys to booleans.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional

from ....config.constants import VIEW_PERMISSION_PREFIX
from ....core.exceptions import ValidationError

PermissionSet = Dict[str, bool]


def normalize_role_name(role_name: Optional[str]) -> str:
    """Lower-case and trim a role name for comparison."""
    return str(role_name or "").strip().lower()


def role_in(role_name: Optional[str], allowed_roles: Iterable[str]) -> bool:
    """Check membership ignoring case and surrounding whitespace."""
    normalized = normalize_role_name(role_name)
    if not normalized:
        return False
    return any(normalize_role_name(allowed) == normalized for allowed in allowed_roles)


def coerce_permission_set(raw: Optional[Mapping[str, Any]]) -> PermissionSet:
    """Build a permission set from a stored JSON object.

    Only literal ``True`` grants a permission; anything else is a denial.
    """
    if not raw:
        return {}
    return {str(key): value is True for key, value in raw.items()}


@dataclass(frozen=True)
class RoleDefinition:
    """Authoritative role definition fetched from the store."""

    role_name: str
    description: str = ""
    permissions: PermissionSet = field(default_factory=dict)

    def __post_init__(self):
        normalized = normalize_role_name(self.role_name)
        if not normalized:
            raise ValidationError("Role name cannot be empty")
        object.__setattr__(self, "role_name", normalized)
        object.__setattr__(self, "permissions", coerce_permission_set(self.permissions))

    def grants(self, permission_key: str) -> bool:
        """Check the explicit flag for a permission key."""
        return self.permissions.get(permission_key) is True

    def grants_view(self, view_id: str) -> bool:
        """Check the ``view_<id>`` flag for a UI section."""
        return self.grants(f"{VIEW_PERMISSION_PREFIX}{view_id}")

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "RoleDefinition":
        """Create from a ``user_roles`` row."""
        return cls(
            role_name=row["role_name"],
            description=row.get("description") or "",
            permissions=row.get("permissions") or {},
        )
