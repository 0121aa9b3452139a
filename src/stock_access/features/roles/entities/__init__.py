"""Role domain entities and collaborator protocols."""

from .role_definition import (
    RoleDefinition,
    PermissionSet,
    normalize_role_name,
    role_in,
    coerce_permission_set,
)
from .profile import Profile
from .resolution import ResolvedRole, RoleResolution, CacheEntry
from .protocols import RoleResolver, RoleDefinitionSource

__all__ = [
    "RoleDefinition",
    "PermissionSet",
    "normalize_role_name",
    "role_in",
    "coerce_permission_set",
    "Profile",
    "ResolvedRole",
    "RoleResolution",
    "CacheEntry",
    "RoleResolver",
    "RoleDefinitionSource",
]
