"""Roles feature for stock-access.

- entities/: role definitions, profiles, resolution results and protocols
- services/: resolution cache, in-flight registry and the role sync service
- adapters/: Supabase REST and in-memory role stores
"""

from .entities import (
    RoleDefinition,
    PermissionSet,
    Profile,
    ResolvedRole,
    RoleResolution,
    CacheEntry,
    RoleResolver,
    RoleDefinitionSource,
    normalize_role_name,
    role_in,
)
from .services import (
    ResolutionCache,
    InFlightRegistry,
    RoleSyncService,
    create_role_sync_service,
)
from .adapters import SupabaseRoleResolver, InMemoryRoleStore

__all__ = [
    # Entities
    "RoleDefinition",
    "PermissionSet",
    "Profile",
    "ResolvedRole",
    "RoleResolution",
    "CacheEntry",
    "normalize_role_name",
    "role_in",

    # Protocols
    "RoleResolver",
    "RoleDefinitionSource",

    # Services
    "ResolutionCache",
    "InFlightRegistry",
    "RoleSyncService",
    "create_role_sync_service",

    # Adapters
    "SupabaseRoleResolver",
    "InMemoryRoleStore",
]
