"""Stock-Access - role resolution and access control for the stock management app.

Resolves each signed-in identity's role, permissions and profile from the
remote store, keeps every consumer in the process consistent through a
shared cache and event bus, and gates UI sections on role allow-lists.
"""

# Initialize logging configuration on import
from .config.logging_config import setup_logging
setup_logging()

from .__version__ import __version__

from .config import (
    AccessSettings,
    get_settings,
    Roles,
    Permissions,
    VIEW_IDS,
    DEFAULT_VIEW_ROLES,
)

from .core.exceptions import (
    # Base Exception
    StockAccessError,

    # Common Exceptions
    ConfigurationError,
    ValidationError,

    # Resolution Exceptions
    ResolutionError,
    AuthorizationDeniedError,
    TransientResolutionError,
    ProfileNotFoundError,
)

from .core.value_objects import UserId

from .features.events import (
    RoleChanged,
    ForceReload,
    PermissionMapUpdated,
    RoleEventBus,
)

from .features.roles import (
    RoleDefinition,
    Profile,
    ResolvedRole,
    RoleResolution,
    RoleResolver,
    RoleDefinitionSource,
    ResolutionCache,
    InFlightRegistry,
    RoleSyncService,
    create_role_sync_service,
    SupabaseRoleResolver,
    InMemoryRoleStore,
)

from .features.permissions import (
    PermissionBinding,
    AccessGuard,
    PermissionGuard,
    GuardState,
    ViewPermissionMap,
    build_view_permission_map,
)

__all__ = [
    "__version__",

    # Configuration
    "AccessSettings",
    "get_settings",
    "Roles",
    "Permissions",
    "VIEW_IDS",
    "DEFAULT_VIEW_ROLES",

    # Exceptions
    "StockAccessError",
    "ConfigurationError",
    "ValidationError",
    "ResolutionError",
    "AuthorizationDeniedError",
    "TransientResolutionError",
    "ProfileNotFoundError",

    # Value Objects
    "UserId",

    # Events
    "RoleChanged",
    "ForceReload",
    "PermissionMapUpdated",
    "RoleEventBus",

    # Roles
    "RoleDefinition",
    "Profile",
    "ResolvedRole",
    "RoleResolution",
    "RoleResolver",
    "RoleDefinitionSource",
    "ResolutionCache",
    "InFlightRegistry",
    "RoleSyncService",
    "create_role_sync_service",
    "SupabaseRoleResolver",
    "InMemoryRoleStore",

    # Permissions
    "PermissionBinding",
    "AccessGuard",
    "PermissionGuard",
    "GuardState",
    "ViewPermissionMap",
    "build_view_permission_map",
]
