"""Constants and enums for stock-access.

Role names, permission keys and view identifiers mirror the rows stored in
the ``user_roles`` table. Roles are data, so these are the well-known names
only; any other role created by an administrator is still a valid string.
"""

from enum import Enum
from typing import Dict, Final, List


class Roles(str, Enum):
    """Well-known role names."""

    ADMIN = "admin"
    ALMACEN = "almacen"
    RESTAURANTE = "restaurante"


ROLE_DESCRIPTIONS: Final[Dict[str, str]] = {
    Roles.ADMIN.value: "Administrador - Acceso completo",
    Roles.ALMACEN.value: "Almacén - Gestión de stock e inventario",
    Roles.RESTAURANTE.value: "Restaurante - Gestión de ventas y productos",
}


class Permissions:
    """Permission keys understood by the client."""

    VIEW_DASHBOARD: Final[str] = "view_dashboard"
    VIEW_INVENTORY: Final[str] = "view_inventory"
    EDIT_INVENTORY: Final[str] = "edit_inventory"
    MANAGE_STOCK: Final[str] = "manage_stock"
    MANAGE_SUPPLIERS: Final[str] = "manage_suppliers"
    VIEW_STATISTICS: Final[str] = "view_statistics"
    EDIT_STATISTICS: Final[str] = "edit_statistics"
    MANAGE_USERS: Final[str] = "manage_users"
    MANAGE_SETTINGS: Final[str] = "manage_settings"
    MANAGE_ROLES: Final[str] = "manage_roles"


# Must match the navigation sections of the client
VIEW_IDS: Final[List[str]] = [
    "dashboard",
    "inventory",
    "orders",
    "platos",
    "merma",
    "purchases",
    "suppliers",
    "statistics",
    "account",
    "settings",
]

VIEW_PERMISSION_PREFIX: Final[str] = "view_"

# Only the administrator until the role table says otherwise
DEFAULT_VIEW_ROLES: Final[Dict[str, List[str]]] = {
    view_id: [Roles.ADMIN.value] for view_id in VIEW_IDS
}


class ResolutionDefaults:
    """Default timings for role resolution, in seconds."""

    CACHE_MAX_AGE: Final[float] = 120.0
    REVERIFY_WINDOW: Final[float] = 30.0
    IN_FLIGHT_WAIT_TIMEOUT: Final[float] = 3.0
    PROFILE_CREATE_RETRY_DELAY: Final[float] = 0.3
    CACHE_MAX_ENTRIES: Final[int] = 1000


class StoreTables:
    """Remote store table and RPC names."""

    PROFILES: Final[str] = "user_profiles"
    ROLES: Final[str] = "user_roles"
    VIEW_PERMISSIONS_RPC: Final[str] = "get_view_permissions_map"
