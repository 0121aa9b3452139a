"""Events feature for stock-access.

- entities/: role synchronization event types
- services/: in-process event bus
"""

from .entities import RoleChanged, ForceReload, PermissionMapUpdated
from .services import RoleEventBus, RoleEvent, Unsubscribe

__all__ = [
    # Entities
    "RoleChanged",
    "ForceReload",
    "PermissionMapUpdated",

    # Services
    "RoleEventBus",
    "RoleEvent",
    "Unsubscribe",
]
