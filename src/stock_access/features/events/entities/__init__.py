"""Event entities for role synchronization."""

from .role_events import RoleChanged, ForceReload, PermissionMapUpdated

__all__ = ["RoleChanged", "ForceReload", "PermissionMapUpdated"]
