"""Permission services: bindings, guards and the view permission map."""

from .permission_binding import PermissionBinding, ChangeListener
from .access_guard import AccessGuard, PermissionGuard, GuardState
from .view_permission_map import ViewPermissionMap, ViewMap, build_view_permission_map

__all__ = [
    "PermissionBinding",
    "ChangeListener",
    "AccessGuard",
    "PermissionGuard",
    "GuardState",
    "ViewPermissionMap",
    "ViewMap",
    "build_view_permission_map",
]
