"""Permissions feature for stock-access.

Consumer-facing views over the role sync service: per-consumer bindings,
access guards and the view permission map used for navigation.
"""

from .services import (
    PermissionBinding,
    AccessGuard,
    PermissionGuard,
    GuardState,
    ViewPermissionMap,
    build_view_permission_map,
)

__all__ = [
    "PermissionBinding",
    "AccessGuard",
    "PermissionGuard",
    "GuardState",
    "ViewPermissionMap",
    "build_view_permission_map",
]
