"""View permission map - which roles may open each UI section.

The map is rebuilt from the store on mount and on every
``PermissionMapUpdated`` event; it is never time-cached.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Set

from ....config.constants import DEFAULT_VIEW_ROLES, VIEW_IDS
from ...events.entities.role_events import PermissionMapUpdated
from ...events.services.event_bus import RoleEventBus, Unsubscribe
from ...roles.entities.protocols import RoleDefinitionSource
from ...roles.entities.role_definition import RoleDefinition, normalize_role_name, role_in

logger = logging.getLogger(__name__)

ViewMap = Dict[str, List[str]]


def build_view_permission_map(
    roles: Iterable[RoleDefinition],
    view_ids: Iterable[str] = VIEW_IDS,
    admin_role: str = "admin"
) -> ViewMap:
    """Aggregate ``view_<id>`` flags of every role into a view map.

    Every view starts with the administrator role; a role is appended once
    for each view whose flag it grants.
    """
    view_ids = list(view_ids)
    result: ViewMap = {view_id: [admin_role] for view_id in view_ids}
    for role in roles:
        for view_id in view_ids:
            if role.grants_view(view_id) and role.role_name not in result[view_id]:
                result[view_id].append(role.role_name)
    return result


class ViewPermissionMap:
    """Live view map for sidebar filtering and per-section guards."""

    def __init__(
        self,
        source: RoleDefinitionSource,
        bus: RoleEventBus,
        view_ids: Iterable[str] = VIEW_IDS,
        admin_role: str = "admin"
    ):
        self.source = source
        self.bus = bus
        self.view_ids = list(view_ids)
        self.admin_role = normalize_role_name(admin_role)
        self._map: Optional[ViewMap] = None
        self._unsubscribe: Optional[Unsubscribe] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def mounted(self) -> bool:
        return self._unsubscribe is not None

    @property
    def current(self) -> Optional[ViewMap]:
        """Last built map, or None before the first build."""
        if self._map is None:
            return None
        return {view_id: list(roles) for view_id, roles in self._map.items()}

    async def mount(self) -> ViewMap:
        """Build the map and start following permission map updates."""
        if self._unsubscribe is None:
            self._unsubscribe = self.bus.subscribe(PermissionMapUpdated, self._on_updated)
        return await self.rebuild()

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()

    async def rebuild(self) -> ViewMap:
        """Fetch the map from the store.

        The server RPC is preferred; client-side aggregation of role
        definitions is the fallback. When both fail the previous map is kept.
        """
        try:
            built = await self.source.fetch_view_permission_map()
        except Exception as e:
            logger.debug(f"Server view map unavailable, aggregating on client: {e}")
            built = None

        if built is None:
            try:
                roles = await self.source.list_role_definitions()
            except Exception as e:
                logger.warning(f"Could not load role definitions for view map: {e}")
                return self.current or {}
            built = build_view_permission_map(roles, self.view_ids, self.admin_role)
        else:
            built = {
                view_id: self._with_admin(roles)
                for view_id, roles in built.items()
            }

        self._map = built
        logger.debug(f"View permission map rebuilt for {len(built)} view(s)")
        return self.current

    def _with_admin(self, roles: Iterable[str]) -> List[str]:
        """Normalize a server role list; the administrator is always allowed."""
        result = [self.admin_role]
        for role in roles:
            role_name = normalize_role_name(role)
            if role_name and role_name not in result:
                result.append(role_name)
        return result

    def _on_updated(self, event: PermissionMapUpdated) -> None:
        task = asyncio.create_task(self.rebuild(), name="rebuild-view-permission-map")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def allowed_roles(self, view_id: str) -> List[str]:
        """Roles allowed on a view; admin-only when the view is unknown."""
        if self._map is not None and view_id in self._map:
            return list(self._map[view_id])
        return list(DEFAULT_VIEW_ROLES.get(view_id, [self.admin_role]))

    def can_view(self, view_id: str, role_name: Optional[str]) -> bool:
        if not role_name:
            return False
        if normalize_role_name(role_name) == self.admin_role:
            return True
        return role_in(role_name, self.allowed_roles(view_id))

    def visible_views(self, role_name: Optional[str]) -> List[str]:
        """Views to show in the sidebar for a role, in menu order."""
        return [view_id for view_id in self.view_ids if self.can_view(view_id, role_name)]
