"""Permission binding - one consumer's live view of an identity's role.

A binding holds the latest resolution for one identity, follows role events
on the shared bus and notifies its listeners whenever the value changes.
Screens, guards and menus each hold their own binding over the same service.
"""

import asyncio
import dataclasses
import logging
from typing import Callable, Iterable, List, Optional, Set, Union

from ....config.constants import Roles
from ....core.value_objects import UserId
from ...events.entities.role_events import ForceReload, RoleChanged
from ...events.services.event_bus import Unsubscribe
from ...roles.entities.profile import Profile
from ...roles.entities.resolution import RoleResolution
from ...roles.entities.role_definition import PermissionSet, role_in
from ...roles.services.role_sync_service import RoleSyncService, UserRef

logger = logging.getLogger(__name__)

ChangeListener = Callable[[RoleResolution], None]

KNOWN_ROLES = frozenset(role.value for role in Roles)


class PermissionBinding:
    """Per-consumer role state kept in sync through the event bus."""

    def __init__(self, service: RoleSyncService, user_id: UserRef):
        self.service = service
        self.user_id: Optional[UserId] = UserId.parse(user_id)

        cached = service.peek(self.user_id)
        self._snapshot = cached if cached is not None else RoleResolution.pending()

        self._listeners: List[ChangeListener] = []
        self._tasks: Set[asyncio.Task] = set()
        self._detached = False
        self._unsubscribes: List[Unsubscribe] = []
        if self.user_id is not None:
            self._unsubscribes.append(service.bus.subscribe(RoleChanged, self._on_role_changed))
            self._unsubscribes.append(service.bus.subscribe(ForceReload, self._on_force_reload))

    # State

    @property
    def snapshot(self) -> RoleResolution:
        return self._snapshot

    @property
    def role_name(self) -> Optional[str]:
        return self._snapshot.role_name

    @property
    def permissions(self) -> PermissionSet:
        return dict(self._snapshot.permissions)

    @property
    def profile(self) -> Optional[Profile]:
        return self._snapshot.profile

    @property
    def loading(self) -> bool:
        return self._snapshot.loading

    @property
    def error(self) -> Optional[str]:
        return self._snapshot.error

    @property
    def is_admin(self) -> bool:
        return self.service.is_admin_role(self._snapshot.role_name)

    @property
    def detached(self) -> bool:
        return self._detached

    def is_in_role(self, role_name: str) -> bool:
        return role_in(self._snapshot.role_name, [role_name])

    def has_permission(self, permission: str) -> bool:
        """Check a permission against the current snapshot; admin has all."""
        return self.service.grants(self._snapshot, permission)

    # Loading

    async def load(self) -> RoleResolution:
        """Resolve through the shared service and adopt the result."""
        resolution = await self.service.resolve(self.user_id)
        self._apply(resolution)
        return self._snapshot

    async def reload(self) -> RoleResolution:
        """Resolve bypassing the cache."""
        self._apply(dataclasses.replace(self._snapshot, loading=True))
        resolution = await self.service.refresh(self.user_id)
        self._apply(resolution)
        return self._snapshot

    # Async checks against the service

    async def check_role(self, role_name: str) -> bool:
        if self.user_id is None:
            return False
        return await self.service.check_role(self.user_id, role_name)

    async def check_any_role(self, role_names: Iterable[str]) -> bool:
        if self.user_id is None:
            return False
        return await self.service.check_any_role(self.user_id, role_names)

    async def check_permission(self, permission: str) -> bool:
        if self.user_id is None:
            return False
        return await self.service.check_permission(self.user_id, permission)

    async def can_access(self, required: Union[str, Iterable[str]]) -> bool:
        """Check a role list, a single role or a single permission key.

        A string naming a known role is checked as a role, any other string
        as a permission key.
        """
        if self.user_id is None:
            return False
        if self.is_admin:
            return True
        if isinstance(required, str):
            if required.strip().lower() in KNOWN_ROLES:
                return await self.check_role(required)
            return await self.check_permission(required)
        return await self.check_any_role(required)

    # Listeners

    def on_change(self, listener: ChangeListener) -> Unsubscribe:
        """Register a callback invoked with each new snapshot."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def detach(self) -> None:
        """Stop following events and ignore results still pending."""
        if self._detached:
            return
        self._detached = True
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        self._unsubscribes.clear()
        self._listeners.clear()
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()

    # Event handlers

    def _on_role_changed(self, event: RoleChanged) -> None:
        if event.user_id != self.user_id:
            return
        # The service overwrites the cache before publishing
        cached = self.service.peek(self.user_id)
        if cached is None or cached.role_name != event.new_role:
            cached = dataclasses.replace(self._snapshot, role_name=event.new_role, loading=False)
        logger.debug(f"Binding for user {self.user_id} follows role change to '{event.new_role}'")
        self._apply(cached)

    def _on_force_reload(self, event: ForceReload) -> None:
        if event.user_id != self.user_id:
            return
        self._apply(dataclasses.replace(self._snapshot, loading=True))
        task = asyncio.create_task(self._apply_refresh(), name=f"binding-reload:{self.user_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _apply_refresh(self) -> None:
        # The service starts the reload for this same event
        resolution = await self.service.wait_for_reload(self.user_id)
        self._apply(resolution)

    def _apply(self, resolution: RoleResolution) -> None:
        if self._detached:
            return
        changed = resolution != self._snapshot
        self._snapshot = resolution
        if not changed:
            return
        for listener in list(self._listeners):
            try:
                listener(resolution)
            except Exception as e:
                logger.error(f"Role change listener failed for user {self.user_id}: {e}", exc_info=True)

    def __repr__(self) -> str:
        return (
            f"PermissionBinding(user_id={self.user_id}, role={self.role_name!r}, "
            f"loading={self.loading})"
        )
