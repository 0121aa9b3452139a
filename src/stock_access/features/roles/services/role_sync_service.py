"""Role sync service - role resolution with caching, dedup and self-healing.

Answers "what role, permissions and profile does this identity have" for
every consumer in the process:

- Fresh cached answers are returned without I/O
- Concurrent lookups for one identity share a single resolver call
- Recent non-admin answers are re-verified once in the background, and a
  drift between cache and store is corrected and broadcast
- Failures degrade to a conservative default role and never raise
"""
import asyncio
import logging
import time
from typing import Any, Dict, Iterable, Optional, Set, Union

from ....config.settings import AccessSettings, get_settings
from ....core.exceptions import (
    AuthorizationDeniedError,
    ProfileNotFoundError,
    ResolutionError,
)
from ....core.value_objects import UserId
from ...events.entities.role_events import ForceReload, PermissionMapUpdated, RoleChanged
from ...events.services.event_bus import RoleEventBus
from ..entities.protocols import RoleResolver
from ..entities.resolution import CacheEntry, ResolvedRole, RoleResolution
from ..entities.role_definition import normalize_role_name, role_in
from .in_flight_registry import InFlightRegistry
from .resolution_cache import Clock, ResolutionCache

logger = logging.getLogger(__name__)

UserRef = Union[UserId, str, None]


class RoleSyncService:
    """
    Shared role resolution service.

    Construct one per process and hand it to every consumer; the cache,
    in-flight registry and event bus it owns are the shared state.
    """

    def __init__(
        self,
        resolver: RoleResolver,
        bus: Optional[RoleEventBus] = None,
        settings: Optional[AccessSettings] = None,
        cache: Optional[ResolutionCache] = None,
        in_flight: Optional[InFlightRegistry] = None,
        clock: Clock = time.monotonic
    ):
        self.settings = settings or get_settings()
        self.resolver = resolver
        self.bus = bus or RoleEventBus()
        self.cache = cache or ResolutionCache(
            max_age_seconds=self.settings.cache_max_age_seconds,
            max_entries=self.settings.cache_max_entries,
            clock=clock
        )
        self.in_flight = in_flight or InFlightRegistry()
        self._background: Set[asyncio.Task] = set()
        # Latest reload per identity, and the reloads whose query is not sent yet
        self._reloads: Dict[UserId, asyncio.Task] = {}
        self._unsent_reloads: Set[asyncio.Task] = set()
        self._unsubscribe_force_reload = self.bus.subscribe(ForceReload, self._on_force_reload)

    @property
    def admin_role(self) -> str:
        return self.settings.admin_role

    @property
    def default_role(self) -> str:
        return self.settings.default_role

    def is_admin_role(self, role_name: Optional[str]) -> bool:
        return normalize_role_name(role_name) == self.admin_role

    # Resolution

    def peek(self, user_id: UserRef) -> Optional[RoleResolution]:
        """Get the fresh cached resolution without any I/O.

        Returns:
            Anonymous resolution for an absent identity, the cached
            resolution when fresh, otherwise None
        """
        user_id = UserId.parse(user_id)
        if user_id is None:
            return RoleResolution.anonymous()
        entry = self.cache.get_fresh(user_id)
        return entry.to_resolution() if entry else None

    async def resolve(self, user_id: UserRef) -> RoleResolution:
        """
        Resolve role, permissions and profile for an identity.

        Never raises for resolver failures; those degrade to the default
        role with the error message attached.
        """
        user_id = UserId.parse(user_id)
        if user_id is None:
            return RoleResolution.anonymous()

        entry = self.cache.get_fresh(user_id)
        if entry is not None:
            self._maybe_reverify(user_id, entry)
            return entry.to_resolution()

        if self.in_flight.is_in_flight(user_id):
            return await self._wait_for_in_flight(user_id)

        stale = self.cache.pop(user_id)
        if stale is not None:
            logger.info(f"Role cache expired for user {user_id}, reloading")

        task = self._start_resolution(user_id, stale.role_name if stale else None)
        return await asyncio.shield(task)

    async def refresh(self, user_id: UserRef) -> RoleResolution:
        """Resolve bypassing the cache.

        A resolution already in flight may have queried the store before the
        caller's reason to refresh, so a new one is queued behind it rather
        than joined. Callers refreshing before that queued query is sent
        share it.
        """
        user_id = UserId.parse(user_id)
        if user_id is None:
            return RoleResolution.anonymous()
        return await asyncio.shield(self._request_reload(user_id))

    async def wait_for_reload(self, user_id: UserRef) -> RoleResolution:
        """Wait for the latest reload of an identity, starting one if none is pending."""
        user_id = UserId.parse(user_id)
        if user_id is None:
            return RoleResolution.anonymous()
        task = self._reloads.get(user_id)
        if task is None or task.done():
            task = self._request_reload(user_id)
        return await asyncio.shield(task)

    def _request_reload(self, user_id: UserId) -> "asyncio.Task[RoleResolution]":
        latest = self._reloads.get(user_id)
        if latest is not None and latest in self._unsent_reloads and not latest.done():
            return latest

        previous = self.cache.pop(user_id)
        work = self._run_reload(user_id, previous.role_name if previous else None)
        if self.in_flight.is_in_flight(user_id):
            logger.info(f"Reload for user {user_id} queued behind the resolution in flight")
            task = self.in_flight.chain(user_id, work)
        else:
            task = self.in_flight.start(user_id, work)

        self._reloads[user_id] = task
        self._unsent_reloads.add(task)
        task.add_done_callback(lambda done: self._forget_reload(user_id, done))
        return task

    async def _run_reload(self, user_id: UserId, previous_role: Optional[str]) -> RoleResolution:
        self._unsent_reloads.discard(asyncio.current_task())
        return await self._resolve_and_store(user_id, previous_role, reverify=False)

    def _forget_reload(self, user_id: UserId, task: asyncio.Task) -> None:
        self._unsent_reloads.discard(task)
        if self._reloads.get(user_id) is task:
            del self._reloads[user_id]

    async def _wait_for_in_flight(self, user_id: UserId) -> RoleResolution:
        timeout = self.settings.in_flight_wait_timeout_seconds
        try:
            result = await self.in_flight.join(user_id, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Resolution for user {user_id} still pending after {timeout}s, "
                f"using default role '{self.default_role}'"
            )
            return RoleResolution.fallback(self.default_role)

        if result is None:
            entry = self.cache.get_fresh(user_id)
            return entry.to_resolution() if entry else RoleResolution.fallback(self.default_role)
        return result

    def _start_resolution(
        self,
        user_id: UserId,
        previous_role: Optional[str],
        reverify: bool = False
    ) -> "asyncio.Task[RoleResolution]":
        return self.in_flight.start(
            user_id,
            self._resolve_and_store(user_id, previous_role, reverify)
        )

    async def _resolve_and_store(
        self,
        user_id: UserId,
        previous_role: Optional[str],
        reverify: bool
    ) -> RoleResolution:
        try:
            resolved = await self._fetch(user_id)
        except Exception as e:
            if not self.in_flight.is_current(user_id):
                logger.debug(f"Failed resolution for user {user_id} superseded by a reload")
                return RoleResolution.fallback(self.default_role, error=_error_message(e))
            if reverify:
                return self._keep_current(user_id, e)
            return self._store_failure(user_id, e)

        if not self.in_flight.is_current(user_id):
            # A reload queued behind this lookup owns the cache entry now
            logger.debug(f"Resolution for user {user_id} superseded by a reload, not cached")
            return RoleResolution(
                role_name=resolved.role_name or self.default_role,
                permissions=dict(resolved.permissions),
                profile=resolved.profile,
            )

        # The entry may have changed while the resolver was running
        current = self.cache.peek(user_id)
        old_role = current.role_name if current is not None else previous_role

        role_name = resolved.role_name or self.default_role
        entry = self.cache.new_entry(
            role_name=role_name,
            permissions=dict(resolved.permissions),
            profile=resolved.profile,
            reverified=reverify
        )
        self.cache.set(user_id, entry)
        logger.debug(f"Resolved role for user {user_id}: {role_name}")

        if old_role is not None and old_role != role_name:
            if reverify:
                logger.warning(
                    f"Role discrepancy for user {user_id}: cache had '{old_role}', "
                    f"store has '{role_name}'"
                )
            else:
                logger.warning(f"Role changed for user {user_id}: '{old_role}' -> '{role_name}'")
            self.bus.publish(RoleChanged(user_id=user_id, old_role=old_role, new_role=role_name))

        return entry.to_resolution()

    async def _fetch(self, user_id: UserId) -> ResolvedRole:
        """Call the resolver, repairing a missing profile once."""
        try:
            return await self.resolver.resolve(user_id)
        except ProfileNotFoundError:
            logger.info(f"No profile for user {user_id}, creating default profile")

        try:
            await self.resolver.create_default_profile(user_id)
        except Exception as e:
            logger.warning(f"Could not create default profile for user {user_id}: {e}")

        delay = self.settings.profile_create_retry_delay_seconds
        if delay > 0:
            await asyncio.sleep(delay)
        return await self.resolver.resolve(user_id)

    def _store_failure(self, user_id: UserId, error: Exception) -> RoleResolution:
        message = _error_message(error)

        if isinstance(error, AuthorizationDeniedError):
            # Never cached, so the next lookup retries immediately
            self.cache.invalidate(user_id)
            logger.warning(f"Role lookup denied by policy for user {user_id}: {message}")
            return RoleResolution.fallback(self.default_role, error=message)

        if isinstance(error, ResolutionError):
            logger.warning(f"Role lookup failed for user {user_id}: {message}")
        else:
            logger.error(f"Unexpected resolver failure for user {user_id}: {error}", exc_info=True)

        entry = self.cache.new_entry(
            role_name=self.default_role,
            permissions={},
            profile=None,
            error=message,
            is_default=True
        )
        self.cache.set(user_id, entry)
        return entry.to_resolution()

    def _keep_current(self, user_id: UserId, error: Exception) -> RoleResolution:
        logger.warning(f"Background role verification failed for user {user_id}: {_error_message(error)}")
        current = self.cache.peek(user_id)
        if current is not None:
            return current.to_resolution()
        return RoleResolution.fallback(self.default_role, error=_error_message(error))

    def _maybe_reverify(self, user_id: UserId, entry: CacheEntry) -> None:
        window = self.settings.reverify_window_seconds
        if window <= 0 or entry.reverified or entry.is_default:
            return
        if self.is_admin_role(entry.role_name):
            return
        if entry.age(self.cache.now()) >= window:
            return
        if self.in_flight.is_in_flight(user_id):
            return

        entry.reverified = True
        logger.debug(f"Re-verifying recent non-admin role for user {user_id} in background")
        self._track(self._start_resolution(user_id, entry.role_name, reverify=True))

    # Invalidation and external triggers

    def invalidate(self, user_id: UserRef) -> bool:
        """Drop the cached resolution for an identity."""
        user_id = UserId.parse(user_id)
        if user_id is None:
            return False
        return self.cache.invalidate(user_id)

    def clear(self) -> int:
        """Drop every cached resolution."""
        return self.cache.clear()

    def end_session(self, user_id: UserRef) -> bool:
        """Forget an identity whose session ended."""
        removed = self.invalidate(user_id)
        logger.info(f"Session ended for user {user_id}, cached role dropped: {removed}")
        return removed

    async def force_reload(self, user_id: UserRef, expected_role: Optional[str] = None) -> RoleResolution:
        """Broadcast a force-reload for an identity and wait for the new value."""
        user_id = UserId.parse(user_id)
        if user_id is None:
            return RoleResolution.anonymous()
        self.bus.publish(ForceReload(user_id=user_id, expected_role=expected_role))
        return await self.wait_for_reload(user_id)

    def notify_permission_map_updated(self) -> int:
        """Tell view permission maps that role definitions changed."""
        return self.bus.publish(PermissionMapUpdated())

    def _on_force_reload(self, event: ForceReload) -> None:
        logger.info(f"Force reload requested for user {event.user_id}")
        self._track(self._request_reload(event.user_id))

    # Verification helpers

    async def check_role(self, user_id: UserRef, role_name: str) -> bool:
        """Check whether the identity currently has a role."""
        return await self.check_any_role(user_id, [role_name])

    async def check_any_role(self, user_id: UserRef, role_names: Iterable[str]) -> bool:
        """Check whether the identity has any of the given roles."""
        resolution = await self.resolve(user_id)
        return role_in(resolution.role_name, role_names)

    async def check_permission(self, user_id: UserRef, permission: str) -> bool:
        """Check a permission; the administrator role has every permission."""
        resolution = await self.resolve(user_id)
        return self.grants(resolution, permission)

    def grants(self, resolution: RoleResolution, permission: str) -> bool:
        if resolution.role_name is None:
            return False
        if self.is_admin_role(resolution.role_name):
            return True
        return resolution.permissions.get(permission) is True

    # Lifecycle

    def _track(self, task: asyncio.Task) -> None:
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def aclose(self) -> None:
        """Wait for outstanding resolutions and detach from the bus."""
        self._unsubscribe_force_reload()
        pending = set(self._background) | set(self.in_flight.pending())
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def stats(self) -> Dict[str, Any]:
        return {
            **self.cache.stats(),
            "in_flight": len(self.in_flight),
            "resolutions_started": self.in_flight.started_count,
        }


def _error_message(error: Exception) -> str:
    if isinstance(error, ResolutionError):
        return error.message
    return str(error) or "Unknown error while loading role"
