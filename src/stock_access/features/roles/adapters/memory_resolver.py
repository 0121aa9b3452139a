"""In-memory role store.

Implements the resolver and role definition contracts over plain dictionaries.
Used for local development, demos and tests where no remote store exists.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from ....config.constants import Roles
from ....core.exceptions import ProfileNotFoundError
from ....core.value_objects import UserId
from ..entities.profile import Profile
from ..entities.resolution import ResolvedRole
from ..entities.role_definition import RoleDefinition, normalize_role_name

logger = logging.getLogger(__name__)


class InMemoryRoleStore:
    """Dictionary-backed profiles and role definitions."""

    def __init__(
        self,
        roles: Optional[Iterable[RoleDefinition]] = None,
        profiles: Optional[Iterable[Profile]] = None,
        default_role: str = Roles.RESTAURANTE.value,
        latency_seconds: float = 0.0
    ):
        self.default_role = default_role
        self.latency_seconds = latency_seconds
        self._roles: Dict[str, RoleDefinition] = {role.role_name: role for role in roles or ()}
        self._profiles: Dict[UserId, Profile] = {profile.user_id: profile for profile in profiles or ()}
        self._failures: Dict[UserId, Exception] = {}
        self.resolve_calls = 0

    # Store administration

    def put_role(self, role: RoleDefinition) -> None:
        self._roles[role.role_name] = role

    def remove_role(self, role_name: str) -> None:
        self._roles.pop(normalize_role_name(role_name), None)

    def put_profile(self, profile: Profile) -> None:
        self._profiles[profile.user_id] = profile

    def remove_profile(self, user_id: UserId) -> None:
        self._profiles.pop(user_id, None)

    def assign_role(self, user_id: UserId, role_name: str) -> Profile:
        """Change the role of an existing profile, as the role administration screen does."""
        current = self._profiles.get(user_id)
        if current is None:
            raise ProfileNotFoundError(f"No profile for user {user_id}", user_id=user_id.value)
        updated = Profile(
            user_id=user_id,
            role_name=normalize_role_name(role_name),
            restaurant_id=current.restaurant_id,
            full_name=current.full_name,
            phone=current.phone,
        )
        self._profiles[user_id] = updated
        return updated

    def fail_with(self, user_id: UserId, error: Optional[Exception]) -> None:
        """Make lookups for one identity raise ``error`` (None clears it)."""
        if error is None:
            self._failures.pop(user_id, None)
        else:
            self._failures[user_id] = error

    # RoleResolver

    async def resolve(self, user_id: UserId) -> ResolvedRole:
        self.resolve_calls += 1
        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)

        error = self._failures.get(user_id)
        if error is not None:
            raise error

        profile = self._profiles.get(user_id)
        if profile is None:
            raise ProfileNotFoundError(f"No profile for user {user_id}", user_id=user_id.value)

        role_name = profile.role_name or self.default_role
        role = self._roles.get(normalize_role_name(role_name))
        permissions = dict(role.permissions) if role else {}
        return ResolvedRole(role_name=role_name, permissions=permissions, profile=profile)

    async def create_default_profile(self, user_id: UserId) -> None:
        if user_id not in self._profiles:
            self._profiles[user_id] = Profile(user_id=user_id, role_name=self.default_role)
            logger.debug(f"Created default profile for user {user_id}")

    # RoleDefinitionSource

    async def list_role_definitions(self) -> List[RoleDefinition]:
        return [self._roles[name] for name in sorted(self._roles)]

    async def fetch_view_permission_map(self) -> Optional[Dict[str, List[str]]]:
        # No server-side aggregation; callers build the map themselves
        return None
