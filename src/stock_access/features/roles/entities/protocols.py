"""Protocol contracts for the remote store collaborators.

Implementations talk to the store; the resolution service only depends on
these contracts.
"""

from typing import Dict, List, Optional, Protocol, runtime_checkable

from ....core.value_objects import UserId
from .resolution import ResolvedRole
from .role_definition import RoleDefinition


@runtime_checkable
class RoleResolver(Protocol):
    """Performs one authoritative role lookup for an identity."""

    async def resolve(self, user_id: UserId) -> ResolvedRole:
        """Fetch role, permission set and profile.

        Args:
            user_id: Identity to resolve

        Returns:
            Authoritative resolution

        Raises:
            AuthorizationDeniedError: The store's policy refused the lookup
            ProfileNotFoundError: No profile row exists for the identity
            TransientResolutionError: Network, timeout or server failure
        """
        ...

    async def create_default_profile(self, user_id: UserId) -> None:
        """Create a low-privilege profile; an existing profile is not an error."""
        ...


@runtime_checkable
class RoleDefinitionSource(Protocol):
    """Supplies role definitions for the view permission map."""

    async def list_role_definitions(self) -> List[RoleDefinition]:
        """Get every role definition ordered by name."""
        ...

    async def fetch_view_permission_map(self) -> Optional[Dict[str, List[str]]]:
        """Get the server-computed view map, or None when it is unavailable."""
        ...
