"""Access guards - gate content on a role allow-list or a permission key.

Guards evaluate a PermissionBinding and pick what to render:

- AccessGuard renders the content optimistically while loading, then the
  content when granted or the fallback when denied
- PermissionGuard renders nothing while loading
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Union

from ...events.entities.role_events import ForceReload
from ...roles.entities.resolution import RoleResolution
from ...roles.entities.role_definition import normalize_role_name, role_in
from .permission_binding import PermissionBinding

logger = logging.getLogger(__name__)

StateListener = Callable[["GuardState"], None]


class GuardState(str, Enum):
    """Evaluation state of a guard."""
    LOADING = "loading"
    GRANTED = "granted"
    DENIED = "denied"


class _BaseGuard(ABC):
    """Shared state tracking for guards bound to a PermissionBinding."""

    def __init__(self, binding: PermissionBinding, fallback: Any = None):
        self.binding = binding
        self.fallback = fallback
        self._state_listeners: List[StateListener] = []
        self._state = self._evaluate()
        self._unsubscribe = binding.on_change(self._on_binding_change)
        self._on_state(self._state)

    @property
    def state(self) -> GuardState:
        return self._state

    @abstractmethod
    def _evaluate(self) -> GuardState:
        """Compute the state from the binding's current snapshot."""
        pass

    def _on_state(self, state: GuardState) -> None:
        """Hook run on the initial state and on every state change."""

    def _on_binding_change(self, resolution: RoleResolution) -> None:
        previous = self._state
        state = self._evaluate()
        self._state = state
        if state != previous:
            logger.debug(f"{type(self).__name__} for user {self.binding.user_id}: {previous.value} -> {state.value}")
            for listener in list(self._state_listeners):
                listener(state)
            self._on_state(state)

    def on_state_change(self, listener: StateListener) -> None:
        self._state_listeners.append(listener)

    def close(self) -> None:
        """Stop following the binding."""
        self._unsubscribe()
        self._state_listeners.clear()


class AccessGuard(_BaseGuard):
    """Gate on a role allow-list; the administrator role is always granted."""

    def __init__(
        self,
        binding: PermissionBinding,
        allowed_roles: Union[str, Iterable[str], None],
        fallback: Any = None
    ):
        if allowed_roles is None:
            allowed_roles = []
        elif isinstance(allowed_roles, str):
            allowed_roles = [allowed_roles]
        self.allowed_roles = [normalize_role_name(role) for role in allowed_roles]
        self._reload_requested = False
        super().__init__(binding, fallback)

    def _evaluate(self) -> GuardState:
        binding = self.binding
        if binding.loading:
            return GuardState.LOADING
        if binding.user_id is None or not binding.role_name:
            return GuardState.DENIED
        if binding.is_admin or role_in(binding.role_name, self.allowed_roles):
            return GuardState.GRANTED
        return GuardState.DENIED

    def _on_state(self, state: GuardState) -> None:
        if state is not GuardState.DENIED:
            return
        logger.warning(
            f"Access denied for user {self.binding.user_id}: role '{self.binding.role_name}' "
            f"not in {self.allowed_roles}"
        )
        self._maybe_request_reload()

    def _maybe_request_reload(self) -> None:
        # A user who should be admin but is not may be looking at a stale role
        admin_role = self.binding.service.admin_role
        if self._reload_requested or self.binding.user_id is None:
            return
        if admin_role not in self.allowed_roles:
            return
        self._reload_requested = True
        logger.warning(
            f"User {self.binding.user_id} denied on an admin section with role "
            f"'{self.binding.role_name}', requesting role reload"
        )
        self.binding.service.bus.publish(
            ForceReload(user_id=self.binding.user_id, expected_role=admin_role)
        )

    @property
    def granted(self) -> bool:
        """True while content is shown (loading or granted)."""
        return self._state is not GuardState.DENIED

    def render(self, content: Any) -> Any:
        """Pick the content or the fallback for the current state."""
        if self._state is GuardState.DENIED:
            return self.fallback
        return content


class PermissionGuard(_BaseGuard):
    """Gate on a single permission key; renders nothing while loading."""

    def __init__(self, binding: PermissionBinding, permission: str, fallback: Any = None):
        self.permission = permission
        super().__init__(binding, fallback)

    def _evaluate(self) -> GuardState:
        binding = self.binding
        if binding.user_id is None:
            return GuardState.DENIED
        if binding.loading:
            return GuardState.LOADING
        if binding.has_permission(self.permission):
            return GuardState.GRANTED
        return GuardState.DENIED

    def render(self, content: Any) -> Optional[Any]:
        if self._state is GuardState.LOADING:
            return None
        if self._state is GuardState.DENIED:
            return self.fallback
        return content
