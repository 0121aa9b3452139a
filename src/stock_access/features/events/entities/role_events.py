"""Role synchronization events.

Carried by the in-process event bus from the resolution service and from
external actors (e.g. the role administration screen) to every binding.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from ....core.value_objects import UserId


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RoleChanged:
    """An authoritative role differs from what was previously cached."""

    user_id: UserId
    old_role: Optional[str]
    new_role: str
    occurred_at: datetime = field(default_factory=_utcnow, compare=False)


@dataclass(frozen=True)
class ForceReload:
    """Request an immediate, cache-bypassing re-resolution for one identity."""

    user_id: UserId
    expected_role: Optional[str] = None
    occurred_at: datetime = field(default_factory=_utcnow, compare=False)


@dataclass(frozen=True)
class PermissionMapUpdated:
    """Role definitions changed; view permission maps must be rebuilt."""

    occurred_at: datetime = field(default_factory=_utcnow, compare=False)
