"""User profile entity."""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ....core.value_objects import UserId


@dataclass(frozen=True)
class Profile:
    """One profile per identity, holding its assigned role."""

    user_id: UserId
    role_name: Optional[str] = None
    restaurant_id: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Profile":
        """Create from a ``user_profiles`` row."""
        restaurant_id = row.get("restaurant_id")
        return cls(
            user_id=UserId(str(row["id"])),
            role_name=row.get("role_name"),
            restaurant_id=str(restaurant_id) if restaurant_id is not None else None,
            full_name=row.get("full_name"),
            phone=row.get("phone"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.user_id.value,
            "role_name": self.role_name,
            "restaurant_id": self.restaurant_id,
            "full_name": self.full_name,
            "phone": self.phone,
        }
