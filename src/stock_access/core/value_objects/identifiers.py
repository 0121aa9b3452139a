"""Value objects for identifiers in stock-access."""

from dataclasses import dataclass
from typing import Optional, Union

from ..exceptions import ValidationError


@dataclass(frozen=True)
class UserId:
    """Opaque user identifier issued by the authentication provider.

    All cache and event operations are keyed by it.
    """
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str):
            object.__setattr__(self, "value", str(self.value))
        if not self.value.strip():
            raise ValidationError("User ID must not be empty")

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Union["UserId", str, None]) -> Optional["UserId"]:
        """Coerce a raw identifier, returning None for absent identities."""
        if value is None or isinstance(value, UserId):
            return value
        if not str(value).strip():
            return None
        return cls(str(value))
