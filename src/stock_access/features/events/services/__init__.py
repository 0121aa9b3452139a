"""Event services."""

from .event_bus import RoleEventBus, RoleEvent, Unsubscribe

__all__ = ["RoleEventBus", "RoleEvent", "Unsubscribe"]
