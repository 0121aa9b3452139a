"""In-process event bus for role synchronization.

Typed observer registry: handlers subscribe to one event class and are called
synchronously, in subscription order, when an event of that class is
published. A failing handler is logged and does not stop the fan-out.
"""

import logging
from typing import Callable, Dict, List, Type, TypeVar, Union

from ..entities.role_events import ForceReload, PermissionMapUpdated, RoleChanged

logger = logging.getLogger(__name__)

RoleEvent = Union[RoleChanged, ForceReload, PermissionMapUpdated]
E = TypeVar("E", RoleChanged, ForceReload, PermissionMapUpdated)
Unsubscribe = Callable[[], None]


class RoleEventBus:
    """Publish/subscribe channel shared by the resolution service and its consumers."""

    def __init__(self):
        self._handlers: Dict[type, List[Callable[[RoleEvent], None]]] = {}

    def subscribe(self, event_type: Type[E], handler: Callable[[E], None]) -> Unsubscribe:
        """Register a handler for one event type.

        Args:
            event_type: Event class to listen to
            handler: Callable invoked with each published event

        Returns:
            Function removing the subscription; calling it twice is harmless
        """
        handlers = self._handlers.setdefault(event_type, [])
        handlers.append(handler)

        def unsubscribe() -> None:
            try:
                handlers.remove(handler)
            except ValueError:
                pass

        return unsubscribe

    def publish(self, event: RoleEvent) -> int:
        """Deliver an event to every handler registered for its type.

        Returns:
            Number of handlers invoked
        """
        # Copy so handlers may unsubscribe while being notified
        handlers = list(self._handlers.get(type(event), ()))
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Event handler failed for {type(event).__name__}: {e}", exc_info=True)

        logger.debug(f"Published {type(event).__name__} to {len(handlers)} handler(s)")
        return len(handlers)

    def subscriber_count(self, event_type: type) -> int:
        return len(self._handlers.get(event_type, ()))

    def clear(self) -> None:
        """Drop every subscription."""
        self._handlers.clear()
