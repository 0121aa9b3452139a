"""Factory for the shared role sync service."""

import logging
import time
from typing import Optional

from ....config.settings import AccessSettings, get_settings
from ...events.services.event_bus import RoleEventBus
from ..adapters.supabase_resolver import SupabaseRoleResolver
from ..entities.protocols import RoleResolver
from .resolution_cache import Clock
from .role_sync_service import RoleSyncService

logger = logging.getLogger(__name__)


def create_role_sync_service(
    resolver: Optional[RoleResolver] = None,
    settings: Optional[AccessSettings] = None,
    bus: Optional[RoleEventBus] = None,
    access_token: Optional[str] = None,
    clock: Clock = time.monotonic
) -> RoleSyncService:
    """Build the process-wide role sync service.

    Call once at startup and inject the result into every consumer.

    Args:
        resolver: Resolver to use; defaults to the Supabase resolver built
            from settings
        settings: Access settings; defaults to the environment
        bus: Event bus to share; a new one is created when omitted
        access_token: Session JWT for the default resolver
        clock: Monotonic time source

    Raises:
        ConfigurationError: If no resolver is given and the store is not configured
    """
    settings = settings or get_settings()
    if resolver is None:
        resolver = SupabaseRoleResolver.from_settings(settings, access_token=access_token)

    service = RoleSyncService(resolver=resolver, bus=bus, settings=settings, clock=clock)
    logger.info(
        f"Role sync service ready: max_age={settings.cache_max_age_seconds}s, "
        f"reverify_window={settings.reverify_window_seconds}s, "
        f"wait_timeout={settings.in_flight_wait_timeout_seconds}s"
    )
    return service
