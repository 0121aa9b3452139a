"""Role resolution services."""

from .resolution_cache import ResolutionCache, Clock
from .in_flight_registry import InFlightRegistry
from .role_sync_service import RoleSyncService, UserRef
from .factory import create_role_sync_service

__all__ = [
    "ResolutionCache",
    "Clock",
    "InFlightRegistry",
    "RoleSyncService",
    "UserRef",
    "create_role_sync_service",
]
