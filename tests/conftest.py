"""Pytest configuration and fixtures for stock-access tests."""

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock

from stock_access.config.settings import AccessSettings
from stock_access.core.value_objects import UserId
from stock_access.features.events.services.event_bus import RoleEventBus
from stock_access.features.roles.adapters.memory_resolver import InMemoryRoleStore
from stock_access.features.roles.entities.profile import Profile
from stock_access.features.roles.entities.resolution import ResolvedRole
from stock_access.features.roles.entities.role_definition import RoleDefinition
from stock_access.features.roles.services.role_sync_service import RoleSyncService


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Fake clock for staleness tests."""
    return FakeClock()


@pytest.fixture
def settings():
    """Settings with short delays so tests run fast."""
    return AccessSettings(
        _env_file=None,
        cache_max_age_seconds=120.0,
        reverify_window_seconds=30.0,
        in_flight_wait_timeout_seconds=0.2,
        profile_create_retry_delay_seconds=0.0,
        cache_max_entries=100,
    )


@pytest.fixture
def no_reverify_settings(settings):
    """Settings with background re-verification disabled."""
    return settings.model_copy(update={"reverify_window_seconds": 0.0})


@pytest.fixture
def bus():
    """Fresh event bus."""
    return RoleEventBus()


@pytest.fixture
def admin_id():
    return UserId("11111111-aaaa-4000-8000-000000000001")


@pytest.fixture
def almacen_id():
    return UserId("22222222-bbbb-4000-8000-000000000002")


@pytest.fixture
def restaurante_id():
    return UserId("33333333-cccc-4000-8000-000000000003")


@pytest.fixture
def role_definitions():
    """Role definitions as seeded in the store."""
    return [
        RoleDefinition(
            role_name="admin",
            description="Administrador",
            permissions={"manage_users": True, "view_dashboard": True},
        ),
        RoleDefinition(
            role_name="almacen",
            description="Almacén",
            permissions={
                "view_dashboard": True,
                "view_inventory": True,
                "view_orders": True,
                "edit_inventory": True,
                "manage_stock": True,
            },
        ),
        RoleDefinition(
            role_name="restaurante",
            description="Restaurante",
            permissions={"view_dashboard": True, "view_orders": True, "view_platos": True},
        ),
    ]


@pytest.fixture
def store(role_definitions, admin_id, almacen_id, restaurante_id):
    """In-memory store with one profile per role."""
    return InMemoryRoleStore(
        roles=role_definitions,
        profiles=[
            Profile(user_id=admin_id, role_name="admin", full_name="Ana Admin"),
            Profile(user_id=almacen_id, role_name="almacen", full_name="Alberto Almacén"),
            Profile(user_id=restaurante_id, role_name="restaurante", restaurant_id="r-1"),
        ],
    )


@pytest.fixture
def mock_resolver():
    """Mock resolver returning the almacen role."""
    resolver = AsyncMock()
    resolver.resolve = AsyncMock(
        return_value=ResolvedRole(role_name="almacen", permissions={"view_inventory": True})
    )
    resolver.create_default_profile = AsyncMock(return_value=None)
    return resolver


@pytest_asyncio.fixture
async def service(store, bus, settings, clock):
    """Role sync service over the in-memory store."""
    service = RoleSyncService(resolver=store, bus=bus, settings=settings, clock=clock)
    yield service
    await service.aclose()
