"""Tests for the in-memory store and the service factory."""

import pytest

from stock_access.config.settings import AccessSettings
from stock_access.core.exceptions import ConfigurationError, ProfileNotFoundError, TransientResolutionError
from stock_access.core.value_objects import UserId
from stock_access.features.events.services.event_bus import RoleEventBus
from stock_access.features.roles.entities.protocols import RoleDefinitionSource, RoleResolver
from stock_access.features.roles.services.factory import create_role_sync_service


class TestInMemoryRoleStore:
    """Test the dictionary-backed store."""

    def test_implements_protocols(self, store):
        assert isinstance(store, RoleResolver)
        assert isinstance(store, RoleDefinitionSource)

    @pytest.mark.asyncio
    async def test_resolve_and_assign(self, store, almacen_id):
        store.assign_role(almacen_id, "Restaurante")

        resolved = await store.resolve(almacen_id)

        assert resolved.role_name == "restaurante"
        assert resolved.permissions["view_platos"] is True
        assert store.resolve_calls == 1

    @pytest.mark.asyncio
    async def test_missing_profile(self, store):
        stranger = UserId("stranger")

        with pytest.raises(ProfileNotFoundError):
            await store.resolve(stranger)

        await store.create_default_profile(stranger)
        assert (await store.resolve(stranger)).role_name == "restaurante"

    @pytest.mark.asyncio
    async def test_configured_failure(self, store, almacen_id):
        store.fail_with(almacen_id, TransientResolutionError("down"))

        with pytest.raises(TransientResolutionError):
            await store.resolve(almacen_id)

        store.fail_with(almacen_id, None)
        assert (await store.resolve(almacen_id)).role_name == "almacen"

    @pytest.mark.asyncio
    async def test_role_without_definition_has_no_permissions(self, store, almacen_id):
        store.remove_role("almacen")

        assert (await store.resolve(almacen_id)).permissions == {}

    @pytest.mark.asyncio
    async def test_role_definitions_sorted(self, store):
        roles = await store.list_role_definitions()

        assert [role.role_name for role in roles] == ["admin", "almacen", "restaurante"]
        assert await store.fetch_view_permission_map() is None


class TestCreateRoleSyncService:
    """Test the service factory."""

    @pytest.mark.asyncio
    async def test_uses_given_resolver_and_bus(self, store, settings):
        bus = RoleEventBus()

        service = create_role_sync_service(resolver=store, settings=settings, bus=bus)

        assert service.resolver is store
        assert service.bus is bus
        assert service.cache.max_age_seconds == settings.cache_max_age_seconds
        await service.aclose()

    def test_requires_configured_store_without_resolver(self):
        settings = AccessSettings(_env_file=None, supabase_url=None, supabase_key=None)

        with pytest.raises(ConfigurationError):
            create_role_sync_service(settings=settings)

    @pytest.mark.asyncio
    async def test_builds_supabase_resolver_from_settings(self):
        settings = AccessSettings(_env_file=None, supabase_url="https://demo.supabase.co", supabase_key="anon-key")

        service = create_role_sync_service(settings=settings, access_token="jwt")

        assert service.resolver._client.headers["Authorization"] == "Bearer jwt"
        await service.resolver.aclose()
        await service.aclose()

    @pytest.mark.asyncio
    async def test_accepts_mock_resolver(self, mock_resolver, settings, almacen_id):
        service = create_role_sync_service(resolver=mock_resolver, settings=settings)

        result = await service.resolve(almacen_id)

        assert result.role_name == "almacen"
        mock_resolver.resolve.assert_awaited_once_with(almacen_id)
        await service.aclose()
