"""Tests for value objects, entities and exceptions."""

import pytest

from stock_access.core.exceptions import (
    AuthorizationDeniedError,
    ResolutionError,
    StockAccessError,
    ValidationError,
)
from stock_access.core.value_objects import UserId
from stock_access.features.roles.entities.profile import Profile
from stock_access.features.roles.entities.resolution import CacheEntry, RoleResolution
from stock_access.features.roles.entities.role_definition import (
    RoleDefinition,
    coerce_permission_set,
    normalize_role_name,
    role_in,
)


class TestUserId:
    """Test the user identifier value object."""

    def test_parse(self):
        user_id = UserId("abc")

        assert UserId.parse(None) is None
        assert UserId.parse("  ") is None
        assert UserId.parse(user_id) is user_id
        assert UserId.parse("abc") == user_id
        assert str(user_id) == "abc"

    def test_rejects_empty(self):
        with pytest.raises(ValidationError):
            UserId("")

    def test_hashable_for_cache_keys(self):
        assert len({UserId("a"), UserId("a"), UserId("b")}) == 2


class TestRoleDefinition:
    """Test role names and permission sets."""

    def test_normalizes_name(self):
        role = RoleDefinition(role_name="  Almacen ", permissions={"view_inventory": True})

        assert role.role_name == "almacen"
        assert role.grants("view_inventory") is True
        assert role.grants_view("inventory") is True
        assert role.grants_view("settings") is False

    def test_rejects_empty_name(self):
        with pytest.raises(ValidationError):
            RoleDefinition(role_name=" ")

    def test_from_row(self):
        role = RoleDefinition.from_row({"role_name": "restaurante", "description": None, "permissions": None})

        assert role.description == ""
        assert role.permissions == {}

    def test_only_literal_true_grants(self):
        assert coerce_permission_set({"a": True, "b": "true", "c": 1, "d": False}) == {
            "a": True, "b": False, "c": False, "d": False,
        }
        assert coerce_permission_set(None) == {}

    def test_role_matching(self):
        assert normalize_role_name(None) == ""
        assert role_in(" ADMIN", ["admin"]) is True
        assert role_in("almacen", []) is False
        assert role_in(None, ["admin"]) is False
        assert role_in("", [""]) is False


class TestProfileAndResolution:
    """Test profile rows and resolution snapshots."""

    def test_profile_from_row(self):
        profile = Profile.from_row({"id": "u-1", "role_name": "almacen", "restaurant_id": 3})

        assert profile.user_id == UserId("u-1")
        assert profile.restaurant_id == "3"
        assert profile.to_dict()["id"] == "u-1"

    def test_resolution_factories(self):
        assert RoleResolution.anonymous().loading is False
        assert RoleResolution.pending().loading is True

        fallback = RoleResolution.fallback("restaurante", error="timeout")
        assert fallback.is_default is True
        assert fallback.error == "timeout"

    def test_cache_entry_resolution_copies_permissions(self):
        entry = CacheEntry(role_name="almacen", permissions={"edit_inventory": True}, profile=None, timestamp=10.0)

        resolution = entry.to_resolution()
        resolution.permissions["manage_users"] = True

        assert "manage_users" not in entry.permissions
        assert entry.age(5.0) == 0.0
        assert entry.age(12.0) == 2.0


class TestExceptions:
    """Test the exception hierarchy."""

    def test_resolution_error_carries_user_id(self):
        error = AuthorizationDeniedError("denied", user_id="u-1", details={"code": "42501"})

        assert isinstance(error, ResolutionError)
        assert isinstance(error, StockAccessError)
        assert error.error_code == "AuthorizationDeniedError"
        assert error.details == {"code": "42501", "user_id": "u-1"}
