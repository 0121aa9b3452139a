"""Supabase (PostgREST) adapter for role resolution.

Reads ``user_profiles`` and ``user_roles`` over the REST API with httpx and
maps store failures onto the resolution error taxonomy. Row-level security
on the store stays the real authorization boundary; this adapter only reads
what the session is allowed to see.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError, field_validator

from ....config.constants import Roles, StoreTables
from ....config.settings import AccessSettings
from ....core.exceptions import (
    AuthorizationDeniedError,
    ConfigurationError,
    ProfileNotFoundError,
    ResolutionError,
    TransientResolutionError,
)
from ....core.value_objects import UserId
from ..entities.profile import Profile
from ..entities.resolution import ResolvedRole
from ..entities.role_definition import RoleDefinition, coerce_permission_set

logger = logging.getLogger(__name__)

# PostgREST / Postgres error codes
INSUFFICIENT_PRIVILEGE = "42501"
UNIQUE_VIOLATION = "23505"
NO_ROWS = "PGRST116"


class ProfileRow(BaseModel):
    """Row of the profiles table."""

    model_config = ConfigDict(extra="ignore")

    id: str
    role_name: Optional[str] = None
    restaurant_id: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("id", "restaurant_id", mode="before")
    @classmethod
    def stringify(cls, value: Any) -> Any:
        return str(value) if value is not None else None

    def to_profile(self) -> Profile:
        return Profile(
            user_id=UserId(self.id),
            role_name=self.role_name,
            restaurant_id=self.restaurant_id,
            full_name=self.full_name,
            phone=self.phone,
        )


class RoleRow(BaseModel):
    """Row of the roles table."""

    model_config = ConfigDict(extra="ignore")

    role_name: str
    description: Optional[str] = None
    permissions: Optional[Dict[str, Any]] = None

    def to_definition(self) -> RoleDefinition:
        return RoleDefinition(
            role_name=self.role_name,
            description=self.description or "",
            permissions=self.permissions or {},
        )


class SupabaseRoleResolver:
    """Role resolver and role definition source backed by the Supabase REST API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout_seconds: float = 10.0,
        default_role: str = Roles.RESTAURANTE.value,
        client: Optional[httpx.AsyncClient] = None
    ):
        """Initialize resolver.

        Args:
            base_url: Project URL, e.g. ``https://xyz.supabase.co``
            api_key: Project anon key
            access_token: Session JWT; row-level security applies to it
            timeout_seconds: Request timeout
            default_role: Role assumed when a profile has none
            client: Preconfigured client (base URL ending in ``/rest/v1``)
        """
        self.default_role = default_role
        if client is not None:
            self._client = client
            self._owns_client = False
        else:
            if not base_url or not api_key:
                raise ConfigurationError("Store URL and API key are required")
            self._client = httpx.AsyncClient(
                base_url=f"{base_url.rstrip('/')}/rest/v1",
                timeout=timeout_seconds,
                headers={
                    "apikey": api_key,
                    "Authorization": f"Bearer {access_token or api_key}",
                    "Accept": "application/json",
                },
            )
            self._owns_client = True

    @classmethod
    def from_settings(cls, settings: AccessSettings, access_token: Optional[str] = None) -> "SupabaseRoleResolver":
        if not settings.is_store_configured:
            raise ConfigurationError(
                "Remote store is not configured",
                details={"required": ["STOCK_ACCESS_SUPABASE_URL", "STOCK_ACCESS_SUPABASE_KEY"]}
            )
        return cls(
            base_url=settings.supabase_url,
            api_key=settings.supabase_key.get_secret_value(),
            access_token=access_token,
            timeout_seconds=settings.http_timeout_seconds,
            default_role=settings.default_role,
        )

    def set_access_token(self, access_token: str) -> None:
        """Switch to a new session JWT after sign-in or token refresh."""
        self._client.headers["Authorization"] = f"Bearer {access_token}"

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # RoleResolver

    async def resolve(self, user_id: UserId) -> ResolvedRole:
        rows = await self._select(
            StoreTables.PROFILES,
            {"select": "*", "id": f"eq.{user_id.value}", "limit": "1"},
            user_id
        )
        if not rows:
            raise ProfileNotFoundError(f"No profile for user {user_id}", user_id=user_id.value)

        profile = self._parse(ProfileRow, rows[0], user_id).to_profile()
        role_name = profile.role_name or self.default_role

        try:
            role_rows = await self._select(
                StoreTables.ROLES,
                {"select": "*", "role_name": f"eq.{role_name}", "limit": "1"},
                user_id
            )
        except ResolutionError as e:
            logger.warning(f"Could not load permissions for role '{role_name}': {e.message}")
            role_rows = []

        permissions = {}
        if role_rows:
            permissions = coerce_permission_set(self._parse(RoleRow, role_rows[0], user_id).permissions)

        return ResolvedRole(role_name=role_name, permissions=permissions, profile=profile)

    async def create_default_profile(self, user_id: UserId) -> None:
        try:
            await self._request(
                "POST",
                f"/{StoreTables.PROFILES}",
                user_id,
                json=[{"id": user_id.value, "role_name": self.default_role}],
                headers={"Prefer": "return=minimal"},
            )
        except ResolutionError as e:
            if e.details.get("code") == UNIQUE_VIOLATION:
                logger.debug(f"Profile for user {user_id} already exists")
                return
            raise
        logger.info(f"Created default profile for user {user_id}")

    # RoleDefinitionSource

    async def list_role_definitions(self) -> List[RoleDefinition]:
        rows = await self._select(StoreTables.ROLES, {"select": "*", "order": "role_name.asc"})
        return [self._parse(RoleRow, row).to_definition() for row in rows]

    async def fetch_view_permission_map(self) -> Optional[Dict[str, List[str]]]:
        try:
            response = await self._request("POST", f"/rpc/{StoreTables.VIEW_PERMISSIONS_RPC}", json={})
        except ResolutionError as e:
            logger.debug(f"View permission RPC unavailable: {e.message}")
            return None

        try:
            data = response.json()
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        return {
            str(view_id): [str(role) for role in (roles or [])]
            for view_id, roles in data.items()
        }

    # HTTP helpers

    async def _select(
        self,
        table: str,
        params: Mapping[str, str],
        user_id: Optional[UserId] = None
    ) -> List[Dict[str, Any]]:
        response = await self._request("GET", f"/{table}", user_id, params=params)
        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, list):
            raise TransientResolutionError(
                f"Unexpected response shape from {table}",
                user_id=user_id.value if user_id else None
            )
        return data

    async def _request(
        self,
        method: str,
        path: str,
        user_id: Optional[UserId] = None,
        **kwargs: Any
    ) -> httpx.Response:
        user_ref = user_id.value if user_id else None
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise TransientResolutionError(f"Store request timed out: {method} {path}", user_id=user_ref) from e
        except httpx.RequestError as e:
            raise TransientResolutionError(f"Store request failed: {e}", user_id=user_ref) from e

        if response.is_success:
            return response
        raise self._classify_error(response, user_ref)

    @staticmethod
    def _classify_error(response: httpx.Response, user_id: Optional[str]) -> ResolutionError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        code = str(body.get("code") or "")
        message = str(body.get("message") or response.reason_phrase or f"HTTP {response.status_code}")
        details = {"status_code": response.status_code, "code": code, "hint": body.get("hint")}
        lowered = message.lower()

        if (
            response.status_code in (401, 403)
            or code == INSUFFICIENT_PRIVILEGE
            or "permission denied" in lowered
            or "policy" in lowered
        ):
            return AuthorizationDeniedError(message, user_id=user_id, details=details)
        if code == NO_ROWS:
            return ProfileNotFoundError(message, user_id=user_id, details=details)
        return TransientResolutionError(message, user_id=user_id, details=details)

    @staticmethod
    def _parse(model: type, row: Any, user_id: Optional[UserId] = None):
        try:
            return model.model_validate(row)
        except PydanticValidationError as e:
            raise TransientResolutionError(
                f"Malformed {model.__name__}: {e.error_count()} validation error(s)",
                user_id=user_id.value if user_id else None
            ) from e
