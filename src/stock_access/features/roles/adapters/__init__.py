"""Role store adapters: Supabase REST and in-memory."""

from .supabase_resolver import SupabaseRoleResolver, ProfileRow, RoleRow
from .memory_resolver import InMemoryRoleStore

__all__ = [
    "SupabaseRoleResolver",
    "ProfileRow",
    "RoleRow",
    "InMemoryRoleStore",
]
