"""Resolution cache for role lookups.

Process-wide mapping from identity to a timestamped resolution result.

Features:
- Staleness window: entries at or past ``max_age`` are never served
- LRU eviction bounded by ``max_entries``
- Hit/miss/eviction statistics

All operations are synchronous. The cache is shared by every consumer on the
event loop, so a read-modify-write that does not await is atomic.
"""

import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional

from ....core.value_objects import UserId
from ..entities.resolution import CacheEntry

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class ResolutionCache:
    """Bounded, time-aware cache of role resolutions keyed by identity."""

    def __init__(
        self,
        max_age_seconds: float = 120.0,
        max_entries: int = 1000,
        clock: Clock = time.monotonic
    ):
        """Initialize resolution cache.

        Args:
            max_age_seconds: Age at which an entry stops being served
            max_entries: Maximum number of identities kept (LRU eviction)
            clock: Monotonic time source, injectable for tests
        """
        if max_age_seconds <= 0:
            raise ValueError("Max age must be positive")
        if max_entries <= 0:
            raise ValueError("Max entries must be positive")

        self.max_age_seconds = max_age_seconds
        self.max_entries = max_entries
        self._clock = clock

        self._entries: "OrderedDict[UserId, CacheEntry]" = OrderedDict()

        # Statistics
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def now(self) -> float:
        """Current time on the cache clock."""
        return self._clock()

    def new_entry(self, **fields: Any) -> CacheEntry:
        """Create an entry stamped with the current time."""
        return CacheEntry(timestamp=self.now(), **fields)

    def is_stale(self, entry: CacheEntry) -> bool:
        return entry.age(self.now()) >= self.max_age_seconds

    def peek(self, user_id: UserId) -> Optional[CacheEntry]:
        """Get an entry regardless of age, without touching statistics or LRU order."""
        return self._entries.get(user_id)

    def get_fresh(self, user_id: UserId) -> Optional[CacheEntry]:
        """Get an entry only if it is younger than the staleness window.

        Stale entries stay in place; the caller decides when to drop them.
        """
        entry = self._entries.get(user_id)
        if entry is None or self.is_stale(entry):
            self._misses += 1
            return None

        self._entries.move_to_end(user_id)
        self._hits += 1
        logger.debug(f"Role cache hit: {user_id} ({entry.role_name}, age={entry.age(self.now()):.1f}s)")
        return entry

    def set(self, user_id: UserId, entry: CacheEntry) -> None:
        """Store or replace the entry for an identity."""
        if user_id in self._entries:
            del self._entries[user_id]
        self._entries[user_id] = entry
        self._evict_if_needed()

    def pop(self, user_id: UserId) -> Optional[CacheEntry]:
        """Remove and return the entry for an identity."""
        return self._entries.pop(user_id, None)

    def invalidate(self, user_id: UserId) -> bool:
        """Remove the entry for an identity.

        Returns:
            True if an entry was removed
        """
        removed = self._entries.pop(user_id, None) is not None
        if removed:
            logger.debug(f"Role cache invalidated for user {user_id}")
        return removed

    def clear(self) -> int:
        """Remove every entry. Returns the number removed."""
        count = len(self._entries)
        self._entries.clear()
        logger.debug(f"Role cache cleared ({count} entries)")
        return count

    def _evict_if_needed(self) -> None:
        while len(self._entries) > self.max_entries:
            user_id, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug(f"Evicted least recently used role entry: {user_id}")

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        total_requests = self._hits + self._misses
        hit_rate = (self._hits / total_requests) if total_requests > 0 else 0.0
        return {
            "entries": len(self._entries),
            "max_entries": self.max_entries,
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
            "hit_rate": hit_rate,
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._entries
