"""In-flight registry for role resolutions.

Tracks the identities currently being resolved. Each in-flight identity maps
to one shared task; every concurrent caller awaits that task instead of
starting its own lookup, so at most one resolver call is outstanding per
identity.

Callers await through ``asyncio.shield``: a caller that goes away never
cancels a resolution other consumers may depend on.
"""

import asyncio
import logging
from typing import Awaitable, Dict, List, Optional, TypeVar

from ....core.value_objects import UserId

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InFlightRegistry:
    """Registry of shared resolution tasks keyed by identity."""

    def __init__(self):
        self._tasks: Dict[UserId, asyncio.Task] = {}
        self._started = 0

    def get(self, user_id: UserId) -> Optional[asyncio.Task]:
        """Get the outstanding task for an identity, if any."""
        task = self._tasks.get(user_id)
        if task is not None and task.done():
            return None
        return task

    def is_in_flight(self, user_id: UserId) -> bool:
        return self.get(user_id) is not None

    def start(self, user_id: UserId, work: Awaitable[T]) -> "asyncio.Task[T]":
        """Mark an identity in flight and run ``work`` as its shared task.

        The marker is cleared in the same step that finishes ``work``, so a
        caller arriving after the result was cached never sees the identity
        as still in flight.

        Raises:
            RuntimeError: If the identity already has an outstanding task
        """
        if self.is_in_flight(user_id):
            raise RuntimeError(f"Resolution already in flight for user {user_id}")
        return self._register(user_id, work, after=None)

    def chain(self, user_id: UserId, work: Awaitable[T]) -> "asyncio.Task[T]":
        """Run ``work`` once the outstanding task of an identity finishes.

        The new task replaces the outstanding one as the identity's shared
        task immediately, so later callers join it. The replaced task is
        superseded: ``is_current`` is False inside it from then on.
        """
        return self._register(user_id, work, after=self.get(user_id))

    def is_current(self, user_id: UserId) -> bool:
        """Whether the running task is still the shared task of an identity."""
        return self._tasks.get(user_id) is asyncio.current_task()

    def _register(
        self,
        user_id: UserId,
        work: Awaitable[T],
        after: Optional[asyncio.Task]
    ) -> "asyncio.Task[T]":
        async def run() -> T:
            try:
                if after is not None:
                    # Outcome belongs to the superseded task's own callers
                    await asyncio.wait([after])
                return await work
            finally:
                if self.is_current(user_id):
                    del self._tasks[user_id]

        task = asyncio.create_task(run(), name=f"resolve-role:{user_id}")
        self._tasks[user_id] = task
        self._started += 1
        if after is None:
            logger.debug(f"Resolution started for user {user_id}")
        else:
            logger.debug(f"Resolution for user {user_id} queued behind the one in flight")
        return task

    async def join(self, user_id: UserId, timeout: Optional[float] = None) -> Optional[T]:
        """Wait for the outstanding task of an identity.

        Args:
            user_id: Identity being resolved
            timeout: Maximum seconds to wait; None waits indefinitely

        Returns:
            Task result, or None when nothing is in flight

        Raises:
            asyncio.TimeoutError: If the task did not finish in time
        """
        task = self.get(user_id)
        if task is None:
            return None
        shielded = asyncio.shield(task)
        if timeout is None:
            return await shielded
        return await asyncio.wait_for(shielded, timeout)

    def pending(self) -> List[asyncio.Task]:
        return [task for task in self._tasks.values() if not task.done()]

    @property
    def started_count(self) -> int:
        """Total number of resolutions started since creation."""
        return self._started

    def __len__(self) -> int:
        return len(self.pending())

    def __contains__(self, user_id: object) -> bool:
        return isinstance(user_id, UserId) and self.is_in_flight(user_id)
