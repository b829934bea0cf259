"""In-memory implementation of IEntitlementStore."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable, Dict, Optional

from fuel_vision.domain.entitlement.models import (
    FREE_TIER_SCANS_PER_WEEK,
    EntitlementState,
    utc_now,
)
from fuel_vision.infrastructure.config import EntitlementSettings, get_entitlement_settings


class InMemoryEntitlementStore:
    """
    In-memory entitlement store.

    Uses a dictionary keyed by user ID plus one asyncio.Lock per user,
    so concurrent analyses for the same user are serialized while
    different users proceed in parallel. Data is lost when the
    application stops.

    Example:
        >>> store = InMemoryEntitlementStore()
        >>> async with store.lock("user_123"):
        ...     state = await store.get("user_123")
        ...     await store.save(state)
    """

    def __init__(
        self,
        free_scans_per_week: int = FREE_TIER_SCANS_PER_WEEK,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize empty store.

        Args:
            free_scans_per_week: Limit for states created on first use
            clock: Timestamp source for new windows
        """
        self.free_scans_per_week = free_scans_per_week
        self._clock = clock
        self._states: Dict[str, EntitlementState] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    @classmethod
    def from_settings(
        cls,
        settings: Optional[EntitlementSettings] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> InMemoryEntitlementStore:
        """
        Build a store using the configured free-tier limit.

        Args:
            settings: Quota settings (read from environment if None)
            clock: Timestamp source for new windows
        """
        settings = settings or get_entitlement_settings()
        return cls(free_scans_per_week=settings.free_scans_per_week, clock=clock)

    async def get(self, user_id: str) -> EntitlementState:
        """
        Load state, creating a free-tier state on first use.

        Args:
            user_id: User identifier

        Returns:
            Stored EntitlementState
        """
        state = self._states.get(user_id)
        if state is None:
            state = EntitlementState.new_free(
                user_id=user_id,
                now=self._clock(),
                tier_limit=self.free_scans_per_week,
            )
            self._states[user_id] = state
        return state

    async def save(self, state: EntitlementState) -> None:
        """Save or replace a user's state."""
        self._states[state.user_id] = state

    async def find(self, user_id: str) -> Optional[EntitlementState]:
        """Stored state without creating one."""
        return self._states.get(user_id)

    def lock(self, user_id: str) -> asyncio.Lock:
        """Per-user lock, created on first request."""
        user_lock = self._locks.get(user_id)
        if user_lock is None:
            user_lock = asyncio.Lock()
            self._locks[user_id] = user_lock
        return user_lock
