"""
Ports (Interfaces) for Analysis Orchestration Dependencies.

Defines the interfaces the AnalysisOrchestrator depends on, so the
vision client and the entitlement store can be swapped for fakes.

Design Pattern: Ports & Adapters (Hexagonal Architecture)
"""

from __future__ import annotations

import asyncio
from typing import AsyncContextManager, Optional, Protocol, runtime_checkable

from fuel_vision.domain.analysis.models import AnalysisRequest, FoodAnalysisResult
from fuel_vision.domain.entitlement.models import EntitlementState


@runtime_checkable
class IVisionClient(Protocol):
    """
    Port for photo-to-nutrition analysis.

    This is an interface - implementations may use different
    vision providers.
    """

    async def analyze(
        self,
        request: AnalysisRequest,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> FoodAnalysisResult:
        """
        Analyze one food photo.

        Args:
            request: Image and preprocessing options
            cancel_event: Set by the caller to abort between attempts

        Returns:
            FoodAnalysisResult with detected items

        Raises:
            AnalysisError: Typed failure (configuration, transport,
                content or cancellation)
        """
        ...


@runtime_checkable
class IEntitlementStore(Protocol):
    """
    Port for per-user entitlement persistence.

    Implementations must serialize read-modify-write cycles for the
    same user (transaction, single writer or lock). `lock(user_id)`
    returns the async context manager guarding one user's state.
    """

    async def get(self, user_id: str) -> EntitlementState:
        """
        Load a user's state, creating a fresh free-tier state on first use.

        Args:
            user_id: User identifier

        Returns:
            Current EntitlementState
        """
        ...

    async def save(self, state: EntitlementState) -> None:
        """
        Persist a user's state (upsert).

        Args:
            state: State to store
        """
        ...

    def lock(self, user_id: str) -> AsyncContextManager[None]:
        """Exclusive access to one user's state."""
        ...
