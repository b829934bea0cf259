"""
Food Analysis Orchestration Service.

Wraps photo analysis in the weekly entitlement quota: check first,
analyze, then consume on success only.

Design Pattern: Service Layer + Dependency Injection
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable, Optional

import structlog

from fuel_vision.domain.analysis.models import AnalysisRequest, FoodAnalysisResult
from fuel_vision.domain.analysis.ports import IEntitlementStore, IVisionClient
from fuel_vision.domain.entitlement.gate import EntitlementGate
from fuel_vision.domain.entitlement.models import utc_now
from fuel_vision.domain.shared.errors import QuotaExceededError

logger = structlog.get_logger(__name__)


class AnalysisOrchestrator:
    """
    Orchestrates quota-gated food photo analysis.

    Responsibilities:
    - Reject over-quota users locally, before any network call
    - Delegate analysis to the vision client
    - Consume quota only after a successful analysis
    - Propagate vision client errors unchanged

    Dependencies (injected via Ports/Interfaces):
    - vision_client: IVisionClient - photo analysis
    - entitlement_store: IEntitlementStore - per-user quota state
    - gate: EntitlementGate - quota rules
    - clock: Callable returning the current aware datetime

    One user's check, analysis and consumption run under that user's
    store lock, so concurrent scans cannot race past the limit. If the
    process dies between analysis success and the save, that scan is
    not counted.

    Example:
        >>> orchestrator = AnalysisOrchestrator(
        ...     vision_client=vision_client,
        ...     entitlement_store=InMemoryEntitlementStore(),
        ... )
        >>> result = await orchestrator.analyze(
        ...     AnalysisRequest(image_data=photo_bytes), user_id="user123"
        ... )
    """

    def __init__(
        self,
        vision_client: IVisionClient,
        entitlement_store: IEntitlementStore,
        gate: Optional[EntitlementGate] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize orchestrator with dependencies.

        Args:
            vision_client: Photo analysis client
            entitlement_store: Quota state storage
            gate: Quota rules (default weekly gate)
            clock: Current time provider
        """
        self.vision_client = vision_client
        self.entitlement_store = entitlement_store
        self.gate = gate or EntitlementGate()
        self.clock = clock

    async def analyze(
        self,
        request: AnalysisRequest,
        user_id: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> FoodAnalysisResult:
        """
        Analyze a food photo for a user, enforcing the scan quota.

        Workflow:
        1. Load entitlement state, check quota (QuotaExceededError if spent)
        2. Call the vision client (errors propagate untouched)
        3. Consume one scan and save the state
        4. Return the result

        Args:
            request: Image and preprocessing options
            user_id: User performing the scan
            cancel_event: Set by the caller to abort between attempts

        Returns:
            FoodAnalysisResult from the vision client

        Raises:
            QuotaExceededError: Weekly quota used up (no network call made)
            AnalysisError: Any vision client failure, unchanged
        """
        async with self.entitlement_store.lock(user_id):
            state = await self.entitlement_store.get(user_id)

            if not self.gate.can_use(state, self.clock()):
                logger.info("Scan quota exceeded", user_id=user_id)
                raise QuotaExceededError()

            result = await self.vision_client.analyze(request, cancel_event)

            updated = self.gate.consume(state, self.clock())
            await self.entitlement_store.save(updated)

        logger.info(
            "Scan consumed",
            user_id=user_id,
            weekly_used=updated.weekly_used,
            items=len(result.items),
        )
        return result

    async def can_use(self, user_id: str) -> bool:
        """Whether the user may start another scan now."""
        state = await self.entitlement_store.get(user_id)
        return self.gate.can_use(state, self.clock())

    async def remaining(self, user_id: str) -> Optional[int]:
        """Scans left this week, or None for unlimited users."""
        state = await self.entitlement_store.get(user_id)
        return self.gate.remaining(state, self.clock())
