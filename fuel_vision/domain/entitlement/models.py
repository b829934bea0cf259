"""
Entitlement domain models.

Per-user free-tier scan quota state.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Sentinel for tiers without a weekly limit
UNLIMITED = None

FREE_TIER_SCANS_PER_WEEK = 3


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EntitlementState(BaseModel):
    """
    Weekly scan quota state for one user.

    Immutable: gate operations return updated copies.

    Attributes:
        user_id: Owner of this state
        weekly_used: Scans performed in the current window
        window_start: Start of the current 7-day window (timezone-aware)
        tier_limit: Scans allowed per window, None for unlimited
        trial_started_at: Start of the premium trial, if one was used

    Example:
        >>> state = EntitlementState.new_free(
        ...     user_id="user_123", now=datetime.now(timezone.utc)
        ... )
        >>> assert state.tier_limit == 3
        >>> assert state.weekly_used == 0
    """

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1, description="User identifier")
    weekly_used: int = Field(0, ge=0, description="Scans used in window")
    window_start: datetime = Field(..., description="Current window start")
    tier_limit: Optional[int] = Field(
        FREE_TIER_SCANS_PER_WEEK, ge=0, description="Scans per window, None = unlimited"
    )
    trial_started_at: Optional[datetime] = Field(None, description="Premium trial start")

    @field_validator("window_start", "trial_started_at")
    @classmethod
    def must_be_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Reject naive datetimes."""
        if v is not None and v.tzinfo is None:
            raise ValueError("Timestamps must be timezone-aware")
        return v

    @property
    def has_unlimited_tier(self) -> bool:
        return self.tier_limit is UNLIMITED

    @property
    def has_used_trial(self) -> bool:
        return self.trial_started_at is not None

    @classmethod
    def new_free(
        cls, user_id: str, now: datetime, tier_limit: int = FREE_TIER_SCANS_PER_WEEK
    ) -> EntitlementState:
        """Fresh free-tier state with the window starting now."""
        return cls(user_id=user_id, weekly_used=0, window_start=now, tier_limit=tier_limit)

    @classmethod
    def new_unlimited(cls, user_id: str, now: datetime) -> EntitlementState:
        """State for a subscribed user."""
        return cls(user_id=user_id, weekly_used=0, window_start=now, tier_limit=UNLIMITED)
