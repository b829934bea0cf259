"""Tests for EntitlementState."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from fuel_vision.domain.entitlement.models import (
    FREE_TIER_SCANS_PER_WEEK,
    UNLIMITED,
    EntitlementState,
)


class TestEntitlementState:
    def test_new_free(self, now: datetime) -> None:
        state = EntitlementState.new_free("user123", now)

        assert state.tier_limit == FREE_TIER_SCANS_PER_WEEK
        assert state.weekly_used == 0
        assert state.window_start == now
        assert state.has_unlimited_tier is False
        assert state.has_used_trial is False

    def test_new_unlimited(self, now: datetime) -> None:
        state = EntitlementState.new_unlimited("user123", now)

        assert state.tier_limit is UNLIMITED
        assert state.has_unlimited_tier is True

    def test_naive_window_start_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EntitlementState(user_id="user123", window_start=datetime(2024, 1, 1))

    def test_negative_usage_rejected(self, now: datetime) -> None:
        with pytest.raises(ValidationError):
            EntitlementState(user_id="user123", weekly_used=-1, window_start=now)

    def test_frozen(self, now: datetime) -> None:
        state = EntitlementState.new_free("user123", now)

        with pytest.raises(ValidationError):
            state.weekly_used = 2  # type: ignore[misc]
