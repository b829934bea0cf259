"""
Entitlement gate.

Pure quota rules over EntitlementState. No I/O, no clock: callers pass
`now` explicitly. The 7-day window rolls over lazily on every access
instead of on a timer.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from fuel_vision.domain.entitlement.models import UNLIMITED, EntitlementState

QUOTA_WINDOW = timedelta(days=7)
TRIAL_DURATION = timedelta(days=3)


class EntitlementGate:
    """
    Free-tier weekly scan quota.

    A user is unlimited when their tier has no limit or their
    premium trial is still running.

    Example:
        >>> gate = EntitlementGate()
        >>> state = EntitlementState.new_free("user_123", now)
        >>> gate.can_use(state, now)
        True
        >>> state = gate.consume(state, now)
        >>> gate.remaining(state, now)
        2
    """

    def __init__(
        self,
        window: timedelta = QUOTA_WINDOW,
        trial_duration: timedelta = TRIAL_DURATION,
    ) -> None:
        self.window = window
        self.trial_duration = trial_duration

    def roll_window(self, state: EntitlementState, now: datetime) -> EntitlementState:
        """Reset the counter if the current window has elapsed."""
        if now - state.window_start >= self.window:
            return state.model_copy(update={"weekly_used": 0, "window_start": now})
        return state

    def is_in_trial(self, state: EntitlementState, now: datetime) -> bool:
        if state.trial_started_at is None:
            return False
        return now < state.trial_started_at + self.trial_duration

    def is_unlimited(self, state: EntitlementState, now: datetime) -> bool:
        return state.has_unlimited_tier or self.is_in_trial(state, now)

    def can_use(self, state: EntitlementState, now: datetime) -> bool:
        """
        Check whether one more analysis is allowed.

        A zero limit always denies.
        """
        if self.is_unlimited(state, now):
            return True
        rolled = self.roll_window(state, now)
        return rolled.weekly_used < (rolled.tier_limit or 0)

    def consume(self, state: EntitlementState, now: datetime) -> EntitlementState:
        """
        Record one successful analysis.

        Call only after the analysis succeeded. Unlimited users are
        returned unchanged apart from the window roll.
        """
        rolled = self.roll_window(state, now)
        if self.is_unlimited(rolled, now):
            return rolled
        return rolled.model_copy(update={"weekly_used": rolled.weekly_used + 1})

    def remaining(self, state: EntitlementState, now: datetime) -> Optional[int]:
        """Scans left in the current window, or UNLIMITED (None)."""
        if self.is_unlimited(state, now):
            return UNLIMITED
        rolled = self.roll_window(state, now)
        return max(0, (rolled.tier_limit or 0) - rolled.weekly_used)

    def start_trial(self, state: EntitlementState, now: datetime) -> EntitlementState:
        """Start the premium trial. One trial per user; later calls are no-ops."""
        if state.has_used_trial:
            return state
        return state.model_copy(update={"trial_started_at": now})

    def trial_days_remaining(self, state: EntitlementState, now: datetime) -> int:
        """Whole days left in the trial, 0 when not in trial."""
        if not self.is_in_trial(state, now):
            return 0
        left = state.trial_started_at + self.trial_duration - now
        return max(0, left.days)
