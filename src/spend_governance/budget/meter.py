# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from spend_governance.budget.limits import (
    SpendingLimit,
    SpendingThreshold,
    build_default_thresholds,
)
from spend_governance.budget.periods import days_between, get_period_dates
from spend_governance.config import MeterConfig
from spend_governance.errors import BudgetExceededError, ConfigurationError
from spend_governance.types import ThresholdLevel

logger = logging.getLogger("spend_governance.budget")

_FALLBACK_THRESHOLD = SpendingThreshold(level="safe", percentage=0, label="Safe", color="#22c55e")


class SpendingMeterState(BaseModel, frozen=True):
    """
    Derived snapshot of a spending limit.

    ``percentage`` is unbounded; ``display_percentage`` is clamped to 100
    for gauges.
    """

    limit: SpendingLimit
    spent: float
    remaining: float
    percentage: float
    display_percentage: float
    threshold_level: ThresholdLevel
    active_threshold: SpendingThreshold
    thresholds: list[SpendingThreshold]
    is_exceeded: bool
    is_soft_limit_exceeded: bool
    is_hard_limit_exceeded: bool
    days_remaining: int
    average_daily_spending: float
    projected_spending: float
    is_on_track: bool


ThresholdChangeCallback = Callable[[ThresholdLevel, SpendingMeterState], None]
MeterCallback = Callable[[SpendingMeterState], None]


# ---------------------------------------------------------------------------
# Threshold lookup
# ---------------------------------------------------------------------------


def get_threshold_level_for_percentage(
    percentage: float,
    thresholds: Sequence[SpendingThreshold],
) -> ThresholdLevel:
    """Return the level of the highest threshold reached, or ``safe``."""
    for threshold in sorted(thresholds, key=lambda t: t.percentage, reverse=True):
        if percentage >= threshold.percentage:
            return threshold.level
    return "safe"


def get_active_threshold(
    percentage: float,
    thresholds: Sequence[SpendingThreshold],
) -> SpendingThreshold:
    """Return the threshold for the current level, falling back to the first one."""
    level = get_threshold_level_for_percentage(percentage, thresholds)
    for threshold in thresholds:
        if threshold.level == level:
            return threshold
    return thresholds[0] if thresholds else _FALLBACK_THRESHOLD


# ---------------------------------------------------------------------------
# Meter
# ---------------------------------------------------------------------------


class SpendingMeter:
    """
    Live tracker for one :class:`SpendingLimit`.

    Every mutation recomputes a :class:`SpendingMeterState` from the limit
    and then notifies:

    - ``on_threshold_change(level, state)`` is edge-triggered. It fires only
      when the threshold level differs from the level at the previous
      recomputation. The first recomputation after construction or
      :meth:`reset_spending` only records the level.
    - ``on_limit_exceeded(state)`` and ``on_soft_limit_exceeded(state)`` are
      level-triggered. They fire on every recomputation where the condition
      holds, including repeats and the initial one at construction.

    The meter does not serialise writers; post one transaction at a time.

    Example::

        meter = SpendingMeter(limit, on_limit_exceeded=alert_finance)
        if meter.can_spend(order_total):
            meter.add_spending(order_total)
    """

    def __init__(
        self,
        limit: SpendingLimit,
        on_threshold_change: ThresholdChangeCallback | None = None,
        on_limit_exceeded: MeterCallback | None = None,
        on_soft_limit_exceeded: MeterCallback | None = None,
        config: MeterConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._limit = limit
        self._on_threshold_change = on_threshold_change
        self._on_limit_exceeded = on_limit_exceeded
        self._on_soft_limit_exceeded = on_soft_limit_exceeded
        self._config = config or MeterConfig()
        self._clock = clock or (lambda: datetime.now(tz=self._limit.period_start.tzinfo))
        self._previous_level: ThresholdLevel | None = None
        self._state = self._recompute()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def limit(self) -> SpendingLimit:
        return self._limit

    @property
    def state(self) -> SpendingMeterState:
        """The state computed at the last mutation or :meth:`refresh`."""
        return self._state

    @property
    def thresholds(self) -> list[SpendingThreshold]:
        """The limit's own thresholds, or the default ladder from config."""
        if self._limit.thresholds:
            return list(self._limit.thresholds)
        return build_default_thresholds(self._config)

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def set_spent(self, amount: float) -> SpendingMeterState:
        """Overwrite the spent amount (floored at zero)."""
        return self._replace(spent_amount=max(0.0, amount))

    def add_spending(self, amount: float) -> SpendingMeterState:
        """
        Add ``amount`` to the spent amount without checking the limit.

        Negative amounts post refunds; the total is floored at zero. Use
        :meth:`record_purchase` to enforce the limit.
        """
        return self._replace(spent_amount=max(0.0, self._limit.spent_amount + amount))

    def update_limit(self, **updates: Any) -> SpendingMeterState:
        """
        Apply field updates to the limit and recompute.

        Raises:
            pydantic.ValidationError: If the updated limit is invalid.
        """
        return self._replace(**updates)

    def reset_spending(self) -> SpendingMeterState:
        """Zero the spent amount and forget the previous threshold level."""
        self._previous_level = None
        return self._replace(spent_amount=0.0)

    def refresh(self) -> SpendingMeterState:
        """Recompute against the current clock without changing the limit."""
        self._state = self._recompute()
        return self._state

    def record_purchase(self, amount: float) -> SpendingMeterState:
        """
        Post a purchase if it fits under the limit.

        Raises:
            BudgetExceededError: If :meth:`can_spend` refuses ``amount``.
        """
        if not self.can_spend(amount):
            available = self.get_spendable_amount()
            logger.warning(
                "Purchase of %.2f refused on limit '%s'; %.2f available.",
                amount,
                self._limit.id,
                available,
            )
            raise BudgetExceededError(self._limit.id, amount, available)
        return self.add_spending(amount)

    def roll_period(
        self,
        reference_date: datetime | None = None,
        period_start: datetime | None = None,
        period_end: datetime | None = None,
        max_amount: float | None = None,
    ) -> SpendingMeterState:
        """
        Start a new period with zero spend.

        Called by the external period scheduler. Calendar periods derive
        their bounds from ``reference_date`` (default: the meter clock);
        ``custom`` periods need explicit ``period_start`` and ``period_end``.
        ``max_amount`` replaces the ceiling, e.g. to apply a rollover.

        Raises:
            ConfigurationError: If a ``custom`` period lacks explicit bounds.
        """
        if self._limit.period == "custom":
            if period_start is None or period_end is None:
                raise ConfigurationError(
                    f"Limit '{self._limit.id}' uses a custom period; "
                    "period_start and period_end are required to roll it."
                )
            start, end = period_start, period_end
        else:
            start, end = get_period_dates(self._limit.period, reference_date or self._clock())
            start = period_start or start
            end = period_end or end

        updates: dict[str, Any] = {"spent_amount": 0.0, "period_start": start, "period_end": end}
        if max_amount is not None:
            updates["max_amount"] = max_amount
        logger.info("Limit '%s' rolled to period %s - %s.", self._limit.id, start, end)
        self._previous_level = None
        return self._replace(**updates)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def can_spend(self, amount: float) -> bool:
        """True if ``amount`` fits under the hard limit and the ceiling."""
        limit = self._limit
        if not limit.is_active or limit.allow_exceed:
            return True
        new_total = limit.spent_amount + amount
        if limit.hard_limit and new_total > limit.hard_limit:
            return False
        return new_total <= limit.max_amount

    def get_spendable_amount(self) -> float:
        """Amount still spendable; ``math.inf`` for inactive or exceedable limits."""
        limit = self._limit
        if not limit.is_active or limit.allow_exceed:
            return math.inf
        ceiling = limit.hard_limit if limit.hard_limit is not None else limit.max_amount
        return max(0.0, ceiling - limit.spent_amount)

    def would_trigger_warning(self, amount: float) -> bool:
        return self.get_percentage(self._limit.spent_amount + amount) >= self._config.warning_threshold

    def would_exceed_limit(self, amount: float) -> bool:
        return self._limit.spent_amount + amount > self._limit.max_amount

    def get_percentage(self, amount: float) -> float:
        """``amount`` as a percentage of the ceiling (0 for a zero ceiling)."""
        max_amount = self._limit.max_amount
        return amount / max_amount * 100 if max_amount > 0 else 0.0

    def get_threshold_level(self, percentage: float) -> ThresholdLevel:
        return get_threshold_level_for_percentage(percentage, self.thresholds)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _replace(self, **updates: Any) -> SpendingMeterState:
        data = self._limit.model_dump()
        data.update(updates)
        self._limit = SpendingLimit.model_validate(data)
        self._state = self._recompute()
        return self._state

    def _compute_state(self) -> SpendingMeterState:
        limit = self._limit
        thresholds = self.thresholds
        spent = limit.spent_amount
        max_amount = limit.max_amount
        percentage = self.get_percentage(spent)

        is_exceeded = spent > max_amount
        if limit.soft_limit:
            is_soft_exceeded = spent > limit.soft_limit
        else:
            is_soft_exceeded = percentage >= self._config.warning_threshold
        is_hard_exceeded = spent > limit.hard_limit if limit.hard_limit else is_exceeded

        now = self._clock()
        days_in_period = days_between(limit.period_start, limit.period_end)
        days_elapsed = max(1, days_between(limit.period_start, now))
        days_remaining = max(0, days_between(now, limit.period_end))
        average_daily = spent / days_elapsed
        projected = average_daily * days_in_period

        return SpendingMeterState(
            limit=limit,
            spent=spent,
            remaining=max(0.0, max_amount - spent),
            percentage=percentage,
            display_percentage=min(100.0, percentage),
            threshold_level=get_threshold_level_for_percentage(percentage, thresholds),
            active_threshold=get_active_threshold(percentage, thresholds),
            thresholds=thresholds,
            is_exceeded=is_exceeded,
            is_soft_limit_exceeded=is_soft_exceeded,
            is_hard_limit_exceeded=is_hard_exceeded,
            days_remaining=days_remaining,
            average_daily_spending=average_daily,
            projected_spending=projected,
            is_on_track=projected <= max_amount,
        )

    def _recompute(self) -> SpendingMeterState:
        state = self._compute_state()
        level = state.threshold_level

        if self._previous_level is not None and self._previous_level != level:
            logger.info(
                "Limit '%s' threshold %s -> %s (%.1f%%).",
                self._limit.id,
                self._previous_level,
                level,
                state.percentage,
            )
            if self._on_threshold_change is not None:
                self._on_threshold_change(level, state)
        self._previous_level = level

        if state.is_exceeded:
            logger.warning(
                "Limit '%s' exceeded: spent %.2f of %.2f.",
                self._limit.id,
                state.spent,
                self._limit.max_amount,
            )
            if self._on_limit_exceeded is not None:
                self._on_limit_exceeded(state)
        if state.is_soft_limit_exceeded and self._on_soft_limit_exceeded is not None:
            self._on_soft_limit_exceeded(state)

        return state
