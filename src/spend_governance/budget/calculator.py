# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Stateless spending arithmetic.

Everything in this module is a pure function of its arguments. Forecasts and
savings suggestions are planning aids for display; gating decisions go
through :func:`can_make_purchase` or
:meth:`~spend_governance.budget.meter.SpendingMeter.can_spend`.
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from typing import Annotated

from pydantic import BaseModel, Field

from spend_governance.budget.periods import days_between, get_period_dates
from spend_governance.config import BudgetConfig
from spend_governance.errors import ConfigurationError
from spend_governance.types import SpendingPeriod, TrendDirection

# Relative change below this percentage is reported as ``stable``.
TREND_DEAD_ZONE = 1.0

# Savings heuristic: categories above this share of total spend get a
# suggested cut of SAVINGS_CUT_RATE.
SAVINGS_CATEGORY_SHARE = 20.0
SAVINGS_CUT_RATE = 0.10


class SpendRecord(BaseModel, frozen=True):
    """A posted spend transaction."""

    amount: float
    date: datetime
    category: str | None = None
    cost_center: str | None = None
    reference: str | None = None


class SpendingLimitConfig(BaseModel, frozen=True):
    """
    Limit parameters for the calculator.

    Attributes:
        max_amount: Spending ceiling for one period.
        period: Period type. ``custom`` requires ``custom_start`` and
            ``custom_end``.
        soft_limit_percentage: Usage percentage flagging the soft limit.
            Falls back to :attr:`BudgetConfig.soft_limit_percentage`.
        hard_limit_percentage: Usage percentage flagging the hard limit.
            Falls back to :attr:`BudgetConfig.hard_limit_percentage`.
        rollover: Whether unused budget carries into the next period.
        rollover_percentage: Share of unused budget carried over. Falls back
            to :attr:`BudgetConfig.rollover_percentage`.
        custom_start: First instant of a ``custom`` period.
        custom_end: Last instant of a ``custom`` period.
    """

    max_amount: Annotated[float, Field(ge=0)]
    period: SpendingPeriod = "monthly"
    soft_limit_percentage: float | None = None
    hard_limit_percentage: float | None = None
    rollover: bool = False
    rollover_percentage: Annotated[float, Field(ge=0, le=100)] | None = None
    custom_start: datetime | None = None
    custom_end: datetime | None = None


class SpendingCalculation(BaseModel, frozen=True):
    """Spending metrics for the period containing the reference date."""

    total_spent: float
    remaining: float
    percentage: float
    soft_limit_exceeded: bool
    hard_limit_exceeded: bool
    period_start: datetime
    period_end: datetime
    days_remaining: int
    average_daily: float
    projected: float
    on_track: bool
    recommended_daily: float


class PurchaseCheck(BaseModel, frozen=True):
    """Outcome of :func:`can_make_purchase`."""

    allowed: bool
    reason: str | None = None


class SpendingTrend(BaseModel, frozen=True):
    direction: TrendDirection
    percentage: float


class ForecastPoint(BaseModel, frozen=True):
    date: datetime
    projected: float
    limit: float


class SavingsOpportunity(BaseModel, frozen=True):
    potential_savings: float
    suggestions: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Aggregation helpers
# ---------------------------------------------------------------------------


def filter_by_period(
    records: Iterable[SpendRecord],
    start: datetime,
    end: datetime,
) -> list[SpendRecord]:
    """Return records dated within ``[start, end]``, inclusive."""
    return [record for record in records if start <= record.date <= end]


def calculate_total(records: Iterable[SpendRecord]) -> float:
    return sum((record.amount for record in records), 0.0)


def calculate_by_category(records: Iterable[SpendRecord]) -> dict[str, float]:
    """Sum spend per category; records without one count as ``uncategorized``."""
    totals: dict[str, float] = {}
    for record in records:
        category = record.category or "uncategorized"
        totals[category] = totals.get(category, 0.0) + record.amount
    return totals


def calculate_by_day(records: Iterable[SpendRecord]) -> dict[str, float]:
    """Sum spend per ISO calendar day (UTC for timezone-aware dates)."""
    totals: dict[str, float] = {}
    for record in records:
        moment = record.date
        if moment.tzinfo is not None:
            moment = moment.astimezone(timezone.utc)
        day = moment.date().isoformat()
        totals[day] = totals.get(day, 0.0) + record.amount
    return totals


def resolve_period_bounds(
    config: SpendingLimitConfig,
    reference_date: datetime | None = None,
) -> tuple[datetime, datetime]:
    """
    Return the period bounds for a limit config.

    Raises:
        ConfigurationError: If a ``custom`` period lacks explicit bounds.
        InvalidPeriodError: If the period type is unknown.
    """
    if config.period == "custom":
        if config.custom_start is None or config.custom_end is None:
            raise ConfigurationError(
                "A 'custom' spending period requires custom_start and custom_end."
            )
        return config.custom_start, config.custom_end
    return get_period_dates(config.period, reference_date)


# ---------------------------------------------------------------------------
# Core calculations
# ---------------------------------------------------------------------------


def calculate_spending(
    records: Iterable[SpendRecord],
    config: SpendingLimitConfig,
    reference_date: datetime | None = None,
    defaults: BudgetConfig | None = None,
) -> SpendingCalculation:
    """
    Compute spending metrics for the period containing ``reference_date``.

    Only records dated inside the period are counted. The projection
    extrapolates the daily average so far over the whole period, where the
    days elapsed are never taken as less than one.

    Args:
        records: Posted spend. Dates must share the tz-awareness of
            ``reference_date``.
        config: The limit being measured.
        reference_date: "Now" for the calculation. Defaults to the current
            local time.
        defaults: Fallback percentages for fields ``config`` leaves unset.

    Returns:
        A :class:`SpendingCalculation`.
    """
    fallback = defaults or BudgetConfig()
    now = reference_date or datetime.now()
    period_start, period_end = resolve_period_bounds(config, now)

    total_spent = calculate_total(filter_by_period(records, period_start, period_end))
    remaining = max(0.0, config.max_amount - total_spent)
    percentage = total_spent / config.max_amount * 100 if config.max_amount > 0 else 0.0

    soft_pct = (
        config.soft_limit_percentage
        if config.soft_limit_percentage is not None
        else fallback.soft_limit_percentage
    )
    hard_pct = (
        config.hard_limit_percentage
        if config.hard_limit_percentage is not None
        else fallback.hard_limit_percentage
    )

    days_in_period = days_between(period_start, period_end)
    days_elapsed = max(1, days_between(period_start, now))
    days_remaining = max(0, days_between(now, period_end))

    average_daily = total_spent / days_elapsed
    projected = average_daily * days_in_period

    return SpendingCalculation(
        total_spent=total_spent,
        remaining=remaining,
        percentage=percentage,
        soft_limit_exceeded=percentage >= soft_pct,
        hard_limit_exceeded=percentage >= hard_pct,
        period_start=period_start,
        period_end=period_end,
        days_remaining=days_remaining,
        average_daily=average_daily,
        projected=projected,
        on_track=projected <= config.max_amount,
        recommended_daily=remaining / days_remaining if days_remaining > 0 else 0.0,
    )


def calculate_rollover(
    previous_spent: float,
    config: SpendingLimitConfig,
    defaults: BudgetConfig | None = None,
) -> float:
    """
    Amount of unused budget carried into the next period.

    Returns 0.0 unless ``config.rollover`` is enabled.
    """
    if not config.rollover:
        return 0.0
    share = (
        config.rollover_percentage
        if config.rollover_percentage is not None
        else (defaults or BudgetConfig()).rollover_percentage
    )
    unused = max(0.0, config.max_amount - previous_spent)
    return unused * (share / 100)


def calculate_effective_limit(config: SpendingLimitConfig, rollover_amount: float = 0.0) -> float:
    """The period ceiling including any rolled-over budget."""
    return config.max_amount + rollover_amount


def can_make_purchase(
    amount: float,
    current_spent: float,
    limit: float,
    allow_exceed: bool = False,
) -> PurchaseCheck:
    """
    Check whether a purchase fits under a limit.

    Refusal is an expected business outcome and is returned, not raised.
    """
    if allow_exceed:
        return PurchaseCheck(allowed=True)
    if current_spent + amount > limit:
        return PurchaseCheck(
            allowed=False,
            reason=(
                "Purchase would exceed spending limit. "
                f"Current: {current_spent}, Purchase: {amount}, Limit: {limit}"
            ),
        )
    return PurchaseCheck(allowed=True)


def calculate_trend(current: float, previous: float) -> SpendingTrend:
    """
    Percentage change between two periods.

    Changes smaller than :data:`TREND_DEAD_ZONE` percent are ``stable``.
    Growth from a zero baseline is reported as 100% ``up``.
    """
    if previous == 0:
        if current > 0:
            return SpendingTrend(direction="up", percentage=100.0)
        return SpendingTrend(direction="stable", percentage=0.0)

    change = (current - previous) / previous * 100
    if abs(change) < TREND_DEAD_ZONE:
        direction: TrendDirection = "stable"
    elif change > 0:
        direction = "up"
    else:
        direction = "down"
    return SpendingTrend(direction=direction, percentage=abs(change))


def generate_forecast(
    records: Iterable[SpendRecord],
    config: SpendingLimitConfig,
    days: int = 30,
    now: datetime | None = None,
) -> list[ForecastPoint]:
    """
    Project cumulative spend ``days`` days past ``now``.

    The daily rate is the period-to-date total divided by the number of
    distinct days that saw spend. For display and planning only.

    Raises:
        ValueError: If ``days`` is negative.
    """
    if days < 0:
        raise ValueError(f"days must be >= 0; got {days}.")

    moment = now or datetime.now()
    period_start, _ = resolve_period_bounds(config, moment)
    to_date = filter_by_period(records, period_start, moment)

    total = calculate_total(to_date)
    active_days = len(calculate_by_day(to_date))
    daily_rate = total / active_days if active_days else 0.0

    forecast: list[ForecastPoint] = []
    cumulative = total
    for offset in range(1, days + 1):
        cumulative += daily_rate
        forecast.append(
            ForecastPoint(
                date=moment + timedelta(days=offset),
                projected=cumulative,
                limit=config.max_amount,
            )
        )
    return forecast


def calculate_savings_opportunity(
    records: Iterable[SpendRecord],
    target_percentage: float = 10.0,
) -> SavingsOpportunity:
    """
    Suggest category cuts until ``target_percentage`` of spend is saved.

    Greedy: categories are visited from largest to smallest, and each one
    above :data:`SAVINGS_CATEGORY_SHARE` percent of total spend gets a
    :data:`SAVINGS_CUT_RATE` cut. The result is a heuristic, not an optimum.
    """
    materialised = list(records)
    total = calculate_total(materialised)
    if total <= 0:
        return SavingsOpportunity(potential_savings=0.0)

    target = total * (target_percentage / 100)
    ranked = sorted(
        calculate_by_category(materialised).items(),
        key=lambda item: item[1],
        reverse=True,
    )

    potential = 0.0
    suggestions: list[str] = []
    for category, amount in ranked:
        if amount / total * 100 > SAVINGS_CATEGORY_SHARE:
            saving = amount * SAVINGS_CUT_RATE
            potential += saving
            suggestions.append(
                f'Reduce "{category}" spending by {SAVINGS_CUT_RATE:.0%} to save {saving:.2f}'
            )
        if potential >= target:
            break

    return SavingsOpportunity(potential_savings=potential, suggestions=suggestions)
