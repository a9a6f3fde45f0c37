# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator

from spend_governance.config import MeterConfig
from spend_governance.types import SpendingPeriod, ThresholdLevel


class CurrencyConfig(BaseModel, frozen=True):
    """
    Currency metadata carried alongside a limit.

    The engine never formats amounts; this is passed through for
    presentation layers.
    """

    code: Annotated[str, Field(min_length=3, max_length=3)] = "EUR"
    symbol: Annotated[str, Field(min_length=1, max_length=5)] = "€"
    decimals: Annotated[int, Field(ge=0, le=4)] = 2
    symbol_position: Literal["before", "after"] = "after"
    thousands_separator: Annotated[str, Field(max_length=1)] = " "
    decimal_separator: Annotated[str, Field(max_length=1)] = ","


DEFAULT_CURRENCY = CurrencyConfig()


class SpendingThreshold(BaseModel, frozen=True):
    """One rung of a meter's threshold ladder."""

    level: ThresholdLevel
    percentage: Annotated[float, Field(ge=0)]
    label: str
    color: str


def build_default_thresholds(config: MeterConfig | None = None) -> list[SpendingThreshold]:
    """Return the safe / warning / danger / exceeded ladder for ``config``."""
    cfg = config or MeterConfig()
    return [
        SpendingThreshold(level="safe", percentage=0, label="On Track", color="#22c55e"),
        SpendingThreshold(
            level="warning",
            percentage=cfg.warning_threshold,
            label="Approaching Limit",
            color="#f59e0b",
        ),
        SpendingThreshold(
            level="danger",
            percentage=cfg.danger_threshold,
            label="Near Limit",
            color="#ef4444",
        ),
        SpendingThreshold(level="exceeded", percentage=100, label="Limit Exceeded", color="#dc2626"),
    ]


DEFAULT_THRESHOLDS: tuple[SpendingThreshold, ...] = tuple(build_default_thresholds())


class SpendingLimit(BaseModel, frozen=True):
    """
    The live document tracked by a :class:`~spend_governance.budget.SpendingMeter`.

    Snapshots are immutable; the meter replaces its limit with
    ``model_copy(update=...)`` on every mutation.

    Attributes:
        id: Stable identifier of the limit.
        name: Human-readable name.
        max_amount: Ceiling for the current period.
        spent_amount: Spend posted in the current period.
        period: Period type driving rollover.
        period_start: First instant of the current period.
        period_end: Last instant of the current period.
        currency: Currency metadata, carried but never formatted.
        thresholds: Threshold ladder ordered by percentage. Empty means the
            meter's default ladder.
        is_active: Inactive limits never block spend.
        allow_exceed: When True, spend may exceed the ceiling.
        soft_limit: Absolute soft ceiling. When unset, the meter's warning
            percentage applies.
        hard_limit: Absolute hard ceiling. When unset, ``max_amount`` applies.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    max_amount: Annotated[float, Field(ge=0)]
    spent_amount: Annotated[float, Field(ge=0)] = 0.0
    period: SpendingPeriod = "monthly"
    period_start: datetime
    period_end: datetime
    currency: CurrencyConfig = DEFAULT_CURRENCY
    thresholds: list[SpendingThreshold] = Field(default_factory=list)
    is_active: bool = True
    allow_exceed: bool = False
    soft_limit: Annotated[float, Field(gt=0)] | None = None
    hard_limit: Annotated[float, Field(gt=0)] | None = None

    @field_validator("thresholds")
    @classmethod
    def _order_thresholds(cls, value: list[SpendingThreshold]) -> list[SpendingThreshold]:
        return sorted(value, key=lambda threshold: threshold.percentage)
