# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from spend_governance.budget.calculator import (
    ForecastPoint,
    PurchaseCheck,
    SavingsOpportunity,
    SpendingCalculation,
    SpendingLimitConfig,
    SpendingTrend,
    SpendRecord,
    calculate_by_category,
    calculate_by_day,
    calculate_effective_limit,
    calculate_rollover,
    calculate_savings_opportunity,
    calculate_spending,
    calculate_total,
    calculate_trend,
    can_make_purchase,
    filter_by_period,
    generate_forecast,
    resolve_period_bounds,
)
from spend_governance.budget.definitions import (
    CategoryLimitDefinition,
    CompanyLimitDefinition,
    CostCenterLimitDefinition,
    DepartmentLimitDefinition,
    EmployeeLimitDefinition,
    FieldError,
    LimitDefinition,
    LimitThreshold,
    SpendingAdjustment,
    SpendingLimitDefinition,
    SpendingTransaction,
    build_spending_limit,
    parse_limit_config,
    triggered_threshold_actions,
    validate_adjustment_input,
    validate_limit_config,
    validate_transaction_input,
)
from spend_governance.budget.limits import (
    DEFAULT_CURRENCY,
    DEFAULT_THRESHOLDS,
    CurrencyConfig,
    SpendingLimit,
    SpendingThreshold,
    build_default_thresholds,
)
from spend_governance.budget.meter import (
    SpendingMeter,
    SpendingMeterState,
    get_active_threshold,
    get_threshold_level_for_percentage,
)
from spend_governance.budget.periods import (
    days_between,
    get_period_dates,
    is_period_expired,
    next_period_start,
)

__all__ = [
    # Periods
    "get_period_dates",
    "days_between",
    "next_period_start",
    "is_period_expired",
    # Calculator
    "SpendRecord",
    "SpendingLimitConfig",
    "SpendingCalculation",
    "PurchaseCheck",
    "SpendingTrend",
    "ForecastPoint",
    "SavingsOpportunity",
    "filter_by_period",
    "calculate_total",
    "calculate_by_category",
    "calculate_by_day",
    "resolve_period_bounds",
    "calculate_spending",
    "calculate_rollover",
    "calculate_effective_limit",
    "can_make_purchase",
    "calculate_trend",
    "generate_forecast",
    "calculate_savings_opportunity",
    # Live limit
    "CurrencyConfig",
    "DEFAULT_CURRENCY",
    "SpendingThreshold",
    "DEFAULT_THRESHOLDS",
    "build_default_thresholds",
    "SpendingLimit",
    "SpendingMeter",
    "SpendingMeterState",
    "get_threshold_level_for_percentage",
    "get_active_threshold",
    # Limit definitions
    "FieldError",
    "LimitThreshold",
    "SpendingLimitDefinition",
    "EmployeeLimitDefinition",
    "DepartmentLimitDefinition",
    "CostCenterLimitDefinition",
    "CategoryLimitDefinition",
    "CompanyLimitDefinition",
    "LimitDefinition",
    "SpendingTransaction",
    "SpendingAdjustment",
    "validate_limit_config",
    "parse_limit_config",
    "validate_transaction_input",
    "validate_adjustment_input",
    "build_spending_limit",
    "triggered_threshold_actions",
]
