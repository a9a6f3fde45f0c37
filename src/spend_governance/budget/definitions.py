# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Spending limit configuration documents and their validation.

Limits are authored externally (admin screens, config files, APIs) as plain
mappings. A document is one of five variants tagged by ``type``:

- ``employee``: a personal allowance, optionally with a per-order cap.
- ``department``: a shared departmental budget.
- ``cost_center``: a budget attached to an accounting cost centre.
- ``category``: a cap on one product category.
- ``company``: a global company-wide cap.

:func:`validate_limit_config` reports every problem as a :class:`FieldError`
without raising; :func:`parse_limit_config` returns the typed variant or
raises :class:`~spend_governance.errors.LimitValidationError`.
"""
from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, ValidationError

from spend_governance.budget.calculator import SpendRecord
from spend_governance.budget.limits import CurrencyConfig, SpendingLimit
from spend_governance.budget.periods import get_period_dates
from spend_governance.errors import ConfigurationError, LimitValidationError
from spend_governance.types import SpendingPeriod

ThresholdAction = Literal["notify", "notify_manager", "require_approval", "block"]
LimitType = Literal["employee", "department", "cost_center", "category", "company"]

MAX_LIMIT_AMOUNT = 999_999_999


class FieldError(BaseModel, frozen=True):
    """
    One validation problem in an input document.

    Attributes:
        field: Dotted path to the offending field, e.g. ``thresholds.0.action``.
        message: Human-readable explanation.
        code: Machine-readable error type.
    """

    field: str
    message: str
    code: str = "invalid"


class LimitThreshold(BaseModel, frozen=True):
    """A configured threshold that triggers an action once usage reaches it."""

    percentage: Annotated[float, Field(ge=0, le=100)]
    action: ThresholdAction
    notification_message: Annotated[str, Field(max_length=500)] | None = None
    is_active: bool = True


class SpendingLimitDefinition(BaseModel, frozen=True):
    """Fields shared by every limit variant."""

    name: Annotated[str, Field(min_length=1, max_length=100)]
    description: Annotated[str, Field(max_length=500)] | None = None
    max_amount: Annotated[float, Field(gt=0, le=MAX_LIMIT_AMOUNT)]
    period: SpendingPeriod
    currency: CurrencyConfig | None = None
    is_active: bool = True
    allow_exceed: bool = False
    soft_limit: Annotated[float, Field(gt=0)] | None = None
    hard_limit: Annotated[float, Field(gt=0)] | None = None
    thresholds: list[LimitThreshold] = Field(default_factory=list)


class EmployeeLimitDefinition(SpendingLimitDefinition, frozen=True):
    type: Literal["employee"] = "employee"
    employee_id: Annotated[str, Field(min_length=1)]
    order_limit: Annotated[float, Field(gt=0)] | None = None
    approval_threshold: Annotated[float, Field(gt=0)] | None = None
    manager_id: str | None = None


class DepartmentLimitDefinition(SpendingLimitDefinition, frozen=True):
    type: Literal["department"] = "department"
    department_id: Annotated[str, Field(min_length=1)]
    department_name: Annotated[str, Field(min_length=1, max_length=100)]
    distribute_to_employees: bool = False
    per_employee_limit: Annotated[float, Field(gt=0)] | None = None
    approval_chain: list[str] = Field(default_factory=list)


class CostCenterLimitDefinition(SpendingLimitDefinition, frozen=True):
    type: Literal["cost_center"] = "cost_center"
    cost_center_code: Annotated[str, Field(min_length=1, max_length=50)]
    cost_center_name: Annotated[str, Field(min_length=1, max_length=100)]
    account_code: Annotated[str, Field(max_length=50)] | None = None
    gl_code: Annotated[str, Field(max_length=50)] | None = None
    approval_chain: list[str] = Field(default_factory=list)


class CategoryLimitDefinition(SpendingLimitDefinition, frozen=True):
    type: Literal["category"] = "category"
    category_id: Annotated[str, Field(min_length=1)]
    category_name: Annotated[str, Field(min_length=1, max_length=100)]
    include_subcategories: bool = True


class CompanyLimitDefinition(SpendingLimitDefinition, frozen=True):
    type: Literal["company"] = "company"
    company_id: Annotated[str, Field(min_length=1)]
    is_global_cap: bool = True


LimitDefinition = Annotated[
    Union[
        EmployeeLimitDefinition,
        DepartmentLimitDefinition,
        CostCenterLimitDefinition,
        CategoryLimitDefinition,
        CompanyLimitDefinition,
    ],
    Field(discriminator="type"),
]

LIMIT_VARIANTS: dict[str, type[SpendingLimitDefinition]] = {
    "employee": EmployeeLimitDefinition,
    "department": DepartmentLimitDefinition,
    "cost_center": CostCenterLimitDefinition,
    "category": CategoryLimitDefinition,
    "company": CompanyLimitDefinition,
}


class SpendingTransaction(BaseModel, frozen=True):
    """A spend posting submitted against a limit."""

    amount: Annotated[float, Field(gt=0)]
    description: Annotated[str, Field(max_length=500)] | None = None
    reference: Annotated[str, Field(max_length=100)] | None = None
    transaction_date: datetime = Field(default_factory=datetime.now)
    category: str | None = None
    cost_center: str | None = None

    def to_record(self) -> SpendRecord:
        return SpendRecord(
            amount=self.amount,
            date=self.transaction_date,
            category=self.category,
            cost_center=self.cost_center,
            reference=self.reference,
        )


class SpendingAdjustment(BaseModel, frozen=True):
    """A manual correction; positive amounts add spend, negative remove it."""

    amount: float
    reason: Annotated[str, Field(min_length=1, max_length=500)]
    reference: Annotated[str, Field(max_length=100)] | None = None
    approved_by: Annotated[str, Field(min_length=1)]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _field_errors(exc: ValidationError) -> list[FieldError]:
    return [
        FieldError(
            field=".".join(str(part) for part in err["loc"]) or "__root__",
            message=err["msg"],
            code=err["type"],
        )
        for err in exc.errors()
    ]


def _validate(model: type[BaseModel], data: Mapping[str, Any]) -> tuple[BaseModel | None, list[FieldError]]:
    try:
        return model.model_validate(dict(data)), []
    except ValidationError as exc:
        return None, _field_errors(exc)


def _variant_for(data: Mapping[str, Any]) -> tuple[type[SpendingLimitDefinition] | None, list[FieldError]]:
    tag = data.get("type")
    if tag is None:
        return None, [FieldError(field="type", message="Limit type is required", code="missing")]
    variant = LIMIT_VARIANTS.get(tag) if isinstance(tag, str) else None
    if variant is None:
        return None, [
            FieldError(
                field="type",
                message=f"Unknown limit type {tag!r}; expected one of {sorted(LIMIT_VARIANTS)}",
                code="literal_error",
            )
        ]
    return variant, []


def validate_limit_config(data: Mapping[str, Any]) -> list[FieldError]:
    """
    Validate a limit document without raising.

    Returns:
        Every field error found; an empty list means the document is valid.
    """
    variant, errors = _variant_for(data)
    if variant is None:
        return errors
    _, errors = _validate(variant, data)
    return errors


def parse_limit_config(data: Mapping[str, Any]) -> SpendingLimitDefinition:
    """
    Parse a limit document into its typed variant.

    Raises:
        LimitValidationError: If the document is invalid. ``errors`` lists
            every problem found.
    """
    variant, errors = _variant_for(data)
    if variant is None:
        raise LimitValidationError(errors)
    parsed, errors = _validate(variant, data)
    if errors:
        raise LimitValidationError(errors)
    return parsed  # type: ignore[return-value]


def validate_transaction_input(data: Mapping[str, Any]) -> list[FieldError]:
    """Validate a transaction posting; an empty list means valid."""
    _, errors = _validate(SpendingTransaction, data)
    return errors


def validate_adjustment_input(data: Mapping[str, Any]) -> list[FieldError]:
    """Validate a manual adjustment; an empty list means valid."""
    _, errors = _validate(SpendingAdjustment, data)
    return errors


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


def build_spending_limit(
    definition: SpendingLimitDefinition,
    limit_id: str | None = None,
    reference_date: datetime | None = None,
    period_start: datetime | None = None,
    period_end: datetime | None = None,
    spent_amount: float = 0.0,
) -> SpendingLimit:
    """
    Build the live :class:`SpendingLimit` for the period containing
    ``reference_date``.

    ``custom`` periods have no calendar bounds, so ``period_start`` and
    ``period_end`` must be given explicitly for them. For calendar periods
    explicit bounds override the computed ones.

    Raises:
        ConfigurationError: If a ``custom`` definition lacks explicit bounds.
    """
    if definition.period == "custom":
        if period_start is None or period_end is None:
            raise ConfigurationError(
                f"Limit '{definition.name}' uses a custom period; "
                "period_start and period_end are required."
            )
        start, end = period_start, period_end
    else:
        start, end = get_period_dates(definition.period, reference_date)
        start = period_start or start
        end = period_end or end

    fields: dict[str, Any] = {
        "name": definition.name,
        "max_amount": definition.max_amount,
        "spent_amount": spent_amount,
        "period": definition.period,
        "period_start": start,
        "period_end": end,
        "is_active": definition.is_active,
        "allow_exceed": definition.allow_exceed,
        "soft_limit": definition.soft_limit,
        "hard_limit": definition.hard_limit,
    }
    if limit_id is not None:
        fields["id"] = limit_id
    if definition.currency is not None:
        fields["currency"] = definition.currency
    return SpendingLimit(**fields)


def triggered_threshold_actions(
    thresholds: list[LimitThreshold],
    percentage: float,
) -> list[LimitThreshold]:
    """Active thresholds reached at ``percentage``, lowest first."""
    return sorted(
        (t for t in thresholds if t.is_active and percentage >= t.percentage),
        key=lambda t: t.percentage,
    )
