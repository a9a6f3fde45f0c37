# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

from spend_governance.types import ConditionType

logger = logging.getLogger("spend_governance.policy")


class SpendContext(BaseModel, frozen=True):
    """
    The facts about a purchase that rules are evaluated against.

    Every field is optional. A condition that needs a field the context
    does not carry is never satisfied.

    Attributes:
        amount: Order or request amount.
        quantity: Total item quantity.
        categories: Product categories present in the order.
        user_role: Role of the requesting user.
        department: Department of the requesting user.
        cost_center: Cost center charged.
        vendor_id: Supplier identifier.
        custom_data: Free-form data available to ``custom`` predicates.
    """

    amount: float | None = None
    quantity: float | None = None
    categories: list[str] | None = None
    user_role: str | None = None
    department: str | None = None
    cost_center: str | None = None
    vendor_id: str | None = None
    custom_data: dict[str, Any] = Field(default_factory=dict)


class Condition(BaseModel, frozen=True):
    """
    A single predicate inside a rule.

    ``type`` is one of the :class:`~spend_governance.types.ConditionType`
    identifiers. Unknown types are kept as-is so that rule documents from a
    newer producer still load; they simply never match.

    Attributes:
        type: Condition type identifier.
        value: Comparison bound, list of accepted values, or (for
            ``custom``) a callable taking the :class:`SpendContext`.
        value_to: Upper bound for ``amount_between``.
    """

    type: str
    value: Any = None
    value_to: Any = None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_members(value: Any) -> list[Any] | None:
    """Return the accepted values of a membership condition, or None."""
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return None


def _greater_than(actual: float | None, bound: Any) -> bool:
    return actual is not None and _is_number(bound) and actual > bound


def _less_than(actual: float | None, bound: Any) -> bool:
    return actual is not None and _is_number(bound) and actual < bound


def _member_of(actual: str | None, value: Any, negate: bool) -> bool:
    members = _as_members(value)
    if actual is None or members is None:
        return False
    return (actual in members) != negate


def _evaluate_custom(condition: Condition, context: SpendContext) -> bool:
    predicate = condition.value
    if not callable(predicate):
        return False
    try:
        return bool(predicate(context))
    except Exception:  # noqa: BLE001
        logger.warning(
            "Custom condition predicate %r raised; treating as not satisfied.",
            getattr(predicate, "__qualname__", predicate),
            exc_info=True,
        )
        return False


def evaluate_condition(condition: Condition, context: SpendContext) -> bool:
    """
    Evaluate a single condition against a spend context.

    Evaluation is fail-closed: a condition that references a context field
    the context does not carry, uses a bound of the wrong shape, or names an
    unknown type is never satisfied. This function never raises.

    Args:
        condition: The :class:`Condition` to evaluate.
        context: The :class:`SpendContext` to evaluate against.

    Returns:
        True if the condition holds.
    """
    kind = condition.type

    if kind == ConditionType.AMOUNT_GREATER_THAN:
        return _greater_than(context.amount, condition.value)
    if kind == ConditionType.AMOUNT_LESS_THAN:
        return _less_than(context.amount, condition.value)
    if kind == ConditionType.AMOUNT_BETWEEN:
        low, high = condition.value, condition.value_to
        return (
            context.amount is not None
            and _is_number(low)
            and _is_number(high)
            and low <= context.amount <= high
        )
    if kind == ConditionType.QUANTITY_GREATER_THAN:
        return _greater_than(context.quantity, condition.value)
    if kind == ConditionType.QUANTITY_LESS_THAN:
        return _less_than(context.quantity, condition.value)

    if kind in (ConditionType.CATEGORY_IN, ConditionType.CATEGORY_NOT_IN):
        members = _as_members(condition.value)
        if context.categories is None or members is None:
            return False
        overlaps = any(category in context.categories for category in members)
        return overlaps if kind == ConditionType.CATEGORY_IN else not overlaps

    if kind == ConditionType.USER_ROLE_IN:
        return _member_of(context.user_role, condition.value, negate=False)
    if kind == ConditionType.USER_ROLE_NOT_IN:
        return _member_of(context.user_role, condition.value, negate=True)
    if kind == ConditionType.DEPARTMENT_IN:
        return _member_of(context.department, condition.value, negate=False)
    if kind == ConditionType.DEPARTMENT_NOT_IN:
        return _member_of(context.department, condition.value, negate=True)
    if kind == ConditionType.COST_CENTER_IN:
        return _member_of(context.cost_center, condition.value, negate=False)
    if kind == ConditionType.COST_CENTER_NOT_IN:
        return _member_of(context.cost_center, condition.value, negate=True)
    if kind == ConditionType.VENDOR_IN:
        return _member_of(context.vendor_id, condition.value, negate=False)
    if kind == ConditionType.VENDOR_NOT_IN:
        return _member_of(context.vendor_id, condition.value, negate=True)

    if kind == ConditionType.CUSTOM:
        return _evaluate_custom(condition, context)

    return False
