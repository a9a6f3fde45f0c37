# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from typing import Literal

# Workflow and step lifecycle states.
WorkflowStatus = Literal["draft", "pending", "in_progress", "approved", "rejected", "cancelled"]
StepStatus = Literal["pending", "in_review", "approved", "rejected", "skipped", "cancelled"]
ApprovalActionType = Literal["approve", "reject", "request_changes", "delegate", "skip"]

OPEN_STEP_STATUSES = frozenset({"pending", "in_review"})
COMPLETED_STEP_STATUSES = frozenset({"approved", "skipped"})

SpendingPeriod = Literal["daily", "weekly", "monthly", "quarterly", "yearly", "custom"]

SPENDING_PERIOD_VALUES = frozenset(
    {"daily", "weekly", "monthly", "quarterly", "yearly", "custom"}
)

# Periods whose bounds are derived from the calendar. ``custom`` periods
# carry explicit bounds instead.
CALENDAR_PERIOD_VALUES = frozenset({"daily", "weekly", "monthly", "quarterly", "yearly"})

ThresholdLevel = Literal["safe", "warning", "danger", "exceeded"]
TrendDirection = Literal["up", "down", "stable"]


class ConditionType(str):
    """
    Condition type identifiers understood by the policy evaluator.

    Any other string is accepted on a :class:`~spend_governance.policy.Condition`
    but never matches.
    """

    AMOUNT_GREATER_THAN = "amount_greater_than"
    AMOUNT_LESS_THAN = "amount_less_than"
    AMOUNT_BETWEEN = "amount_between"
    QUANTITY_GREATER_THAN = "quantity_greater_than"
    QUANTITY_LESS_THAN = "quantity_less_than"
    CATEGORY_IN = "category_in"
    CATEGORY_NOT_IN = "category_not_in"
    USER_ROLE_IN = "user_role_in"
    USER_ROLE_NOT_IN = "user_role_not_in"
    DEPARTMENT_IN = "department_in"
    DEPARTMENT_NOT_IN = "department_not_in"
    COST_CENTER_IN = "cost_center_in"
    COST_CENTER_NOT_IN = "cost_center_not_in"
    VENDOR_IN = "vendor_in"
    VENDOR_NOT_IN = "vendor_not_in"
    CUSTOM = "custom"


CONDITION_TYPE_VALUES = frozenset(
    {
        "amount_greater_than",
        "amount_less_than",
        "amount_between",
        "quantity_greater_than",
        "quantity_less_than",
        "category_in",
        "category_not_in",
        "user_role_in",
        "user_role_not_in",
        "department_in",
        "department_not_in",
        "cost_center_in",
        "cost_center_not_in",
        "vendor_in",
        "vendor_not_in",
        "custom",
    }
)


class SpendOutcome(str):
    """Outcomes recorded by the engine and the audit log."""

    AUTO_APPROVED = "auto_approved"
    APPROVAL_REQUIRED = "approval_required"
    ESCALATED = "escalated"
    REJECTED = "rejected"
    NOTIFIED = "notified"
    WORKFLOW_APPROVED = "workflow_approved"
    WORKFLOW_REJECTED = "workflow_rejected"
