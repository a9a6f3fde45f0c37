# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from spend_governance.policy.conditions import Condition, SpendContext, evaluate_condition
from spend_governance.policy.rules import (
    DEFAULT_APPROVAL_RULES,
    AutoApproveAction,
    EscalateAction,
    NotifyAction,
    RejectAction,
    RequireApprovalAction,
    RequireMultiApprovalAction,
    Rule,
    RuleAction,
    RuleCheck,
    RuleEvaluation,
    RuleEvaluationResult,
    can_auto_approve,
    create_amount_rule,
    create_department_rule,
    create_role_rule,
    evaluate_rule,
    evaluate_rules,
    get_required_approvers,
    requires_approval,
    should_reject,
)

__all__ = [
    "SpendContext",
    "Condition",
    "evaluate_condition",
    "Rule",
    "RuleAction",
    "AutoApproveAction",
    "RequireApprovalAction",
    "RequireMultiApprovalAction",
    "EscalateAction",
    "RejectAction",
    "NotifyAction",
    "RuleCheck",
    "RuleEvaluation",
    "RuleEvaluationResult",
    "evaluate_rule",
    "evaluate_rules",
    "get_required_approvers",
    "requires_approval",
    "can_auto_approve",
    "should_reject",
    "create_amount_rule",
    "create_role_rule",
    "create_department_rule",
    "DEFAULT_APPROVAL_RULES",
]
