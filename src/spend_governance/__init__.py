# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
spend-governance: policy rules, approval workflows and budget tracking for
B2B purchasing.

Quick start::

    from spend_governance import SpendContext, SpendGovernanceEngine

    engine = SpendGovernanceEngine()
    decision = engine.evaluate(SpendContext(amount=1200, department="it"))
    print(decision.outcome)  # approval_required
"""
from __future__ import annotations

from spend_governance.approval import (
    ApprovalAction,
    ApprovalFlow,
    ApprovalFlowState,
    ApprovalStep,
    ApprovalWorkflow,
    Approver,
    calculate_progress,
    derive_workflow_status,
    find_current_step_index,
)
from spend_governance.audit import AuditFilter, AuditLogger, AuditQueryResult, AuditRecord, DecisionContext
from spend_governance.budget import (
    DEFAULT_CURRENCY,
    CurrencyConfig,
    FieldError,
    SpendingLimit,
    SpendingLimitConfig,
    SpendingMeter,
    SpendingMeterState,
    SpendingThreshold,
    SpendRecord,
    build_spending_limit,
    calculate_spending,
    can_make_purchase,
    get_period_dates,
    parse_limit_config,
    validate_limit_config,
)
from spend_governance.config import (
    AuditConfig,
    BudgetConfig,
    GovernanceConfig,
    MeterConfig,
    PolicyConfig,
    WorkflowConfig,
)
from spend_governance.engine import SpendDecision, SpendGovernanceEngine
from spend_governance.errors import (
    BudgetExceededError,
    ConfigurationError,
    InvalidPeriodError,
    LimitValidationError,
    SpendGovernanceError,
)
from spend_governance.policy import (
    DEFAULT_APPROVAL_RULES,
    AutoApproveAction,
    Condition,
    EscalateAction,
    NotifyAction,
    RejectAction,
    RequireApprovalAction,
    RequireMultiApprovalAction,
    Rule,
    RuleEvaluationResult,
    SpendContext,
    evaluate_rules,
    requires_approval,
)
from spend_governance.types import (
    ConditionType,
    SpendingPeriod,
    SpendOutcome,
    ThresholdLevel,
    WorkflowStatus,
)

__version__ = "0.1.0"

__all__ = [
    # Core types
    "ConditionType",
    "SpendOutcome",
    "SpendingPeriod",
    "ThresholdLevel",
    "WorkflowStatus",
    # Configuration
    "GovernanceConfig",
    "PolicyConfig",
    "WorkflowConfig",
    "BudgetConfig",
    "MeterConfig",
    "AuditConfig",
    # Engine
    "SpendGovernanceEngine",
    "SpendDecision",
    # Policy
    "SpendContext",
    "Condition",
    "Rule",
    "AutoApproveAction",
    "RequireApprovalAction",
    "RequireMultiApprovalAction",
    "EscalateAction",
    "RejectAction",
    "NotifyAction",
    "RuleEvaluationResult",
    "evaluate_rules",
    "requires_approval",
    "DEFAULT_APPROVAL_RULES",
    # Approval
    "Approver",
    "ApprovalAction",
    "ApprovalStep",
    "ApprovalWorkflow",
    "ApprovalFlow",
    "ApprovalFlowState",
    "derive_workflow_status",
    "find_current_step_index",
    "calculate_progress",
    # Budget
    "SpendRecord",
    "SpendingLimitConfig",
    "SpendingLimit",
    "SpendingThreshold",
    "CurrencyConfig",
    "DEFAULT_CURRENCY",
    "SpendingMeter",
    "SpendingMeterState",
    "FieldError",
    "get_period_dates",
    "calculate_spending",
    "can_make_purchase",
    "validate_limit_config",
    "parse_limit_config",
    "build_spending_limit",
    # Audit
    "AuditLogger",
    "AuditFilter",
    "AuditQueryResult",
    "AuditRecord",
    "DecisionContext",
    # Errors
    "SpendGovernanceError",
    "ConfigurationError",
    "InvalidPeriodError",
    "LimitValidationError",
    "BudgetExceededError",
]
