# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import logging
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from spend_governance.policy.conditions import Condition, SpendContext, evaluate_condition
from spend_governance.types import ConditionType

logger = logging.getLogger("spend_governance.policy")


# ---------------------------------------------------------------------------
# Rule actions
# ---------------------------------------------------------------------------


class AutoApproveAction(BaseModel, frozen=True):
    """Approve the spend without human review."""

    type: Literal["auto_approve"] = "auto_approve"


class RequireApprovalAction(BaseModel, frozen=True):
    """Require a single approval from any of ``approver_ids``."""

    type: Literal["require_approval"] = "require_approval"
    approver_ids: list[str] = Field(default_factory=list)


class RequireMultiApprovalAction(BaseModel, frozen=True):
    """Require ``required_approvals`` distinct approvals from ``approver_ids``."""

    type: Literal["require_multi_approval"] = "require_multi_approval"
    approver_ids: list[str] = Field(default_factory=list)
    required_approvals: Annotated[int, Field(ge=1)] = 2


class EscalateAction(BaseModel, frozen=True):
    """Hand the decision to a single escalation target."""

    type: Literal["escalate"] = "escalate"
    escalate_to: str | None = None


class RejectAction(BaseModel, frozen=True):
    """Refuse the spend outright."""

    type: Literal["reject"] = "reject"


class NotifyAction(BaseModel, frozen=True):
    """Let the spend through and tell ``recipients`` about it."""

    type: Literal["notify"] = "notify"
    message: str | None = None
    recipients: list[str] = Field(default_factory=list)


RuleAction = Annotated[
    Union[
        AutoApproveAction,
        RequireApprovalAction,
        RequireMultiApprovalAction,
        EscalateAction,
        RejectAction,
        NotifyAction,
    ],
    Field(discriminator="type"),
]

APPROVAL_ACTION_TYPES = frozenset({"require_approval", "require_multi_approval", "escalate"})


# ---------------------------------------------------------------------------
# Rules and results
# ---------------------------------------------------------------------------


class Rule(BaseModel, frozen=True):
    """
    An approval rule: when every condition holds, ``action`` applies.

    Attributes:
        id: Unique rule identifier.
        name: Human-readable name.
        description: Optional longer explanation.
        conditions: Conditions combined with AND. An empty list always holds.
        action: What to do when the rule matches.
        priority: Evaluation order; lower values are evaluated first and win.
        is_active: Inactive rules never match.
    """

    id: str
    name: str
    description: str | None = None
    conditions: list[Condition] = Field(default_factory=list)
    action: RuleAction
    priority: int = 100
    is_active: bool = True


class RuleCheck(BaseModel, frozen=True):
    """Outcome of evaluating one rule."""

    matched: bool
    failed_conditions: list[Condition] = Field(default_factory=list)


class RuleEvaluation(BaseModel, frozen=True):
    """Audit entry for one rule inside a :class:`RuleEvaluationResult`."""

    rule: Rule
    matched: bool
    failed_conditions: list[Condition] = Field(default_factory=list)


class RuleEvaluationResult(BaseModel, frozen=True):
    """
    Result of evaluating a rule set.

    Attributes:
        matched: True if any rule matched.
        matched_rule: The authoritative (lowest priority) matching rule.
        action: The action of ``matched_rule``.
        evaluations: One entry per rule, in priority order.
    """

    matched: bool
    matched_rule: Rule | None = None
    action: RuleAction | None = None
    evaluations: list[RuleEvaluation] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def evaluate_rule(rule: Rule, context: SpendContext) -> RuleCheck:
    """
    Evaluate a single rule against a spend context.

    An inactive rule is not evaluated: it reports ``matched=False`` with
    every one of its conditions listed as failed.

    Args:
        rule: The rule to evaluate.
        context: The spend context.

    Returns:
        A :class:`RuleCheck` with the conditions that did not hold.
    """
    if not rule.is_active:
        return RuleCheck(matched=False, failed_conditions=list(rule.conditions))

    failed = [
        condition
        for condition in rule.conditions
        if not evaluate_condition(condition, context)
    ]
    return RuleCheck(matched=not failed, failed_conditions=failed)


def evaluate_rules(rules: list[Rule], context: SpendContext) -> RuleEvaluationResult:
    """
    Evaluate a rule set and pick the first matching rule by priority.

    Rules are stably sorted by ascending ``priority``; rules sharing a
    priority keep their input order. Every rule is evaluated so the result
    carries a complete audit trail, but only the first match decides.

    Args:
        rules: The rule set. Not modified.
        context: The spend context.

    Returns:
        A :class:`RuleEvaluationResult`.
    """
    evaluations: list[RuleEvaluation] = []
    matched_rule: Rule | None = None

    for rule in sorted(rules, key=lambda r: r.priority):
        check = evaluate_rule(rule, context)
        evaluations.append(
            RuleEvaluation(
                rule=rule,
                matched=check.matched,
                failed_conditions=check.failed_conditions,
            )
        )
        if check.matched and matched_rule is None:
            matched_rule = rule

    if matched_rule is None:
        logger.debug("No rule matched across %d rule(s).", len(evaluations))
        return RuleEvaluationResult(matched=False, evaluations=evaluations)

    logger.debug(
        "Rule '%s' (priority %d) matched with action '%s'.",
        matched_rule.id,
        matched_rule.priority,
        matched_rule.action.type,
    )
    return RuleEvaluationResult(
        matched=True,
        matched_rule=matched_rule,
        action=matched_rule.action,
        evaluations=evaluations,
    )


# ---------------------------------------------------------------------------
# Decision helpers
# ---------------------------------------------------------------------------


def get_required_approvers(result: RuleEvaluationResult) -> list[str]:
    """Return the approver IDs named by the decisive action, if any."""
    action = result.action
    if not result.matched or action is None:
        return []
    if isinstance(action, (RequireApprovalAction, RequireMultiApprovalAction)):
        return list(action.approver_ids)
    if isinstance(action, EscalateAction):
        return [action.escalate_to] if action.escalate_to else []
    return []


def requires_approval(result: RuleEvaluationResult) -> bool:
    """
    Return True if the spend needs human approval.

    Spend that no rule matched requires approval.
    """
    if not result.matched or result.action is None:
        return True
    return result.action.type in APPROVAL_ACTION_TYPES


def can_auto_approve(result: RuleEvaluationResult) -> bool:
    """Return True if the decisive action is ``auto_approve``."""
    return result.matched and result.action is not None and result.action.type == "auto_approve"


def should_reject(result: RuleEvaluationResult) -> bool:
    """Return True if the decisive action is ``reject``."""
    return result.matched and result.action is not None and result.action.type == "reject"


# ---------------------------------------------------------------------------
# Rule factories
# ---------------------------------------------------------------------------


def create_amount_rule(
    id: str,
    name: str,
    threshold: float,
    action: RuleAction,
    priority: int = 100,
) -> Rule:
    """Build a rule that matches amounts strictly above ``threshold``."""
    return Rule(
        id=id,
        name=name,
        conditions=[Condition(type=ConditionType.AMOUNT_GREATER_THAN, value=threshold)],
        action=action,
        priority=priority,
    )


def create_role_rule(
    id: str,
    name: str,
    roles: list[str],
    action: RuleAction,
    priority: int = 100,
) -> Rule:
    """Build a rule that matches requests from any of ``roles``."""
    return Rule(
        id=id,
        name=name,
        conditions=[Condition(type=ConditionType.USER_ROLE_IN, value=list(roles))],
        action=action,
        priority=priority,
    )


def create_department_rule(
    id: str,
    name: str,
    departments: list[str],
    action: RuleAction,
    priority: int = 100,
) -> Rule:
    """Build a rule that matches requests from any of ``departments``."""
    return Rule(
        id=id,
        name=name,
        conditions=[Condition(type=ConditionType.DEPARTMENT_IN, value=list(departments))],
        action=action,
        priority=priority,
    )


# Approver lists are left empty; deployments fill in manager and executive IDs.
DEFAULT_APPROVAL_RULES: tuple[Rule, ...] = (
    Rule(
        id="auto-approve-small",
        name="Auto-approve small orders",
        description="Automatically approve orders under 500",
        conditions=[Condition(type=ConditionType.AMOUNT_LESS_THAN, value=500)],
        action=AutoApproveAction(),
        priority=10,
    ),
    Rule(
        id="manager-approval-medium",
        name="Manager approval for medium orders",
        description="Require manager approval for orders 500-5000",
        conditions=[Condition(type=ConditionType.AMOUNT_BETWEEN, value=500, value_to=5000)],
        action=RequireApprovalAction(),
        priority=20,
    ),
    Rule(
        id="executive-approval-large",
        name="Executive approval for large orders",
        description="Require executive approval for orders over 5000",
        conditions=[Condition(type=ConditionType.AMOUNT_GREATER_THAN, value=5000)],
        action=RequireMultiApprovalAction(required_approvals=2),
        priority=30,
    ),
)
