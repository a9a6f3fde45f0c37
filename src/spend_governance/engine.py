# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from pydantic import BaseModel, Field

from spend_governance.approval.flow import ApprovalFlow, WorkflowCallback
from spend_governance.approval.models import ApprovalStep, ApprovalWorkflow, Approver
from spend_governance.audit.logger import AuditLogger
from spend_governance.audit.record import DecisionContext
from spend_governance.budget.meter import SpendingMeter, SpendingMeterState
from spend_governance.config import GovernanceConfig
from spend_governance.policy.conditions import SpendContext
from spend_governance.policy.rules import (
    DEFAULT_APPROVAL_RULES,
    RequireMultiApprovalAction,
    Rule,
    RuleEvaluationResult,
    evaluate_rules,
    get_required_approvers,
    requires_approval,
)
from spend_governance.types import SpendOutcome

logger = logging.getLogger("spend_governance.engine")

_OUTCOME_BY_ACTION: dict[str, str] = {
    "auto_approve": SpendOutcome.AUTO_APPROVED,
    "require_approval": SpendOutcome.APPROVAL_REQUIRED,
    "require_multi_approval": SpendOutcome.APPROVAL_REQUIRED,
    "escalate": SpendOutcome.ESCALATED,
    "reject": SpendOutcome.REJECTED,
    "notify": SpendOutcome.NOTIFIED,
}


class SpendDecision(BaseModel, frozen=True):
    """
    The result of running a :class:`SpendContext` through the engine.

    Attributes:
        outcome: A :class:`~spend_governance.types.SpendOutcome` value.
        requires_approval: True when a human must approve before posting.
        approver_ids: Approvers named by the decisive rule.
        required_approvals: Distinct approvals a workflow for this decision
            needs.
        reasons: Human-readable explanation, also written to the audit log.
        evaluation: The full rule evaluation.
        audit_record_id: The audit record written for this decision.
        context: The evaluated context.
    """

    outcome: str
    requires_approval: bool
    approver_ids: list[str] = Field(default_factory=list)
    required_approvals: int = 1
    reasons: list[str] = Field(default_factory=list)
    evaluation: RuleEvaluationResult
    audit_record_id: str
    context: SpendContext


class SpendGovernanceEngine:
    """
    Composes the rule set, approval workflows, spending meters and the audit
    log into one pipeline:

    1. :meth:`evaluate` decides what a purchase needs (always audited).
    2. :meth:`open_workflow` builds an approval workflow when it needs one.
    3. :meth:`track` drives the workflow; final outcomes are audited.
    4. :meth:`post_transaction` charges the approved spend to a meter.

    Spend that no rule matches requires approval.

    Example::

        engine = SpendGovernanceEngine()
        decision = engine.evaluate(SpendContext(amount=1200, department="it"))
        if decision.requires_approval:
            workflow = engine.open_workflow(decision, initiator=buyer, approvers=[manager])
            flow = engine.track(workflow, current_user=manager)
            flow.approve()
        engine.post_transaction(meter, 1200)
    """

    def __init__(
        self,
        rules: Iterable[Rule] | None = None,
        config: GovernanceConfig | None = None,
    ) -> None:
        cfg = config or GovernanceConfig()
        self._config = cfg
        self._rules: list[Rule] = list(rules) if rules is not None else list(DEFAULT_APPROVAL_RULES)
        self.audit = AuditLogger(cfg.audit)

    @property
    def config(self) -> GovernanceConfig:
        return self._config

    @property
    def rules(self) -> list[Rule]:
        """A copy of the active rule set."""
        return list(self._rules)

    def add_rule(self, rule: Rule) -> None:
        """Add ``rule``, replacing any rule with the same ID."""
        self._rules = [r for r in self._rules if r.id != rule.id]
        self._rules.append(rule)

    def remove_rule(self, rule_id: str) -> bool:
        """Remove a rule by ID. Returns False if no such rule exists."""
        kept = [r for r in self._rules if r.id != rule_id]
        removed = len(kept) != len(self._rules)
        self._rules = kept
        return removed

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def evaluate(self, context: SpendContext) -> SpendDecision:
        """
        Evaluate a spend context against the rule set and audit the result.

        Args:
            context: The :class:`SpendContext` to evaluate.

        Returns:
            A :class:`SpendDecision`.
        """
        result = evaluate_rules(self._rules, context)
        rule = result.matched_rule

        if rule is None or result.action is None:
            outcome = SpendOutcome.APPROVAL_REQUIRED
            reasons = ["No rule matched; approval required"]
        else:
            outcome = _OUTCOME_BY_ACTION[result.action.type]
            reasons = [f"Rule '{rule.id}' ({rule.name}) matched: {result.action.type}"]
            if rule.description:
                reasons.append(rule.description)

        required_approvals = (
            result.action.required_approvals
            if isinstance(result.action, RequireMultiApprovalAction)
            else 1
        )

        if self._config.policy.log_evaluations:
            logger.debug(
                "Spend of %s evaluated against %d rule(s): %s.",
                context.amount,
                len(self._rules),
                outcome,
            )

        record = self.audit.log(
            outcome=outcome,
            decision=f"Spend of {context.amount}: {outcome.upper()}",
            reasons=reasons,
            context=DecisionContext(
                rule_id=rule.id if rule is not None else None,
                amount=context.amount,
                department=context.department,
                cost_center=context.cost_center,
                vendor_id=context.vendor_id,
            ),
        )

        return SpendDecision(
            outcome=outcome,
            requires_approval=requires_approval(result),
            approver_ids=get_required_approvers(result),
            required_approvals=required_approvals,
            reasons=reasons,
            evaluation=result,
            audit_record_id=record.record_id,
            context=context,
        )

    def open_workflow(
        self,
        decision: SpendDecision,
        initiator: Approver,
        approvers: Sequence[Approver] | None = None,
        name: str | None = None,
        target_entity: dict[str, Any] | None = None,
    ) -> ApprovalWorkflow:
        """
        Build a single-step approval workflow for a decision.

        ``approvers`` acts as a directory. IDs named by the decisive rule are
        resolved against it; unknown IDs become ``Approver(id=id, name=id)``.
        When the rule names no approvers, every directory entry is required.
        The step's quorum is ``decision.required_approvals``.

        Raises:
            ValueError: If the decision does not require approval.
        """
        if not decision.requires_approval:
            raise ValueError(
                f"Decision '{decision.audit_record_id}' ({decision.outcome}) "
                "does not require approval."
            )

        directory = {approver.id: approver for approver in approvers or []}
        if decision.approver_ids:
            required = [
                directory.get(approver_id, Approver(id=approver_id, name=approver_id))
                for approver_id in decision.approver_ids
            ]
        else:
            required = list(directory.values())

        workflow = ApprovalWorkflow(
            name=name or f"Approval for spend of {decision.context.amount}",
            initiator=initiator,
            target_entity=target_entity,
            steps=[
                ApprovalStep(
                    id="approval",
                    order=0,
                    name="Approval",
                    required_approvers=required,
                    min_approvals=decision.required_approvals,
                )
            ],
        )
        logger.info(
            "Opened workflow '%s' with %d approver(s), quorum %d.",
            workflow.id,
            len(required),
            decision.required_approvals,
        )
        return workflow

    def track(
        self,
        workflow: ApprovalWorkflow,
        current_user: Approver | None = None,
        on_approved: WorkflowCallback | None = None,
        on_rejected: WorkflowCallback | None = None,
    ) -> ApprovalFlow:
        """
        Return an :class:`ApprovalFlow` whose final outcomes are audited.

        ``on_approved`` and ``on_rejected`` run after the audit record is
        written.
        """

        def _approved(updated: ApprovalWorkflow) -> None:
            self._audit_workflow(updated, SpendOutcome.WORKFLOW_APPROVED)
            if on_approved is not None:
                on_approved(updated)

        def _rejected(updated: ApprovalWorkflow) -> None:
            self._audit_workflow(updated, SpendOutcome.WORKFLOW_REJECTED)
            if on_rejected is not None:
                on_rejected(updated)

        return ApprovalFlow(
            workflow,
            current_user=current_user,
            on_approved=_approved,
            on_rejected=_rejected,
            config=self._config.workflow,
        )

    def post_transaction(
        self,
        meter: SpendingMeter,
        amount: float,
        enforce: bool = True,
    ) -> SpendingMeterState:
        """
        Charge approved spend to a meter.

        Raises:
            BudgetExceededError: If ``enforce`` is True and the meter refuses
                the amount.
        """
        state = meter.record_purchase(amount) if enforce else meter.add_spending(amount)
        logger.info(
            "Posted %.2f to limit '%s' (%.1f%% used).",
            amount,
            meter.limit.id,
            state.percentage,
        )
        return state

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _audit_workflow(self, workflow: ApprovalWorkflow, outcome: str) -> None:
        reasons = [
            f"{action.approver.id}: {action.type}" + (f" ({action.comment})" if action.comment else "")
            for step in workflow.steps
            for action in step.actions
        ]
        self.audit.log(
            outcome=outcome,
            decision=f"Workflow '{workflow.name}': {outcome.upper()}",
            reasons=reasons,
            context=DecisionContext(
                workflow_id=workflow.id,
                extra=dict(workflow.target_entity or {}),
            ),
        )
