# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Basic spend-governance example.

Evaluates a purchase against the rule set, routes it through a two-person
approval, and posts the approved amount into a departmental spending limit.

Run with:
    python examples/basic_spend_governance.py
"""
from __future__ import annotations

import logging
from datetime import datetime

from spend_governance import (
    Approver,
    AuditFilter,
    Condition,
    ConditionType,
    GovernanceConfig,
    MeterConfig,
    RequireMultiApprovalAction,
    Rule,
    SpendContext,
    SpendGovernanceEngine,
    SpendingMeter,
    SpendOutcome,
    build_spending_limit,
    parse_limit_config,
)
from spend_governance.audit import aggregate_outcomes
from spend_governance.policy import DEFAULT_APPROVAL_RULES


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # ------------------------------------------------------------------ #
    # 1. Build the engine with one extra rule for the IT department
    # ------------------------------------------------------------------ #
    it_rule = Rule(
        id="it-hardware",
        name="IT hardware needs two sign-offs",
        conditions=[
            Condition(type=ConditionType.DEPARTMENT_IN, value=["it"]),
            Condition(type=ConditionType.CATEGORY_IN, value=["hardware"]),
            Condition(type=ConditionType.AMOUNT_GREATER_THAN, value=1000),
        ],
        action=RequireMultiApprovalAction(approver_ids=["alice", "bob"], required_approvals=2),
        priority=5,
    )
    engine = SpendGovernanceEngine(
        rules=[it_rule, *DEFAULT_APPROVAL_RULES],
        config=GovernanceConfig(meter=MeterConfig(warning_threshold=70, danger_threshold=90)),
    )

    alice = Approver(id="alice", name="Alice Martin", role="it_manager")
    bob = Approver(id="bob", name="Bob Keller", role="finance")
    dave = Approver(id="dave", name="Dave Requester")

    # ------------------------------------------------------------------ #
    # 2. Load the department's spending limit
    # ------------------------------------------------------------------ #
    definition = parse_limit_config(
        {
            "type": "department",
            "name": "IT department",
            "max_amount": 5000,
            "period": "monthly",
            "department_id": "it",
            "department_name": "Information Technology",
        }
    )
    meter = SpendingMeter(
        build_spending_limit(definition, limit_id="limit-it", reference_date=datetime.now()),
        on_threshold_change=lambda level, state: print(f"  threshold -> {level} ({state.percentage:.0f}%)"),
        on_limit_exceeded=lambda state: print("  limit exceeded!"),
        config=engine.config.meter,
    )

    # ------------------------------------------------------------------ #
    # 3. Evaluate and approve a laptop order
    # ------------------------------------------------------------------ #
    context = SpendContext(amount=3200, department="it", categories=["hardware"])
    decision = engine.evaluate(context)
    print(f"Decision: {decision.outcome} ({'; '.join(decision.reasons)})")

    if decision.requires_approval:
        workflow = engine.open_workflow(
            decision,
            initiator=dave,
            approvers=[alice, bob],
            target_entity={"type": "order", "id": "ord-1001"},
        )
        flow = engine.track(workflow)
        flow.approve(actor=alice, comment="Replacement laptops")
        print(f"After first approval: {flow.workflow.status}")
        flow.approve(actor=bob)
        print(f"After second approval: {flow.workflow.status}")

        if flow.state.is_approved:
            state = engine.post_transaction(meter, context.amount or 0.0)
            print(f"Spent {state.spent:.2f} of {state.limit.max_amount:.2f} ({state.percentage:.0f}%)")

    # ------------------------------------------------------------------ #
    # 4. A small order is auto-approved
    # ------------------------------------------------------------------ #
    small = engine.evaluate(SpendContext(amount=120, department="it"))
    print(f"Small order: {small.outcome}")
    if small.outcome == SpendOutcome.AUTO_APPROVED and meter.can_spend(120):
        engine.post_transaction(meter, 120)

    # ------------------------------------------------------------------ #
    # 5. Inspect the audit trail
    # ------------------------------------------------------------------ #
    approved = engine.audit.query(AuditFilter(outcome=SpendOutcome.WORKFLOW_APPROVED))
    print(f"Approved workflows: {approved.total_matched}")
    print(aggregate_outcomes(engine.audit.query().records))


if __name__ == "__main__":
    main()
