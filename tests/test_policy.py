# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""Tests for condition evaluation and rule selection."""

from __future__ import annotations

import logging

import pytest

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
    SpendContext,
    can_auto_approve,
    create_amount_rule,
    create_department_rule,
    create_role_rule,
    evaluate_condition,
    evaluate_rule,
    evaluate_rules,
    get_required_approvers,
    requires_approval,
    should_reject,
)
from spend_governance.types import ConditionType


def _scenario_rules() -> list[Rule]:
    return [
        Rule(
            id="small",
            name="Small orders",
            conditions=[Condition(type=ConditionType.AMOUNT_LESS_THAN, value=500)],
            action=AutoApproveAction(),
            priority=10,
        ),
        Rule(
            id="medium",
            name="Medium orders",
            conditions=[Condition(type=ConditionType.AMOUNT_BETWEEN, value=500, value_to=5000)],
            action=RequireApprovalAction(approver_ids=["alice"]),
            priority=20,
        ),
    ]


# ---------------------------------------------------------------------------
# TestConditions
# ---------------------------------------------------------------------------


class TestConditions:
    def test_amount_greater_than_is_strict(self) -> None:
        condition = Condition(type=ConditionType.AMOUNT_GREATER_THAN, value=100)
        assert evaluate_condition(condition, SpendContext(amount=101)) is True
        assert evaluate_condition(condition, SpendContext(amount=100)) is False

    def test_amount_between_is_inclusive(self) -> None:
        condition = Condition(type=ConditionType.AMOUNT_BETWEEN, value=500, value_to=5000)
        assert evaluate_condition(condition, SpendContext(amount=500)) is True
        assert evaluate_condition(condition, SpendContext(amount=5000)) is True
        assert evaluate_condition(condition, SpendContext(amount=5000.01)) is False

    def test_amount_between_without_upper_bound_never_matches(self) -> None:
        condition = Condition(type=ConditionType.AMOUNT_BETWEEN, value=500)
        assert evaluate_condition(condition, SpendContext(amount=700)) is False

    def test_missing_context_field_never_matches(self) -> None:
        assert evaluate_condition(
            Condition(type=ConditionType.AMOUNT_LESS_THAN, value=500), SpendContext()
        ) is False
        assert evaluate_condition(
            Condition(type=ConditionType.DEPARTMENT_NOT_IN, value=["sales"]), SpendContext()
        ) is False

    def test_wrong_bound_shape_never_matches(self) -> None:
        condition = Condition(type=ConditionType.AMOUNT_GREATER_THAN, value="100")
        assert evaluate_condition(condition, SpendContext(amount=500)) is False
        membership = Condition(type=ConditionType.USER_ROLE_IN, value="admin")
        assert evaluate_condition(membership, SpendContext(user_role="admin")) is False

    def test_quantity_conditions(self) -> None:
        context = SpendContext(quantity=12)
        assert evaluate_condition(Condition(type=ConditionType.QUANTITY_GREATER_THAN, value=10), context)
        assert not evaluate_condition(Condition(type=ConditionType.QUANTITY_LESS_THAN, value=10), context)

    def test_category_in_matches_any_overlap(self) -> None:
        context = SpendContext(categories=["hardware", "software"])
        assert evaluate_condition(
            Condition(type=ConditionType.CATEGORY_IN, value=["software", "travel"]), context
        )
        assert not evaluate_condition(
            Condition(type=ConditionType.CATEGORY_NOT_IN, value=["software"]), context
        )
        assert evaluate_condition(
            Condition(type=ConditionType.CATEGORY_NOT_IN, value=["travel"]), context
        )

    @pytest.mark.parametrize(
        ("kind", "field"),
        [
            (ConditionType.USER_ROLE_IN, "user_role"),
            (ConditionType.DEPARTMENT_IN, "department"),
            (ConditionType.COST_CENTER_IN, "cost_center"),
            (ConditionType.VENDOR_IN, "vendor_id"),
        ],
    )
    def test_membership_conditions(self, kind: str, field: str) -> None:
        context = SpendContext(**{field: "x"})
        assert evaluate_condition(Condition(type=kind, value=["x", "y"]), context) is True
        assert evaluate_condition(Condition(type=kind, value=["y"]), context) is False
        negated = kind.replace("_in", "_not_in")
        assert evaluate_condition(Condition(type=negated, value=["y"]), context) is True

    def test_custom_predicate_receives_context(self) -> None:
        condition = Condition(
            type=ConditionType.CUSTOM,
            value=lambda ctx: ctx.custom_data.get("project") == "apollo",
        )
        assert evaluate_condition(condition, SpendContext(custom_data={"project": "apollo"}))
        assert not evaluate_condition(condition, SpendContext())

    def test_custom_non_callable_never_matches(self) -> None:
        condition = Condition(type=ConditionType.CUSTOM, value=True)
        assert evaluate_condition(condition, SpendContext(amount=1)) is False

    def test_custom_predicate_that_raises_is_not_satisfied(self, caplog: pytest.LogCaptureFixture) -> None:
        def boom(ctx: SpendContext) -> bool:
            raise RuntimeError("lookup failed")

        condition = Condition(type=ConditionType.CUSTOM, value=boom)
        with caplog.at_level(logging.WARNING, logger="spend_governance.policy"):
            assert evaluate_condition(condition, SpendContext(amount=1)) is False
        assert "raised" in caplog.text

    def test_unknown_condition_type_never_matches(self) -> None:
        condition = Condition(type="weather_is_sunny", value=True)
        assert evaluate_condition(condition, SpendContext(amount=1)) is False


# ---------------------------------------------------------------------------
# TestRuleEvaluation
# ---------------------------------------------------------------------------


class TestRuleEvaluation:
    def test_rule_with_no_conditions_matches(self) -> None:
        rule = Rule(id="any", name="Any", action=AutoApproveAction())
        assert evaluate_rule(rule, SpendContext()).matched is True

    def test_inactive_rule_reports_all_conditions_failed(self) -> None:
        conditions = [
            Condition(type=ConditionType.AMOUNT_LESS_THAN, value=500),
            Condition(type=ConditionType.DEPARTMENT_IN, value=["it"]),
        ]
        rule = Rule(id="off", name="Off", conditions=conditions, action=RejectAction(), is_active=False)
        check = evaluate_rule(rule, SpendContext(amount=10, department="it"))
        assert check.matched is False
        assert check.failed_conditions == conditions

    def test_failed_conditions_lists_only_failures(self) -> None:
        passing = Condition(type=ConditionType.AMOUNT_LESS_THAN, value=500)
        failing = Condition(type=ConditionType.DEPARTMENT_IN, value=["it"])
        rule = Rule(id="r", name="R", conditions=[passing, failing], action=AutoApproveAction())
        check = evaluate_rule(rule, SpendContext(amount=10, department="sales"))
        assert check.failed_conditions == [failing]

    def test_scenario_small_order_auto_approved(self) -> None:
        result = evaluate_rules(_scenario_rules(), SpendContext(amount=300))
        assert result.matched_rule is not None and result.matched_rule.id == "small"
        assert isinstance(result.action, AutoApproveAction)
        assert can_auto_approve(result) is True
        assert requires_approval(result) is False

    def test_scenario_medium_order_requires_approval(self) -> None:
        result = evaluate_rules(_scenario_rules(), SpendContext(amount=1200))
        assert isinstance(result.action, RequireApprovalAction)
        assert requires_approval(result) is True
        assert get_required_approvers(result) == ["alice"]

    def test_scenario_unmatched_order_requires_approval(self) -> None:
        result = evaluate_rules(_scenario_rules(), SpendContext(amount=9000))
        assert result.matched is False
        assert result.action is None
        assert requires_approval(result) is True
        assert get_required_approvers(result) == []

    def test_selection_is_independent_of_input_order(self) -> None:
        rules = _scenario_rules()
        forward = evaluate_rules(rules, SpendContext(amount=300))
        backward = evaluate_rules(list(reversed(rules)), SpendContext(amount=300))
        assert forward.matched_rule == backward.matched_rule

    def test_one_evaluation_per_rule_in_priority_order(self) -> None:
        rules = list(reversed(_scenario_rules()))
        result = evaluate_rules(rules, SpendContext(amount=300))
        assert [e.rule.id for e in result.evaluations] == ["small", "medium"]
        assert [e.matched for e in result.evaluations] == [True, False]

    def test_priority_ties_keep_input_order(self) -> None:
        first = Rule(id="first", name="First", action=AutoApproveAction(), priority=5)
        second = Rule(id="second", name="Second", action=RejectAction(), priority=5)
        assert evaluate_rules([first, second], SpendContext()).matched_rule == first
        assert evaluate_rules([second, first], SpendContext()).matched_rule == second

    def test_inactive_rule_is_skipped(self) -> None:
        inactive = Rule(id="off", name="Off", action=RejectAction(), priority=1, is_active=False)
        fallback = Rule(id="on", name="On", action=AutoApproveAction(), priority=2)
        result = evaluate_rules([inactive, fallback], SpendContext())
        assert result.matched_rule == fallback

    def test_evaluate_rules_does_not_modify_input(self) -> None:
        rules = list(reversed(_scenario_rules()))
        snapshot = list(rules)
        evaluate_rules(rules, SpendContext(amount=300))
        assert rules == snapshot


# ---------------------------------------------------------------------------
# TestDecisionHelpers
# ---------------------------------------------------------------------------


class TestDecisionHelpers:
    def _result_for(self, action):
        rule = Rule(id="r", name="R", action=action)
        return evaluate_rules([rule], SpendContext())

    def test_multi_approval_requires_approval(self) -> None:
        result = self._result_for(RequireMultiApprovalAction(approver_ids=["a", "b"], required_approvals=2))
        assert requires_approval(result) is True
        assert get_required_approvers(result) == ["a", "b"]

    def test_escalate_requires_approval_from_target(self) -> None:
        result = self._result_for(EscalateAction(escalate_to="cfo"))
        assert requires_approval(result) is True
        assert get_required_approvers(result) == ["cfo"]

    def test_reject(self) -> None:
        result = self._result_for(RejectAction())
        assert should_reject(result) is True
        assert requires_approval(result) is False

    def test_notify_does_not_require_approval(self) -> None:
        result = self._result_for(NotifyAction(message="FYI", recipients=["finance"]))
        assert requires_approval(result) is False
        assert can_auto_approve(result) is False


# ---------------------------------------------------------------------------
# TestRuleFactories
# ---------------------------------------------------------------------------


class TestRuleFactories:
    def test_amount_rule_matches_above_threshold(self) -> None:
        rule = create_amount_rule("big", "Big", 1000, RejectAction())
        assert evaluate_rule(rule, SpendContext(amount=1001)).matched
        assert not evaluate_rule(rule, SpendContext(amount=1000)).matched

    def test_role_rule(self) -> None:
        rule = create_role_rule("interns", "Interns", ["intern"], RequireApprovalAction())
        assert evaluate_rule(rule, SpendContext(user_role="intern")).matched

    def test_department_rule(self) -> None:
        rule = create_department_rule("mkt", "Marketing", ["marketing"], NotifyAction())
        assert evaluate_rule(rule, SpendContext(department="marketing")).matched

    def test_default_rules_cover_small_medium_and_large(self) -> None:
        rules = list(DEFAULT_APPROVAL_RULES)
        assert can_auto_approve(evaluate_rules(rules, SpendContext(amount=100)))
        medium = evaluate_rules(rules, SpendContext(amount=2000))
        assert isinstance(medium.action, RequireApprovalAction)
        large = evaluate_rules(rules, SpendContext(amount=20000))
        assert isinstance(large.action, RequireMultiApprovalAction)
        assert large.action.required_approvals == 2
