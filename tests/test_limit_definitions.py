# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""Tests for limit configuration documents and input validation."""

from __future__ import annotations

from datetime import datetime

import pytest

from spend_governance.budget import (
    CostCenterLimitDefinition,
    DepartmentLimitDefinition,
    EmployeeLimitDefinition,
    LimitThreshold,
    SpendingTransaction,
    build_spending_limit,
    parse_limit_config,
    triggered_threshold_actions,
    validate_adjustment_input,
    validate_limit_config,
    validate_transaction_input,
)
from spend_governance.budget.limits import DEFAULT_CURRENCY, CurrencyConfig
from spend_governance.errors import ConfigurationError, LimitValidationError


def _employee_doc(**overrides) -> dict:
    doc = {
        "type": "employee",
        "name": "Travel allowance",
        "max_amount": 2500,
        "period": "monthly",
        "employee_id": "emp-42",
    }
    doc.update(overrides)
    return doc


# ---------------------------------------------------------------------------
# TestLimitConfigValidation
# ---------------------------------------------------------------------------


class TestLimitConfigValidation:
    def test_valid_employee_document(self) -> None:
        assert validate_limit_config(_employee_doc()) == []
        parsed = parse_limit_config(_employee_doc(order_limit=500))
        assert isinstance(parsed, EmployeeLimitDefinition)
        assert parsed.order_limit == 500
        assert parsed.thresholds == []

    def test_variants_are_selected_by_type(self) -> None:
        department = parse_limit_config(
            {
                "type": "department",
                "name": "R&D",
                "max_amount": 50_000,
                "period": "quarterly",
                "department_id": "rd",
                "department_name": "Research",
            }
        )
        assert isinstance(department, DepartmentLimitDefinition)
        cost_center = parse_limit_config(
            {
                "type": "cost_center",
                "name": "Ops",
                "max_amount": 10_000,
                "period": "yearly",
                "cost_center_code": "CC-100",
                "cost_center_name": "Operations",
            }
        )
        assert isinstance(cost_center, CostCenterLimitDefinition)

    def test_missing_and_unknown_type(self) -> None:
        doc = _employee_doc()
        del doc["type"]
        assert [e.field for e in validate_limit_config(doc)] == ["type"]
        errors = validate_limit_config(_employee_doc(type="project"))
        assert errors[0].field == "type"
        assert "project" in errors[0].message

    def test_reports_every_field_error(self) -> None:
        errors = validate_limit_config(
            _employee_doc(name="", max_amount=0, period="hourly", employee_id="")
        )
        fields = {e.field for e in errors}
        assert {"name", "max_amount", "period", "employee_id"} <= fields

    def test_max_amount_ceiling(self) -> None:
        assert validate_limit_config(_employee_doc(max_amount=999_999_999)) == []
        assert validate_limit_config(_employee_doc(max_amount=1_000_000_000))[0].field == "max_amount"

    def test_threshold_constraints(self) -> None:
        errors = validate_limit_config(
            _employee_doc(thresholds=[{"percentage": 120, "action": "shout"}])
        )
        fields = {e.field for e in errors}
        assert "thresholds.0.percentage" in fields
        assert "thresholds.0.action" in fields

    def test_currency_constraints(self) -> None:
        errors = validate_limit_config(
            _employee_doc(currency={"code": "EURO", "symbol": "€", "decimals": 5})
        )
        fields = {e.field for e in errors}
        assert {"currency.code", "currency.decimals"} <= fields

    def test_parse_raises_with_all_errors(self) -> None:
        with pytest.raises(LimitValidationError) as exc_info:
            parse_limit_config(_employee_doc(name="", max_amount=-5))
        error = exc_info.value
        assert error.code == "LIMIT_VALIDATION_FAILED"
        assert len(error.errors) == 2
        assert isinstance(error, ConfigurationError)


# ---------------------------------------------------------------------------
# TestInputValidation
# ---------------------------------------------------------------------------


class TestInputValidation:
    def test_transaction(self) -> None:
        assert validate_transaction_input({"amount": 12.5, "reference": "PO-1"}) == []
        errors = validate_transaction_input({"amount": 0, "reference": "x" * 101})
        assert {e.field for e in errors} == {"amount", "reference"}

    def test_transaction_to_record(self) -> None:
        when = datetime(2024, 3, 4)
        tx = SpendingTransaction(amount=40, transaction_date=when, category="office", reference="PO-9")
        record = tx.to_record()
        assert record.amount == 40
        assert record.date == when
        assert record.reference == "PO-9"

    def test_adjustment(self) -> None:
        assert validate_adjustment_input({"amount": -50, "reason": "Refund", "approved_by": "cfo"}) == []
        errors = validate_adjustment_input({"amount": 10, "reason": "", "approved_by": ""})
        assert {e.field for e in errors} == {"reason", "approved_by"}


# ---------------------------------------------------------------------------
# TestBuildSpendingLimit
# ---------------------------------------------------------------------------


class TestBuildSpendingLimit:
    def test_calendar_period_bounds(self) -> None:
        definition = parse_limit_config(_employee_doc())
        limit = build_spending_limit(definition, limit_id="emp-42-travel", reference_date=datetime(2024, 3, 15))
        assert limit.id == "emp-42-travel"
        assert limit.max_amount == 2500
        assert limit.spent_amount == 0
        assert limit.period_start == datetime(2024, 3, 1)
        assert limit.currency == DEFAULT_CURRENCY

    def test_custom_period_requires_bounds(self) -> None:
        definition = parse_limit_config(_employee_doc(period="custom"))
        with pytest.raises(ConfigurationError):
            build_spending_limit(definition)
        limit = build_spending_limit(
            definition,
            period_start=datetime(2024, 6, 1),
            period_end=datetime(2024, 6, 15),
        )
        assert limit.period_end == datetime(2024, 6, 15)

    def test_currency_is_carried(self) -> None:
        usd = {"code": "USD", "symbol": "$", "symbol_position": "before"}
        definition = parse_limit_config(_employee_doc(currency=usd))
        limit = build_spending_limit(definition, reference_date=datetime(2024, 3, 15))
        assert limit.currency == CurrencyConfig(code="USD", symbol="$", symbol_position="before")

    def test_triggered_threshold_actions(self) -> None:
        thresholds = [
            LimitThreshold(percentage=90, action="require_approval"),
            LimitThreshold(percentage=50, action="notify"),
            LimitThreshold(percentage=75, action="notify_manager", is_active=False),
        ]
        triggered = triggered_threshold_actions(thresholds, 92)
        assert [t.action for t in triggered] == ["notify", "require_approval"]
