# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""Shared fixtures for spend-governance tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from spend_governance.approval.models import ApprovalStep, ApprovalWorkflow, Approver
from spend_governance.budget.limits import SpendingLimit
from spend_governance.engine import SpendGovernanceEngine

FIXED_NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    """A clock frozen at 2024-03-15 12:00 UTC."""
    return lambda: FIXED_NOW


@pytest.fixture
def alice() -> Approver:
    return Approver(id="alice", name="Alice Martin", role="manager")


@pytest.fixture
def bob() -> Approver:
    return Approver(id="bob", name="Bob Keller", role="finance")


@pytest.fixture
def carol() -> Approver:
    return Approver(id="carol", name="Carol Diaz", role="director")


@pytest.fixture
def requester() -> Approver:
    return Approver(id="dave", name="Dave Requester")


@pytest.fixture
def two_step_workflow(alice: Approver, bob: Approver, carol: Approver, requester: Approver) -> ApprovalWorkflow:
    """Manager step (one approval) followed by finance step (two approvals)."""
    return ApprovalWorkflow(
        id="wf-1",
        name="Laptop order",
        initiator=requester,
        steps=[
            ApprovalStep(id="manager", order=0, name="Manager", required_approvers=[alice]),
            ApprovalStep(
                id="finance",
                order=1,
                name="Finance",
                required_approvers=[bob, carol],
                min_approvals=2,
            ),
        ],
    )


@pytest.fixture
def monthly_limit() -> SpendingLimit:
    """A 1000 EUR limit for March 2024 with nothing spent."""
    return SpendingLimit(
        id="limit-it",
        name="IT department",
        max_amount=1000.0,
        period="monthly",
        period_start=datetime(2024, 3, 1, tzinfo=timezone.utc),
        period_end=datetime(2024, 3, 31, 23, 59, 59, 999000, tzinfo=timezone.utc),
    )


@pytest.fixture
def engine() -> SpendGovernanceEngine:
    """An engine with the default approval rules."""
    return SpendGovernanceEngine()
