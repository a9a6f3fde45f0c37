# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class DecisionContext(BaseModel, frozen=True):
    """
    What a spend decision was about.

    Attributes:
        rule_id: The rule that decided, if any matched.
        workflow_id: The approval workflow involved, if any.
        amount: The spend amount under evaluation.
        department: Requesting department.
        cost_center: Charged cost centre.
        vendor_id: Supplier of the goods.
        extra: Any additional key-value metadata.
    """

    rule_id: str | None = None
    workflow_id: str | None = None
    amount: float | None = None
    department: str | None = None
    cost_center: str | None = None
    vendor_id: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)


class AuditRecord(BaseModel, frozen=True):
    """
    An immutable record of one spend decision or workflow outcome.

    Attributes:
        record_id: Unique UUID for this record.
        outcome: A :class:`~spend_governance.types.SpendOutcome` value.
        decision: Short description of the decision taken.
        reasons: Reason strings collected while deciding.
        context: Optional structured context.
        timestamp: UTC creation time.
    """

    record_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    outcome: str
    decision: str
    reasons: list[str] = Field(default_factory=list)
    context: DecisionContext | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))


def create_record(
    outcome: str,
    decision: str,
    reasons: list[str] | None = None,
    context: DecisionContext | None = None,
) -> AuditRecord:
    return AuditRecord(
        outcome=outcome,
        decision=decision,
        reasons=reasons or [],
        context=context,
    )
