# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, Field

from spend_governance.audit.record import AuditRecord
from spend_governance.types import SpendOutcome


class AuditFilter(BaseModel, frozen=True):
    """
    Criteria for querying audit records, combined with AND.

    Attributes:
        outcome: Only records with this outcome.
        rule_id: Only records whose context names this rule.
        workflow_id: Only records whose context names this workflow.
        since: Only records at or after this timestamp.
        until: Only records strictly before this timestamp.
        limit: Maximum records returned; 0 means no limit.
        offset: Matching records to skip first.
    """

    outcome: str | None = None
    rule_id: str | None = None
    workflow_id: str | None = None
    since: datetime | None = None
    until: datetime | None = None
    limit: Annotated[int, Field(ge=0)] = 0
    offset: Annotated[int, Field(ge=0)] = 0


class AuditQueryResult(BaseModel, frozen=True):
    """
    Attributes:
        records: Matching records, oldest first, after pagination.
        total_matched: Matches before ``limit`` and ``offset`` were applied.
        filter_applied: The filter used.
    """

    records: list[AuditRecord]
    total_matched: int
    filter_applied: AuditFilter


def apply_filter(records: Iterable[AuditRecord], audit_filter: AuditFilter) -> AuditQueryResult:
    matched = [record for record in records if _record_matches(record, audit_filter)]

    paginated = matched[audit_filter.offset :]
    if audit_filter.limit > 0:
        paginated = paginated[: audit_filter.limit]

    return AuditQueryResult(
        records=paginated,
        total_matched=len(matched),
        filter_applied=audit_filter,
    )


def _record_matches(record: AuditRecord, audit_filter: AuditFilter) -> bool:
    if audit_filter.outcome is not None and record.outcome != audit_filter.outcome:
        return False
    if audit_filter.since is not None and record.timestamp < audit_filter.since:
        return False
    if audit_filter.until is not None and record.timestamp >= audit_filter.until:
        return False

    ctx = record.context
    if audit_filter.rule_id is not None:
        if ctx is None or ctx.rule_id != audit_filter.rule_id:
            return False
    if audit_filter.workflow_id is not None:
        if ctx is None or ctx.workflow_id != audit_filter.workflow_id:
            return False
    return True


_DECISION_OUTCOMES = (
    SpendOutcome.AUTO_APPROVED,
    SpendOutcome.APPROVAL_REQUIRED,
    SpendOutcome.ESCALATED,
    SpendOutcome.REJECTED,
    SpendOutcome.NOTIFIED,
)


def aggregate_outcomes(records: Iterable[AuditRecord]) -> dict[str, Any]:
    """
    Count records per outcome.

    Returns:
        A dict with one count per :class:`~spend_governance.types.SpendOutcome`
        value, plus ``total``, ``auto_approval_rate`` and ``rejection_rate``.
        Rates are fractions of the policy decisions (workflow outcomes are
        excluded) and 0.0 when there are none.
    """
    counts: dict[str, int] = {
        str(outcome): 0
        for outcome in (
            *_DECISION_OUTCOMES,
            SpendOutcome.WORKFLOW_APPROVED,
            SpendOutcome.WORKFLOW_REJECTED,
        )
    }
    total = 0
    for record in records:
        total += 1
        if record.outcome in counts:
            counts[record.outcome] += 1

    decisions = sum(counts[outcome] for outcome in _DECISION_OUTCOMES)
    auto_rate = counts[SpendOutcome.AUTO_APPROVED] / decisions if decisions else 0.0
    rejection_rate = counts[SpendOutcome.REJECTED] / decisions if decisions else 0.0

    return {
        **counts,
        "total": total,
        "auto_approval_rate": auto_rate,
        "rejection_rate": rejection_rate,
    }
