# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import collections

from spend_governance.audit.query import AuditFilter, AuditQueryResult, apply_filter
from spend_governance.audit.record import AuditRecord, DecisionContext, create_record
from spend_governance.config import AuditConfig


class AuditLogger:
    """
    In-memory trail of spend decisions and workflow outcomes.

    Records live in a deque bounded by :attr:`AuditConfig.max_records`; the
    oldest record is evicted once it is full. Persisting the trail is the
    host's concern.

    Example::

        audit = AuditLogger(AuditConfig(max_records=1000))
        audit.log(SpendOutcome.AUTO_APPROVED, "Order auto-approved", reasons=["Small orders"])
        rejected = audit.query(AuditFilter(outcome=SpendOutcome.REJECTED))
    """

    def __init__(self, config: AuditConfig | None = None) -> None:
        self._config = config or AuditConfig()
        self._records: collections.deque[AuditRecord] = collections.deque(
            maxlen=self._config.max_records
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def log(
        self,
        outcome: str,
        decision: str,
        reasons: list[str] | None = None,
        context: DecisionContext | None = None,
    ) -> AuditRecord:
        """
        Append a record.

        The context is dropped when :attr:`AuditConfig.include_context` is
        False.
        """
        record = create_record(
            outcome=outcome,
            decision=decision,
            reasons=reasons,
            context=context if self._config.include_context else None,
        )
        self._records.append(record)
        return record

    def query(self, audit_filter: AuditFilter | None = None) -> AuditQueryResult:
        """Return records matching ``audit_filter``, or all records."""
        return apply_filter(list(self._records), audit_filter or AuditFilter())

    def count(self) -> int:
        return len(self._records)

    def clear(self) -> int:
        """Remove all records and return how many there were."""
        count = len(self._records)
        self._records.clear()
        return count

    def latest(self, n: int = 10) -> list[AuditRecord]:
        """
        Return the ``n`` most recent records, most recent last.

        Raises:
            ValueError: If ``n`` is less than 1.
        """
        if n < 1:
            raise ValueError(f"n must be >= 1; got {n}.")
        return list(self._records)[-n:]
