# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from spend_governance.audit.logger import AuditLogger
from spend_governance.audit.query import AuditFilter, AuditQueryResult, aggregate_outcomes, apply_filter
from spend_governance.audit.record import AuditRecord, DecisionContext, create_record

__all__ = [
    "AuditLogger",
    "AuditFilter",
    "AuditQueryResult",
    "AuditRecord",
    "DecisionContext",
    "apply_filter",
    "aggregate_outcomes",
    "create_record",
]
