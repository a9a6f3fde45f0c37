# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from spend_governance.approval.flow import ApprovalFlow
from spend_governance.approval.models import (
    ApprovalAction,
    ApprovalFlowState,
    ApprovalStep,
    ApprovalWorkflow,
    Approver,
)
from spend_governance.approval.status import (
    calculate_progress,
    derive_workflow_status,
    find_current_step_index,
)

__all__ = [
    "ApprovalFlow",
    "ApprovalFlowState",
    "ApprovalWorkflow",
    "ApprovalStep",
    "ApprovalAction",
    "Approver",
    "derive_workflow_status",
    "find_current_step_index",
    "calculate_progress",
]
