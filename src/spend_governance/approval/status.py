# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Pure derivations over approval steps.

Nothing here holds state. Workflow status, the current step and progress
are recomputed from the full step list on every call.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from spend_governance.types import COMPLETED_STEP_STATUSES, OPEN_STEP_STATUSES, WorkflowStatus

if TYPE_CHECKING:
    from spend_governance.approval.models import ApprovalStep


def derive_workflow_status(steps: Sequence[ApprovalStep]) -> WorkflowStatus:
    """
    Derive the workflow status from its steps.

    Precedence, highest first:

    1. ``rejected`` if any step is rejected.
    2. ``cancelled`` if any step is cancelled.
    3. ``approved`` if every step is approved, skipped, or optional and
       still pending.
    4. ``in_progress`` if any step is approved, or is in review with at
       least one logged action.
    5. ``pending`` if any step is in review or has a non-empty log.
    6. ``draft`` otherwise, including a workflow with no steps.
    """
    if not steps:
        return "draft"

    statuses = [step.status for step in steps]
    if "rejected" in statuses:
        return "rejected"
    if "cancelled" in statuses:
        return "cancelled"

    if all(
        step.status in COMPLETED_STEP_STATUSES or (step.optional and step.status == "pending")
        for step in steps
    ):
        return "approved"

    if any(
        step.status == "approved" or (step.status == "in_review" and step.actions)
        for step in steps
    ):
        return "in_progress"

    if any(step.status == "in_review" or step.actions for step in steps):
        return "pending"

    return "draft"


def find_current_step_index(steps: Sequence[ApprovalStep]) -> int:
    """
    Return the index of the step that currently needs attention.

    That is the first pending or in-review step. When every step has
    finished (approved, skipped or rejected) the last step is returned;
    otherwise 0.
    """
    for index, step in enumerate(steps):
        if step.status in OPEN_STEP_STATUSES:
            return index

    if steps and all(
        step.status in ("approved", "skipped", "rejected") for step in steps
    ):
        return len(steps) - 1
    return 0


def calculate_progress(steps: Sequence[ApprovalStep]) -> float:
    """
    Percentage of mandatory steps that are approved or skipped.

    Optional steps are ignored. Returns 0.0 when there are no mandatory steps.
    """
    mandatory = [step for step in steps if not step.optional]
    if not mandatory:
        return 0.0
    completed = sum(1 for step in mandatory if step.status in COMPLETED_STEP_STATUSES)
    return completed / len(mandatory) * 100.0
