# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import BaseModel, Field, computed_field

from spend_governance.approval.status import derive_workflow_status
from spend_governance.types import ApprovalActionType, StepStatus, WorkflowStatus


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class Approver(BaseModel, frozen=True):
    """
    An identity able to act on approval steps.

    Approvers come from an external directory; only ``id`` is ever compared.
    """

    id: str
    name: str
    email: str | None = None
    role: str | None = None
    avatar_url: str | None = None


class ApprovalAction(BaseModel, frozen=True):
    """
    One entry in a step's append-only action log.

    Attributes:
        type: What the approver did.
        approver: Who did it.
        timestamp: When it was recorded (UTC).
        comment: Optional free-text comment.
        delegated_to: Target approver for ``delegate`` actions.
    """

    type: ApprovalActionType
    approver: Approver
    timestamp: datetime = Field(default_factory=_utcnow)
    comment: str | None = None
    delegated_to: Approver | None = None


class ApprovalStep(BaseModel, frozen=True):
    """
    A single stage of an approval workflow.

    Attributes:
        id: Unique step identifier within the workflow.
        order: Position of the step, starting at 0.
        name: Optional display name.
        status: Current step status.
        required_approvers: Approvers allowed to act on this step.
        min_approvals: Distinct approvals needed to approve the step.
        actions: Append-only log of every action taken on the step.
        optional: Optional steps may be skipped and do not count towards
            workflow progress.
        due_date: Descriptive deadline; nothing enforces it.
    """

    id: str
    order: int
    name: str | None = None
    status: StepStatus = "pending"
    required_approvers: list[Approver] = Field(default_factory=list)
    min_approvals: Annotated[int, Field(ge=1)] = 1
    actions: list[ApprovalAction] = Field(default_factory=list)
    optional: bool = False
    due_date: datetime | None = None

    def approver_ids(self) -> set[str]:
        """Return the IDs of the step's required approvers."""
        return {approver.id for approver in self.required_approvers}

    def approved_by(self) -> set[str]:
        """Return the IDs of everyone with an ``approve`` entry in the log."""
        return {action.approver.id for action in self.actions if action.type == "approve"}

    def has_enough_approvals(self) -> bool:
        """True when distinct approvals in the log meet ``min_approvals``."""
        return len(self.approved_by()) >= self.min_approvals


class ApprovalWorkflow(BaseModel, frozen=True):
    """
    An ordered set of approval steps for one target entity.

    ``status`` is not stored: it is derived from ``steps`` every time it is
    read, so it can never drift from the step states and their logs.

    Attributes:
        id: Unique workflow identifier.
        name: Human-readable name.
        steps: Steps in evaluation order.
        initiator: Who requested the approval.
        created_at: Creation timestamp (UTC).
        updated_at: Timestamp of the last mutation (UTC).
        target_entity: Optional reference to what is being approved, e.g.
            ``{"type": "order", "id": "ord_123"}``.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    steps: list[ApprovalStep] = Field(default_factory=list)
    initiator: Approver
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    target_entity: dict[str, Any] | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> WorkflowStatus:
        """The workflow status derived from its steps."""
        return derive_workflow_status(self.steps)

    def get_step(self, step_id: str) -> ApprovalStep | None:
        """Return the step with ``step_id``, or None."""
        for step in self.steps:
            if step.id == step_id:
                return step
        return None


class ApprovalFlowState(BaseModel, frozen=True):
    """
    Read-only projection of an :class:`ApprovalWorkflow` for display and
    routing decisions.

    Attributes:
        workflow: The workflow snapshot.
        current_step_index: Index of the step being viewed or acted on.
        current_step: The step at ``current_step_index``, if any.
        completed_steps: Steps that are approved or skipped.
        pending_steps: Steps that are pending or in review.
        progress: Percentage of mandatory steps completed.
        is_complete: True once the workflow is approved or rejected.
        is_approved: True when the workflow is approved.
        is_rejected: True when the workflow is rejected.
        can_cancel: True while the workflow has not reached a terminal state.
        user_pending_action: First open step awaiting the current user.
    """

    workflow: ApprovalWorkflow
    current_step_index: int
    current_step: ApprovalStep | None
    completed_steps: list[ApprovalStep]
    pending_steps: list[ApprovalStep]
    progress: float
    is_complete: bool
    is_approved: bool
    is_rejected: bool
    can_cancel: bool
    user_pending_action: ApprovalStep | None = None
