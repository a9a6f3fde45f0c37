# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from spend_governance.approval.models import (
    ApprovalAction,
    ApprovalFlowState,
    ApprovalStep,
    ApprovalWorkflow,
    Approver,
)
from spend_governance.approval.status import calculate_progress, find_current_step_index
from spend_governance.config import WorkflowConfig
from spend_governance.types import COMPLETED_STEP_STATUSES, OPEN_STEP_STATUSES, ApprovalActionType

logger = logging.getLogger("spend_governance.approval")

StepChangeCallback = Callable[[ApprovalStep, ApprovalWorkflow], None]
WorkflowCallback = Callable[[ApprovalWorkflow], None]


class ApprovalFlow:
    """
    State machine driving a single :class:`ApprovalWorkflow`.

    Each step moves ``pending -> in_review -> approved | rejected``; open
    steps may also be ``skipped`` (optional steps only) or ``cancelled``.
    Every mutation replaces the held workflow with a new immutable snapshot
    whose status is re-derived from the steps.

    Callbacks:

    - ``on_step_change(step, workflow)`` and ``on_workflow_change(workflow)``
      fire on every mutation.
    - ``on_approved`` and ``on_rejected`` fire once, on the mutation that
      first moves the workflow into that status.

    Mutators that name an unknown ``step_id`` do nothing and fire nothing.
    The flow does not serialise concurrent writers; callers must apply one
    action at a time per workflow.

    Example::

        flow = ApprovalFlow(workflow, current_user=manager, on_approved=place_order)
        if flow.can_approve("step-1"):
            flow.approve("step-1", comment="Within budget")
    """

    def __init__(
        self,
        workflow: ApprovalWorkflow,
        current_user: Approver | None = None,
        on_step_change: StepChangeCallback | None = None,
        on_workflow_change: WorkflowCallback | None = None,
        on_approved: WorkflowCallback | None = None,
        on_rejected: WorkflowCallback | None = None,
        config: WorkflowConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._workflow = workflow
        self._current_user = current_user
        self._on_step_change = on_step_change
        self._on_workflow_change = on_workflow_change
        self._on_approved = on_approved
        self._on_rejected = on_rejected
        self._config = config or WorkflowConfig()
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))
        self._viewing_index: int | None = None

    # ------------------------------------------------------------------
    # Snapshot accessors
    # ------------------------------------------------------------------

    @property
    def workflow(self) -> ApprovalWorkflow:
        """The current immutable workflow snapshot."""
        return self._workflow

    @property
    def progress(self) -> float:
        """Percentage of mandatory steps approved or skipped."""
        return calculate_progress(self._workflow.steps)

    @property
    def state(self) -> ApprovalFlowState:
        """A full :class:`ApprovalFlowState` projection of the workflow."""
        workflow = self._workflow
        steps = workflow.steps
        index = (
            self._viewing_index
            if self._viewing_index is not None
            else find_current_step_index(steps)
        )
        current_step = steps[index] if 0 <= index < len(steps) else None
        pending_steps = [step for step in steps if step.status in OPEN_STEP_STATUSES]

        user_pending_action: ApprovalStep | None = None
        if self._current_user is not None:
            user_id = self._current_user.id
            user_pending_action = next(
                (step for step in pending_steps if user_id in step.approver_ids()),
                None,
            )

        status = workflow.status
        return ApprovalFlowState(
            workflow=workflow,
            current_step_index=index,
            current_step=current_step,
            completed_steps=[s for s in steps if s.status in COMPLETED_STEP_STATUSES],
            pending_steps=pending_steps,
            progress=calculate_progress(steps),
            is_complete=status in ("approved", "rejected"),
            is_approved=status == "approved",
            is_rejected=status == "rejected",
            can_cancel=status not in ("cancelled", "approved", "rejected"),
            user_pending_action=user_pending_action,
        )

    # ------------------------------------------------------------------
    # Step actions
    # ------------------------------------------------------------------

    def approve(
        self,
        step_id: str | None = None,
        comment: str | None = None,
        actor: Approver | None = None,
    ) -> ApprovalWorkflow:
        """
        Record an approval on a step.

        The step becomes ``approved`` once its log holds ``min_approvals``
        distinct approvals, and ``in_review`` until then. Callers should
        check :meth:`can_approve` first; this method does not refuse a
        repeat approval, it just does not count it twice.

        Args:
            step_id: Target step. Defaults to the current step.
            comment: Optional comment stored on the action.
            actor: Who is approving. Defaults to the current user.

        Returns:
            The workflow snapshot after the mutation.
        """

        def _approve(step: ApprovalStep) -> ApprovalStep:
            actions = [*step.actions, self._action("approve", comment, actor)]
            updated = step.model_copy(update={"actions": actions})
            status = "approved" if updated.has_enough_approvals() else "in_review"
            return updated.model_copy(update={"status": status})

        return self._update_step(self._target(step_id), _approve)

    def reject(
        self,
        step_id: str | None = None,
        comment: str | None = None,
        actor: Approver | None = None,
    ) -> ApprovalWorkflow:
        """
        Reject a step.

        A single rejection vetoes the step regardless of quorum, and a
        rejected step makes the whole workflow ``rejected``.
        """
        return self._update_step(
            self._target(step_id),
            lambda step: step.model_copy(
                update={
                    "status": "rejected",
                    "actions": [*step.actions, self._action("reject", comment, actor)],
                }
            ),
        )

    def request_changes(
        self,
        step_id: str | None = None,
        comment: str | None = None,
        actor: Approver | None = None,
    ) -> ApprovalWorkflow:
        """
        Send a step back to ``pending``.

        Earlier ``approve`` entries stay in the log; only the status moves.
        """
        return self._update_step(
            self._target(step_id),
            lambda step: step.model_copy(
                update={
                    "status": "pending",
                    "actions": [
                        *step.actions,
                        self._action("request_changes", comment, actor),
                    ],
                }
            ),
        )

    def delegate(
        self,
        step_id: str,
        approver: Approver,
        comment: str | None = None,
        actor: Approver | None = None,
    ) -> ApprovalWorkflow:
        """
        Add ``approver`` to a step's required approvers.

        Adding an approver who is already required only logs the action.
        The step status does not change.
        """

        def _delegate(step: ApprovalStep) -> ApprovalStep:
            approvers = step.required_approvers
            if approver.id not in step.approver_ids():
                approvers = [*approvers, approver]
            action = self._action("delegate", comment, actor, delegated_to=approver)
            return step.model_copy(
                update={"required_approvers": approvers, "actions": [*step.actions, action]}
            )

        return self._update_step(step_id, _delegate)

    def skip_step(
        self,
        step_id: str,
        comment: str | None = None,
        actor: Approver | None = None,
    ) -> ApprovalWorkflow:
        """Skip an optional step. Mandatory steps are left untouched."""
        step = self._workflow.get_step(step_id)
        if step is None or not step.optional:
            return self._workflow
        return self._update_step(
            step_id,
            lambda s: s.model_copy(
                update={
                    "status": "skipped",
                    "actions": [*s.actions, self._action("skip", comment, actor)],
                }
            ),
        )

    def escalate(
        self,
        step_id: str,
        escalate_to: Approver,
        comment: str | None = None,
        actor: Approver | None = None,
    ) -> ApprovalWorkflow:
        """
        Hand an open step to an escalation target.

        Intended for the external scheduler that watches :meth:`overdue_steps`.
        Recorded as a ``delegate`` action; closed steps are left untouched.
        """
        step = self._workflow.get_step(step_id)
        if step is None or step.status not in OPEN_STEP_STATUSES:
            return self._workflow
        logger.info(
            "Escalating step '%s' of workflow '%s' to '%s'.",
            step_id,
            self._workflow.id,
            escalate_to.id,
        )
        return self.delegate(
            step_id,
            escalate_to,
            comment=comment if comment is not None else self._config.escalation_comment,
            actor=actor,
        )

    # ------------------------------------------------------------------
    # Workflow actions
    # ------------------------------------------------------------------

    def cancel(self, comment: str | None = None, actor: Approver | None = None) -> ApprovalWorkflow:
        """
        Cancel every open step.

        Each cancelled step logs a ``skip`` action carrying the comment, so
        existing audit-log consumers keep seeing the same action type.
        """
        note = comment if comment is not None else self._config.cancel_comment
        steps = [
            step.model_copy(
                update={
                    "status": "cancelled",
                    "actions": [*step.actions, self._action("skip", note, actor)],
                }
            )
            if step.status in OPEN_STEP_STATUSES
            else step
            for step in self._workflow.steps
        ]
        return self._commit(steps)

    def reset_to_draft(self) -> ApprovalWorkflow:
        """Clear every step's log and return all steps to ``pending``."""
        steps = [
            step.model_copy(update={"status": "pending", "actions": []})
            for step in self._workflow.steps
        ]
        return self._commit(steps)

    def restart(self) -> ApprovalWorkflow:
        """Clear every step's log and reopen the first step for review."""
        steps = [
            step.model_copy(
                update={"status": "in_review" if index == 0 else "pending", "actions": []}
            )
            for index, step in enumerate(self._workflow.steps)
        ]
        return self._commit(steps)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def can_approve(self, step_id: str, user_id: str | None = None) -> bool:
        """
        Return True if ``user_id`` may approve the step now.

        The step must be open, the user must be a required approver, and the
        user must not already have an ``approve`` entry on the step.
        """
        step = self._workflow.get_step(step_id)
        checked = self._resolve_user_id(user_id)
        if step is None or checked is None or step.status not in OPEN_STEP_STATUSES:
            return False
        return checked in step.approver_ids() and checked not in step.approved_by()

    def can_reject(self, step_id: str, user_id: str | None = None) -> bool:
        """Return True if ``user_id`` is a required approver on an open step."""
        step = self._workflow.get_step(step_id)
        checked = self._resolve_user_id(user_id)
        if step is None or checked is None or step.status not in OPEN_STEP_STATUSES:
            return False
        return checked in step.approver_ids()

    def is_current_step(self, step_id: str) -> bool:
        current = self.state.current_step
        return current is not None and current.id == step_id

    def is_step_complete(self, step_id: str) -> bool:
        step = self._workflow.get_step(step_id)
        return step is not None and step.status in COMPLETED_STEP_STATUSES

    def get_step(self, step_id: str) -> ApprovalStep | None:
        return self._workflow.get_step(step_id)

    def get_step_approvers(self, step_id: str) -> list[Approver]:
        step = self._workflow.get_step(step_id)
        return list(step.required_approvers) if step is not None else []

    def get_remaining_approvers(self, step_id: str) -> list[Approver]:
        """Required approvers on the step who have not approved it yet."""
        step = self._workflow.get_step(step_id)
        if step is None:
            return []
        approved = step.approved_by()
        return [a for a in step.required_approvers if a.id not in approved]

    def overdue_steps(self, now: datetime | None = None) -> list[ApprovalStep]:
        """
        Return open steps whose ``due_date`` has passed.

        Naive due dates are read as UTC.
        """
        reference = now or self._clock()
        if reference.tzinfo is None:
            reference = reference.replace(tzinfo=timezone.utc)
        overdue: list[ApprovalStep] = []
        for step in self._workflow.steps:
            if step.due_date is None or step.status not in OPEN_STEP_STATUSES:
                continue
            due = step.due_date
            if due.tzinfo is None:
                due = due.replace(tzinfo=timezone.utc)
            if due < reference:
                overdue.append(step)
        return overdue

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def go_to_step(self, step_id: str) -> None:
        """View ``step_id`` as the current step. Unknown IDs are ignored."""
        for index, step in enumerate(self._workflow.steps):
            if step.id == step_id:
                self._viewing_index = index
                return

    def get_next_step(self) -> ApprovalStep | None:
        index = self.state.current_step_index + 1
        steps = self._workflow.steps
        return steps[index] if index < len(steps) else None

    def get_previous_step(self) -> ApprovalStep | None:
        index = self.state.current_step_index - 1
        return self._workflow.steps[index] if index >= 0 else None

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _resolve_user_id(self, user_id: str | None) -> str | None:
        if user_id is not None:
            return user_id
        return self._current_user.id if self._current_user is not None else None

    def _actor(self, actor: Approver | None) -> Approver:
        if actor is not None:
            return actor
        if self._current_user is not None:
            return self._current_user
        return Approver(
            id=self._config.system_approver_id,
            name=self._config.system_approver_name,
        )

    def _action(
        self,
        action_type: ApprovalActionType,
        comment: str | None,
        actor: Approver | None,
        delegated_to: Approver | None = None,
    ) -> ApprovalAction:
        return ApprovalAction(
            type=action_type,
            approver=self._actor(actor),
            timestamp=self._clock(),
            comment=comment,
            delegated_to=delegated_to,
        )

    def _target(self, step_id: str | None) -> str | None:
        """Resolve an optional step ID to the step mutations should act on."""
        if step_id is not None:
            return step_id
        steps = self._workflow.steps
        if not steps:
            return None
        return steps[find_current_step_index(steps)].id

    def _update_step(
        self,
        step_id: str | None,
        updater: Callable[[ApprovalStep], ApprovalStep],
    ) -> ApprovalWorkflow:
        if step_id is None:
            return self._workflow
        steps = list(self._workflow.steps)
        for index, step in enumerate(steps):
            if step.id == step_id:
                changed = updater(step)
                steps[index] = changed
                logger.debug(
                    "Step '%s' of workflow '%s': %s -> %s.",
                    step_id,
                    self._workflow.id,
                    step.status,
                    changed.status,
                )
                return self._commit(steps, changed_step=changed)
        return self._workflow

    def _commit(
        self,
        steps: list[ApprovalStep],
        changed_step: ApprovalStep | None = None,
    ) -> ApprovalWorkflow:
        """Swap in the new steps and fire callbacks for the derived status."""
        previous_status = self._workflow.status
        updated = self._workflow.model_copy(
            update={"steps": steps, "updated_at": self._clock()}
        )
        self._workflow = updated
        status = updated.status

        if status != previous_status:
            logger.info(
                "Workflow '%s' status %s -> %s.", updated.id, previous_status, status
            )

        if changed_step is not None and self._on_step_change is not None:
            self._on_step_change(changed_step, updated)
        if self._on_workflow_change is not None:
            self._on_workflow_change(updated)

        if status == "approved" and previous_status != "approved" and self._on_approved:
            self._on_approved(updated)
        if status == "rejected" and previous_status != "rejected" and self._on_rejected:
            self._on_rejected(updated)

        return updated
