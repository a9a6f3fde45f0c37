# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""Tests for the approval workflow state machine."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from spend_governance.approval import (
    ApprovalAction,
    ApprovalFlow,
    ApprovalStep,
    ApprovalWorkflow,
    Approver,
    calculate_progress,
    derive_workflow_status,
    find_current_step_index,
)
from spend_governance.config import WorkflowConfig


def _step(step_id: str, status: str = "pending", **kwargs) -> ApprovalStep:
    return ApprovalStep(id=step_id, order=0, status=status, **kwargs)


# ---------------------------------------------------------------------------
# TestStatusDerivation
# ---------------------------------------------------------------------------


class TestStatusDerivation:
    def test_no_steps_is_draft(self) -> None:
        assert derive_workflow_status([]) == "draft"

    def test_fresh_steps_are_draft(self) -> None:
        assert derive_workflow_status([_step("a"), _step("b")]) == "draft"

    def test_rejected_wins_over_everything(self) -> None:
        steps = [_step("a", "approved"), _step("b", "rejected"), _step("c", "cancelled")]
        assert derive_workflow_status(steps) == "rejected"

    def test_cancelled_wins_over_approved(self) -> None:
        assert derive_workflow_status([_step("a", "approved"), _step("b", "cancelled")]) == "cancelled"

    def test_all_completed_is_approved(self) -> None:
        assert derive_workflow_status([_step("a", "approved"), _step("b", "skipped")]) == "approved"

    def test_optional_pending_step_does_not_block_approval(self) -> None:
        steps = [_step("a", "approved"), _step("b", optional=True)]
        assert derive_workflow_status(steps) == "approved"

    def test_partial_approval_is_in_progress(self) -> None:
        assert derive_workflow_status([_step("a", "approved"), _step("b")]) == "in_progress"

    def test_open_review_is_pending(self) -> None:
        assert derive_workflow_status([_step("a", "in_review"), _step("b")]) == "pending"

    def test_current_step_index(self) -> None:
        steps = [_step("a", "approved"), _step("b", "in_review"), _step("c")]
        assert find_current_step_index(steps) == 1
        finished = [_step("a", "approved"), _step("b", "skipped")]
        assert find_current_step_index(finished) == 1
        assert find_current_step_index([]) == 0

    def test_progress_ignores_optional_steps(self) -> None:
        steps = [_step("a", "approved"), _step("b"), _step("c", optional=True)]
        assert calculate_progress(steps) == 50.0
        assert calculate_progress([_step("x", optional=True)]) == 0.0


# ---------------------------------------------------------------------------
# TestApprovalFlow
# ---------------------------------------------------------------------------


class TestApprovalFlow:
    def test_new_workflow_is_draft(self, two_step_workflow: ApprovalWorkflow) -> None:
        assert two_step_workflow.status == "draft"
        assert "status" in two_step_workflow.model_dump()

    def test_single_approval_completes_first_step(
        self, two_step_workflow: ApprovalWorkflow, alice: Approver, clock
    ) -> None:
        flow = ApprovalFlow(two_step_workflow, current_user=alice, clock=clock)
        workflow = flow.approve("manager", comment="ok")
        assert workflow.get_step("manager").status == "approved"
        assert workflow.status == "in_progress"
        action = workflow.get_step("manager").actions[0]
        assert action.approver == alice
        assert action.comment == "ok"
        assert action.timestamp == clock()

    def test_quorum_needs_distinct_approvers(
        self, two_step_workflow: ApprovalWorkflow, alice: Approver, bob: Approver, carol: Approver
    ) -> None:
        flow = ApprovalFlow(two_step_workflow, current_user=alice)
        flow.approve("manager")

        flow.approve("finance", actor=bob)
        assert flow.get_step("finance").status == "in_review"

        flow.approve("finance", actor=bob)
        assert flow.get_step("finance").status == "in_review"

        workflow = flow.approve("finance", actor=carol)
        assert workflow.get_step("finance").status == "approved"
        assert workflow.status == "approved"

    def test_reject_forces_workflow_rejected(
        self, two_step_workflow: ApprovalWorkflow, alice: Approver, bob: Approver
    ) -> None:
        flow = ApprovalFlow(two_step_workflow, current_user=alice)
        flow.approve("manager")
        workflow = flow.reject("finance", comment="Over budget", actor=bob)
        assert workflow.status == "rejected"
        assert flow.state.is_rejected is True
        assert flow.state.is_complete is True

    def test_request_changes_keeps_approve_log(
        self, two_step_workflow: ApprovalWorkflow, alice: Approver
    ) -> None:
        flow = ApprovalFlow(two_step_workflow, current_user=alice)
        flow.approve("manager")
        workflow = flow.request_changes("manager", comment="Add quote")
        step = workflow.get_step("manager")
        assert step.status == "pending"
        assert [a.type for a in step.actions] == ["approve", "request_changes"]

    def test_approve_without_step_targets_current_step(
        self, two_step_workflow: ApprovalWorkflow, alice: Approver, bob: Approver
    ) -> None:
        flow = ApprovalFlow(two_step_workflow, current_user=alice)
        flow.approve()
        assert flow.get_step("manager").status == "approved"
        flow.approve(actor=bob)
        assert flow.get_step("finance").status == "in_review"

    def test_unknown_step_is_silent_noop(self, two_step_workflow: ApprovalWorkflow, alice: Approver) -> None:
        calls: list[ApprovalWorkflow] = []
        flow = ApprovalFlow(two_step_workflow, current_user=alice, on_workflow_change=calls.append)
        workflow = flow.approve("nope")
        assert workflow is two_step_workflow
        assert calls == []

    def test_callbacks(self, two_step_workflow: ApprovalWorkflow, alice: Approver, bob: Approver, carol: Approver) -> None:
        step_changes: list[str] = []
        approved: list[ApprovalWorkflow] = []
        flow = ApprovalFlow(
            two_step_workflow,
            current_user=alice,
            on_step_change=lambda step, wf: step_changes.append(step.id),
            on_approved=approved.append,
        )
        flow.approve("manager")
        flow.approve("finance", actor=bob)
        flow.approve("finance", actor=carol)
        assert step_changes == ["manager", "finance", "finance"]
        assert len(approved) == 1
        assert approved[0].status == "approved"

    def test_on_rejected_fires_once(self, two_step_workflow: ApprovalWorkflow, alice: Approver) -> None:
        rejected: list[ApprovalWorkflow] = []
        flow = ApprovalFlow(two_step_workflow, current_user=alice, on_rejected=rejected.append)
        flow.reject("manager")
        flow.reject("finance")
        assert len(rejected) == 1

    def test_can_approve_rules(
        self, two_step_workflow: ApprovalWorkflow, alice: Approver, bob: Approver
    ) -> None:
        flow = ApprovalFlow(two_step_workflow, current_user=alice)
        assert flow.can_approve("manager") is True
        assert flow.can_approve("finance") is False
        assert flow.can_approve("finance", user_id="bob") is True
        flow.approve("finance", actor=bob)
        assert flow.can_approve("finance", user_id="bob") is False
        assert flow.can_reject("finance", user_id="bob") is True
        assert flow.can_approve("missing") is False

    def test_can_approve_without_user_is_false(self, two_step_workflow: ApprovalWorkflow) -> None:
        assert ApprovalFlow(two_step_workflow).can_approve("manager") is False

    def test_actions_without_user_use_system_identity(self, two_step_workflow: ApprovalWorkflow) -> None:
        flow = ApprovalFlow(two_step_workflow, config=WorkflowConfig(system_approver_id="bot"))
        workflow = flow.reject("manager")
        assert workflow.get_step("manager").actions[0].approver.id == "bot"

    def test_delegate_adds_approver_once(
        self, two_step_workflow: ApprovalWorkflow, alice: Approver, carol: Approver
    ) -> None:
        flow = ApprovalFlow(two_step_workflow, current_user=alice)
        flow.delegate("manager", carol)
        workflow = flow.delegate("manager", carol)
        step = workflow.get_step("manager")
        assert [a.id for a in step.required_approvers] == ["alice", "carol"]
        assert [a.type for a in step.actions] == ["delegate", "delegate"]
        assert step.actions[0].delegated_to == carol
        assert step.status == "pending"

    def test_skip_only_optional_steps(self, alice: Approver, requester: Approver) -> None:
        workflow = ApprovalWorkflow(
            name="Optional review",
            initiator=requester,
            steps=[
                ApprovalStep(id="legal", order=0, optional=True, required_approvers=[alice]),
                ApprovalStep(id="manager", order=1, required_approvers=[alice]),
            ],
        )
        flow = ApprovalFlow(workflow, current_user=alice)
        assert flow.skip_step("manager") is workflow
        updated = flow.skip_step("legal", comment="Not needed")
        assert updated.get_step("legal").status == "skipped"
        assert updated.get_step("legal").actions[0].type == "skip"

    def test_cancel_logs_skip_actions_on_open_steps(
        self, two_step_workflow: ApprovalWorkflow, alice: Approver
    ) -> None:
        flow = ApprovalFlow(two_step_workflow, current_user=alice)
        flow.approve("manager")
        workflow = flow.cancel()
        assert workflow.status == "cancelled"
        assert workflow.get_step("manager").status == "approved"
        finance = workflow.get_step("finance")
        assert finance.status == "cancelled"
        assert finance.actions[-1].type == "skip"
        assert finance.actions[-1].comment == "Workflow cancelled"
        assert flow.state.can_cancel is False

    def test_reset_to_draft_and_restart(
        self, two_step_workflow: ApprovalWorkflow, alice: Approver
    ) -> None:
        flow = ApprovalFlow(two_step_workflow, current_user=alice)
        flow.reject("manager")

        workflow = flow.reset_to_draft()
        assert workflow.status == "draft"
        assert all(step.actions == [] for step in workflow.steps)

        workflow = flow.restart()
        assert workflow.status == "pending"
        assert workflow.steps[0].status == "in_review"
        assert workflow.steps[1].status == "pending"

    def test_escalate_delegates_open_step(
        self, two_step_workflow: ApprovalWorkflow, alice: Approver, carol: Approver
    ) -> None:
        flow = ApprovalFlow(two_step_workflow, current_user=alice)
        workflow = flow.escalate("manager", carol)
        step = workflow.get_step("manager")
        assert "carol" in step.approver_ids()
        assert step.actions[-1].comment == "Escalated"

        flow.approve("manager")
        assert flow.escalate("manager", carol) is flow.workflow

    def test_overdue_steps(self, alice: Approver, requester: Approver) -> None:
        now = datetime(2024, 3, 15, tzinfo=timezone.utc)
        workflow = ApprovalWorkflow(
            name="Deadlines",
            initiator=requester,
            steps=[
                ApprovalStep(id="late", order=0, due_date=now - timedelta(days=1)),
                ApprovalStep(id="naive-late", order=1, due_date=datetime(2024, 3, 14)),
                ApprovalStep(id="future", order=2, due_date=now + timedelta(days=1)),
                ApprovalStep(id="done", order=3, status="approved", due_date=now - timedelta(days=1)),
            ],
        )
        flow = ApprovalFlow(workflow, current_user=alice)
        assert [s.id for s in flow.overdue_steps(now)] == ["late", "naive-late"]

    def test_state_projection(self, two_step_workflow: ApprovalWorkflow, alice: Approver, bob: Approver) -> None:
        flow = ApprovalFlow(two_step_workflow, current_user=bob)
        flow.approve("manager", actor=alice)
        state = flow.state
        assert state.current_step_index == 1
        assert state.current_step.id == "finance"
        assert [s.id for s in state.completed_steps] == ["manager"]
        assert state.progress == 50.0
        assert state.user_pending_action is not None
        assert state.user_pending_action.id == "finance"
        assert flow.get_remaining_approvers("finance") == flow.get_step_approvers("finance")
        assert flow.is_current_step("finance") is True
        assert flow.is_step_complete("manager") is True

    def test_navigation(self, two_step_workflow: ApprovalWorkflow, alice: Approver) -> None:
        flow = ApprovalFlow(two_step_workflow, current_user=alice)
        assert flow.get_previous_step() is None
        assert flow.get_next_step().id == "finance"
        flow.go_to_step("finance")
        assert flow.state.current_step.id == "finance"
        assert flow.get_next_step() is None
        assert flow.get_previous_step().id == "manager"

    def test_snapshots_are_immutable(self, two_step_workflow: ApprovalWorkflow, alice: Approver) -> None:
        flow = ApprovalFlow(two_step_workflow, current_user=alice)
        flow.approve("manager")
        assert two_step_workflow.get_step("manager").status == "pending"
        assert two_step_workflow.get_step("manager").actions == []

    def test_status_is_recomputed_from_log(self, alice: Approver, requester: Approver) -> None:
        step = ApprovalStep(
            id="s",
            order=0,
            status="approved",
            min_approvals=1,
            actions=[ApprovalAction(type="approve", approver=alice)],
        )
        workflow = ApprovalWorkflow(name="Replay", initiator=requester, steps=[step])
        assert workflow.status == "approved"
