# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field, model_validator


class PolicyConfig(BaseModel, frozen=True):
    """
    Configuration for policy evaluation inside the engine.

    Attributes:
        log_evaluations: When True, every rule evaluation is logged at DEBUG
            level to the ``spend_governance.policy`` logger.
    """

    log_evaluations: bool = True


class WorkflowConfig(BaseModel, frozen=True):
    """
    Configuration for :class:`~spend_governance.approval.ApprovalFlow`.

    Attributes:
        system_approver_id: Identity recorded on actions taken when no
            current user or explicit actor is supplied.
        system_approver_name: Display name for the system identity.
        cancel_comment: Comment logged on each step closed by ``cancel()``
            when the caller supplies none.
        escalation_comment: Comment logged by ``escalate()`` when the caller
            supplies none.
    """

    system_approver_id: Annotated[str, Field(min_length=1)] = "system"
    system_approver_name: Annotated[str, Field(min_length=1)] = "System"
    cancel_comment: str = "Workflow cancelled"
    escalation_comment: str = "Escalated"


class BudgetConfig(BaseModel, frozen=True):
    """
    Default percentages used by the spending calculator.

    Attributes:
        soft_limit_percentage: Usage percentage at which the soft limit is
            considered exceeded.
        hard_limit_percentage: Usage percentage at which the hard limit is
            considered exceeded.
        rollover_percentage: Share of unused budget carried into the next
            period when rollover is enabled.
    """

    soft_limit_percentage: Annotated[float, Field(ge=0)] = 75.0
    hard_limit_percentage: Annotated[float, Field(ge=0)] = 100.0
    rollover_percentage: Annotated[float, Field(ge=0, le=100)] = 100.0


class MeterConfig(BaseModel, frozen=True):
    """
    Configuration for :class:`~spend_governance.budget.SpendingMeter`.

    The warning and danger percentages only build the default threshold
    ladder; a limit that carries its own thresholds uses those instead.

    Attributes:
        warning_threshold: Percentage at which the meter enters ``warning``
            and, absent an explicit soft limit, the soft limit is exceeded.
        danger_threshold: Percentage at which the meter enters ``danger``.
    """

    warning_threshold: Annotated[float, Field(ge=0, le=100)] = 75.0
    danger_threshold: Annotated[float, Field(ge=0, le=100)] = 90.0

    @model_validator(mode="after")
    def _danger_above_warning(self) -> MeterConfig:
        if self.danger_threshold < self.warning_threshold:
            raise ValueError(
                "danger_threshold must be greater than or equal to warning_threshold"
            )
        return self


class AuditConfig(BaseModel, frozen=True):
    """
    Configuration for the AuditLogger.

    Attributes:
        max_records: Maximum number of audit records to retain in memory.
            Oldest records are evicted when this limit is reached.
        include_context: When True, the decision context is stored with
            each record. When False, only the decision summary is stored.
    """

    max_records: Annotated[int, Field(gt=0)] = 10_000
    include_context: bool = True


class GovernanceConfig(BaseModel, frozen=True):
    """
    Top-level configuration for the SpendGovernanceEngine.

    All fields are optional; defaults match the documented behaviour.

    Example::

        config = GovernanceConfig(
            workflow=WorkflowConfig(cancel_comment="Order withdrawn"),
            meter=MeterConfig(warning_threshold=80, danger_threshold=95),
            audit=AuditConfig(max_records=5000),
        )
        engine = SpendGovernanceEngine(config=config)
    """

    policy: PolicyConfig = Field(default_factory=PolicyConfig)
    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig)
    budget: BudgetConfig = Field(default_factory=BudgetConfig)
    meter: MeterConfig = Field(default_factory=MeterConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
