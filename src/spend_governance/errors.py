# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spend_governance.budget.definitions import FieldError


class SpendGovernanceError(Exception):
    """Base class for all spend-governance errors."""

    def __init__(self, message: str, code: str = "SPEND_GOVERNANCE_ERROR") -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ConfigurationError(SpendGovernanceError):
    """Raised when the engine is handed a configuration it cannot act on."""

    def __init__(self, message: str, code: str = "CONFIGURATION_ERROR") -> None:
        super().__init__(message, code=code)


class InvalidPeriodError(ConfigurationError):
    """
    Raised when a period identifier has no calendar bounds.

    This is a programming or configuration defect, not a runtime condition:
    callers should not retry.
    """

    def __init__(self, value: str) -> None:
        from spend_governance.types import CALENDAR_PERIOD_VALUES

        super().__init__(
            f"Unknown period type: '{value}'. "
            f"Calendar periods: {sorted(CALENDAR_PERIOD_VALUES)}.",
            code="INVALID_PERIOD",
        )
        self.value = value


class LimitValidationError(ConfigurationError):
    """
    Raised by :func:`~spend_governance.budget.definitions.parse_limit_config`
    when a limit document fails validation.

    Attributes:
        errors: Every field error found, in document order.
    """

    def __init__(self, errors: list[FieldError]) -> None:
        summary = "; ".join(f"{err.field}: {err.message}" for err in errors)
        super().__init__(
            f"Spending limit configuration is invalid ({len(errors)} error(s)): {summary}",
            code="LIMIT_VALIDATION_FAILED",
        )
        self.errors = errors


class BudgetExceededError(SpendGovernanceError):
    """
    Raised when a purchase would take a spending limit past its ceiling.

    Attributes:
        limit_id: The spending limit that would be exceeded.
        requested: The purchase amount.
        available: The amount still spendable.
    """

    def __init__(self, limit_id: str, requested: float, available: float) -> None:
        super().__init__(
            f"Spending limit '{limit_id}': requested {requested:.2f} "
            f"but only {available:.2f} remains.",
            code="BUDGET_EXCEEDED",
        )
        self.limit_id = limit_id
        self.requested = requested
        self.available = available
