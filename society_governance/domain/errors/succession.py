"""Succession plan domain errors."""

from __future__ import annotations

from typing import Optional

from society_governance.domain.exceptions import GovernanceError, GovernanceErrorKind


class SuccessionError(GovernanceError):
    """Base error for succession plan operations."""

    pass


class NoPlanConfiguredError(SuccessionError):
    """Raised when a succession trigger fires for a society with no plan.

    Escalation that exhausts its chain with no fallback must be reported
    to operators, so this error is always logged and audited.

    Attributes:
        society_id: The society that has no plan.
    """

    kind = GovernanceErrorKind.NO_PLAN_CONFIGURED

    def __init__(self, society_id: str, message: Optional[str] = None) -> None:
        msg = message or f"No succession plan configured for society {society_id}"
        super().__init__(msg)
        self.society_id = society_id


class SuccessionPlanNotFoundError(SuccessionError):
    """Raised when a plan id does not resolve to a stored plan.

    Attributes:
        plan_id: The id that was looked up.
    """

    kind = GovernanceErrorKind.SUCCESSION_PLAN_NOT_FOUND

    def __init__(self, plan_id: str, message: Optional[str] = None) -> None:
        msg = message or f"Succession plan not found: {plan_id}"
        super().__init__(msg)
        self.plan_id = plan_id


class InvalidPlanError(SuccessionError):
    """Raised when a succession plan request is malformed.

    Attributes:
        reason: What is wrong with the plan.
    """

    kind = GovernanceErrorKind.INVALID_PLAN

    def __init__(self, reason: str, message: Optional[str] = None) -> None:
        msg = message or f"Invalid succession plan - {reason}"
        super().__init__(msg)
        self.reason = reason
