"""Permission errors for role-gated governance actions."""

from __future__ import annotations

from typing import Optional

from society_governance.domain.exceptions import GovernanceError, GovernanceErrorKind


class PermissionDeniedError(GovernanceError):
    """Raised when a role is not allowed to perform an action.

    Attributes:
        role: The caller's role value.
        action: The attempted action.
    """

    kind = GovernanceErrorKind.PERMISSION_DENIED

    def __init__(self, role: str, action: str, message: Optional[str] = None) -> None:
        msg = message or f"Role {role} may not perform {action}"
        super().__init__(msg)
        self.role = role
        self.action = action
