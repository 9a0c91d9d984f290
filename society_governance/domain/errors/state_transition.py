"""State transition errors shared by every governance state machine."""

from __future__ import annotations

from typing import Optional

from society_governance.domain.exceptions import GovernanceError, GovernanceErrorKind


class InvalidTransitionError(GovernanceError):
    """Raised when an entity is asked to move to a state it cannot reach.

    Attributes:
        resource_type: Kind of entity (campaign, alert, plan, proposal).
        resource_id: Entity id.
        current: Current state value.
        target: Requested state value.
    """

    kind = GovernanceErrorKind.INVALID_TRANSITION

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        current: str,
        target: str,
        message: Optional[str] = None,
    ) -> None:
        msg = message or (
            f"Invalid {resource_type} transition for {resource_id}: "
            f"{current} -> {target}"
        )
        super().__init__(msg)
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.current = current
        self.target = target
