"""Residency roster errors."""

from __future__ import annotations

from typing import Optional

from society_governance.domain.exceptions import GovernanceError, GovernanceErrorKind


class RosterUnavailableError(GovernanceError):
    """Raised when the residency roster cannot be fetched.

    Scheduling fails closed on this error: a campaign is never scheduled
    against a stale or partial electorate.

    Attributes:
        society_id: The society whose roster was requested.
        reason: Underlying failure description.
    """

    kind = GovernanceErrorKind.ROSTER_UNAVAILABLE

    def __init__(
        self, society_id: str, reason: str = "", message: Optional[str] = None
    ) -> None:
        msg = message or f"Residency roster unavailable for society {society_id}"
        if reason and message is None:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
        self.society_id = society_id
        self.reason = reason
