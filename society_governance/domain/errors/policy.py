"""Policy proposal domain errors."""

from __future__ import annotations

from typing import Optional

from society_governance.domain.exceptions import GovernanceError, GovernanceErrorKind


class ProposalNotFoundError(GovernanceError):
    """Raised when a proposal id does not resolve to a stored proposal.

    Attributes:
        proposal_id: The id that was looked up.
    """

    kind = GovernanceErrorKind.PROPOSAL_NOT_FOUND

    def __init__(self, proposal_id: str, message: Optional[str] = None) -> None:
        msg = message or f"Policy proposal not found: {proposal_id}"
        super().__init__(msg)
        self.proposal_id = proposal_id


class InvalidProposalError(GovernanceError):
    """Raised when a policy proposal request is malformed.

    Attributes:
        reason: What is wrong with the proposal.
    """

    kind = GovernanceErrorKind.INVALID_PROPOSAL

    def __init__(self, reason: str, message: Optional[str] = None) -> None:
        msg = message or f"Invalid policy proposal - {reason}"
        super().__init__(msg)
        self.reason = reason
