"""Base exception classes for the governance domain layer."""

from __future__ import annotations

from enum import Enum


class GovernanceErrorKind(str, Enum):
    """Closed set of error kinds callers can branch on.

    Every GovernanceError carries exactly one kind, so no caller ever has
    to parse a message to decide what went wrong.
    """

    INVALID_RULE = "InvalidRule"
    EMPTY_ELECTORATE = "EmptyElectorate"
    VOTER_NOT_ELIGIBLE = "VoterNotEligible"
    DUPLICATE_VOTE = "DuplicateVote"
    CAMPAIGN_NOT_ACTIVE = "CampaignNotActive"
    NOT_YET_STARTED = "NotYetStarted"
    QUORUM_NOT_MET = "QuorumNotMet"
    TIE_REQUIRES_RUNOFF = "TieRequiresRunoff"
    ALERT_ALREADY_RESOLVED = "AlertAlreadyResolved"
    NO_PLAN_CONFIGURED = "NoPlanConfigured"
    ROSTER_UNAVAILABLE = "RosterUnavailable"
    CAMPAIGN_NOT_FOUND = "CampaignNotFound"
    ALERT_NOT_FOUND = "AlertNotFound"
    PROPOSAL_NOT_FOUND = "ProposalNotFound"
    SUCCESSION_PLAN_NOT_FOUND = "SuccessionPlanNotFound"
    INVALID_TRANSITION = "InvalidTransition"
    INVALID_CHOICE = "InvalidChoice"
    INVALID_ACKNOWLEDGMENT = "InvalidAcknowledgment"
    INVALID_CAMPAIGN = "InvalidCampaign"
    INVALID_ALERT = "InvalidAlert"
    INVALID_PLAN = "InvalidPlan"
    INVALID_PROPOSAL = "InvalidProposal"
    PERMISSION_DENIED = "PermissionDenied"
    STORE_UNAVAILABLE = "StoreUnavailable"
    RECORD_EXISTS = "RecordExists"


class GovernanceError(Exception):
    """Base exception for all domain errors.

    All domain-specific exceptions MUST inherit from this class and set
    a class-level ``kind``.

    Attributes:
        kind: Machine-readable error kind.
        message: Human-readable error description.
    """

    kind: GovernanceErrorKind = GovernanceErrorKind.INVALID_TRANSITION

    def __init__(self, message: str = "") -> None:
        """Initialize the exception with an optional message.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        """Structured form of the error for API and audit payloads."""
        return {"kind": self.kind.value, "message": self.message}
