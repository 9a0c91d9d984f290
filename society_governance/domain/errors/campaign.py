"""Voting campaign domain errors.

This module provides exception classes for failures in the campaign
lifecycle, eligibility resolution and ballot casting.

Rules enforced by these errors:
- One ballot per (campaign, voter identity)
- Ballots only while the campaign is active
- Electorate is frozen at scheduling and never empty
"""

from __future__ import annotations

from typing import Optional

from society_governance.domain.exceptions import GovernanceError, GovernanceErrorKind


class CampaignError(GovernanceError):
    """Base error for voting campaign operations."""

    pass


class CampaignNotFoundError(CampaignError):
    """Raised when a campaign id does not resolve to a stored campaign.

    Attributes:
        campaign_id: The id that was looked up.
    """

    kind = GovernanceErrorKind.CAMPAIGN_NOT_FOUND

    def __init__(self, campaign_id: str, message: Optional[str] = None) -> None:
        msg = message or f"Campaign not found: {campaign_id}"
        super().__init__(msg)
        self.campaign_id = campaign_id


class InvalidCampaignError(CampaignError):
    """Raised when a campaign request is malformed.

    Attributes:
        reason: What is wrong with the request.
    """

    kind = GovernanceErrorKind.INVALID_CAMPAIGN

    def __init__(self, reason: str, message: Optional[str] = None) -> None:
        msg = message or f"Invalid campaign - {reason}"
        super().__init__(msg)
        self.reason = reason


class InvalidRuleError(CampaignError):
    """Raised when an eligibility rule is unknown or self-contradictory.

    Attributes:
        reason: Why the rule cannot be evaluated.
    """

    kind = GovernanceErrorKind.INVALID_RULE

    def __init__(self, reason: str, message: Optional[str] = None) -> None:
        msg = message or f"Invalid eligibility rule - {reason}"
        super().__init__(msg)
        self.reason = reason


class EmptyElectorateError(CampaignError):
    """Raised when eligibility resolves to nobody at scheduling time.

    Attributes:
        campaign_id: The campaign that could not be scheduled.
    """

    kind = GovernanceErrorKind.EMPTY_ELECTORATE

    def __init__(self, campaign_id: str, message: Optional[str] = None) -> None:
        msg = message or (
            f"Campaign {campaign_id} cannot be scheduled - "
            "eligibility rule resolved to an empty electorate"
        )
        super().__init__(msg)
        self.campaign_id = campaign_id


class VoterNotEligibleError(CampaignError):
    """Raised when a voter is outside the campaign's frozen electorate.

    Attributes:
        campaign_id: The campaign being voted in.
        voter_id: The rejected voter.
    """

    kind = GovernanceErrorKind.VOTER_NOT_ELIGIBLE

    def __init__(
        self, campaign_id: str, voter_id: str, message: Optional[str] = None
    ) -> None:
        msg = message or f"Voter {voter_id} is not eligible in campaign {campaign_id}"
        super().__init__(msg)
        self.campaign_id = campaign_id
        self.voter_id = voter_id


class DuplicateVoteError(CampaignError):
    """Raised when a voter identity already holds a ballot in the campaign.

    The voter id is deliberately not carried for anonymous campaigns.

    Attributes:
        campaign_id: The campaign being voted in.
    """

    kind = GovernanceErrorKind.DUPLICATE_VOTE

    def __init__(self, campaign_id: str, message: Optional[str] = None) -> None:
        msg = message or f"A ballot has already been cast by this voter in campaign {campaign_id}"
        super().__init__(msg)
        self.campaign_id = campaign_id


class CampaignNotActiveError(CampaignError):
    """Raised when a vote arrives for a campaign that is not active.

    Attributes:
        campaign_id: The campaign being voted in.
        status: The campaign's current status value.
    """

    kind = GovernanceErrorKind.CAMPAIGN_NOT_ACTIVE

    def __init__(
        self, campaign_id: str, status: str, message: Optional[str] = None
    ) -> None:
        msg = message or f"Campaign {campaign_id} is not active (status: {status})"
        super().__init__(msg)
        self.campaign_id = campaign_id
        self.status = status


class NotYetStartedError(CampaignError):
    """Raised when activating a campaign before its start time.

    Attributes:
        campaign_id: The campaign being activated.
        start_time: ISO timestamp of the configured start.
    """

    kind = GovernanceErrorKind.NOT_YET_STARTED

    def __init__(
        self, campaign_id: str, start_time: str, message: Optional[str] = None
    ) -> None:
        msg = message or f"Campaign {campaign_id} cannot start before {start_time}"
        super().__init__(msg)
        self.campaign_id = campaign_id
        self.start_time = start_time


class InvalidChoiceError(CampaignError):
    """Raised when a ballot names a choice the campaign does not offer.

    Attributes:
        campaign_id: The campaign being voted in.
        choice_id: The unknown choice.
    """

    kind = GovernanceErrorKind.INVALID_CHOICE

    def __init__(
        self, campaign_id: str, choice_id: str, message: Optional[str] = None
    ) -> None:
        msg = message or f"Choice {choice_id} is not offered in campaign {campaign_id}"
        super().__init__(msg)
        self.campaign_id = campaign_id
        self.choice_id = choice_id
