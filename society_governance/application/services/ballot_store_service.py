"""Ballot storage and tallying.

One ballot per (campaign, voter identity), enforced by the store's
insert-if-absent write rather than a read-then-write check, so two
concurrent casts for the same identity cannot both succeed.

Anonymous campaigns store a keyed blake3 token instead of the voter id.
The token is deterministic per voter and campaign, so duplicates are
still rejected, and cannot be reversed without the process key.

Tallies are always recounted from stored ballots; there is no separate
counter that could drift from them.
"""

from __future__ import annotations

from collections import Counter

import blake3

from society_governance.application.ports.governance_store import GovernanceStoreProtocol
from society_governance.application.ports.time_authority import TimeAuthorityProtocol
from society_governance.application.services.base import LoggingMixin
from society_governance.domain.errors.campaign import (
    CampaignNotActiveError,
    DuplicateVoteError,
    InvalidChoiceError,
    VoterNotEligibleError,
)
from society_governance.domain.errors.store import RecordExistsError
from society_governance.domain.models.ballot import Ballot, ballot_collection
from society_governance.domain.models.campaign import CampaignStatus, VotingCampaign


def derive_voter_token(key: bytes, campaign_id: str, voter_id: str) -> str:
    """Keyed one-way token standing in for a voter in an anonymous campaign."""
    return blake3.blake3(f"{campaign_id}:{voter_id}".encode(), key=key).hexdigest()


class BallotStore(LoggingMixin):
    """Records ballots and derives tallies from them."""

    def __init__(
        self,
        store: GovernanceStoreProtocol,
        time_authority: TimeAuthorityProtocol,
        token_key: bytes,
    ) -> None:
        self._store = store
        self._time = time_authority
        self._token_key = token_key
        self._init_logger()

    def voter_identity(self, campaign: VotingCampaign, voter_id: str) -> str:
        if campaign.is_anonymous:
            return derive_voter_token(self._token_key, campaign.campaign_id, voter_id)
        return voter_id

    async def cast(
        self,
        campaign: VotingCampaign,
        voter_id: str,
        choice_id: str,
    ) -> Ballot:
        """Record a ballot.

        Eligibility is checked against the raw voter id and the campaign's
        frozen electorate before any identity is derived.

        Raises:
            CampaignNotActiveError: Campaign is not ACTIVE or its end time passed.
            VoterNotEligibleError: Voter is outside the frozen electorate.
            InvalidChoiceError: Choice is not on the ballot.
            DuplicateVoteError: This identity already voted.
        """
        now = self._time.utcnow()
        if campaign.status is not CampaignStatus.ACTIVE:
            raise CampaignNotActiveError(campaign.campaign_id, campaign.status.value)
        if now >= campaign.end_time:
            raise CampaignNotActiveError(
                campaign.campaign_id,
                campaign.status.value,
                message=(
                    f"Voting in campaign {campaign.campaign_id} ended at "
                    f"{campaign.end_time.isoformat()}"
                ),
            )
        if not campaign.is_voter_eligible(voter_id):
            raise VoterNotEligibleError(campaign.campaign_id, voter_id)
        if not campaign.has_choice(choice_id):
            raise InvalidChoiceError(campaign.campaign_id, choice_id)

        ballot = Ballot(
            campaign_id=campaign.campaign_id,
            voter_identity=self.voter_identity(campaign, voter_id),
            choice_id=choice_id,
            cast_at=now,
            is_anonymous=campaign.is_anonymous,
        )
        try:
            await self._store.insert(ballot.collection, ballot.voter_identity, ballot.to_dict())
        except RecordExistsError:
            self._log_operation("cast", campaign_id=campaign.campaign_id).info(
                "duplicate_vote_rejected"
            )
            raise DuplicateVoteError(campaign.campaign_id) from None
        return ballot

    async def ballots(self, campaign_id: str) -> list[Ballot]:
        records = await self._store.list(ballot_collection(campaign_id))
        return [Ballot.from_dict(record) for record in records]

    async def tally(self, campaign_id: str) -> dict[str, int]:
        """Votes per choice id, counted from stored ballots."""
        return dict(Counter(ballot.choice_id for ballot in await self.ballots(campaign_id)))

    async def count(self, campaign_id: str) -> int:
        return len(await self.ballots(campaign_id))
