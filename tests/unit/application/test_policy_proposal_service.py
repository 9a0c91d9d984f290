"""Unit tests for policy proposals decided through campaigns."""

from __future__ import annotations

import pytest

from society_governance.application.services.governance_coordinator import (
    GovernanceCoordinator,
)
from society_governance.domain.errors import (
    DuplicateVoteError,
    EmptyElectorateError,
    InvalidProposalError,
    InvalidTransitionError,
    ProposalNotFoundError,
)
from society_governance.domain.models.audit import AuditAction, AuditFilter
from society_governance.domain.models.campaign import CampaignStatus, CampaignType
from society_governance.domain.models.policy import PolicyChoice, PolicyStatus
from society_governance.infrastructure.stubs import RosterProviderStub
from tests.helpers import SOCIETY_ID, policy_spec


async def _vote(
    coordinator: GovernanceCoordinator, proposal_id: str, approve: int, reject: int
) -> None:
    voters = (f"resident-{i:03d}" for i in range(approve + reject))
    for _ in range(approve):
        await coordinator.vote_on_policy(proposal_id, next(voters), PolicyChoice.APPROVE)
    for _ in range(reject):
        await coordinator.vote_on_policy(proposal_id, next(voters), PolicyChoice.REJECT)


class TestCreateProposal:
    async def test_opens_voting_on_linked_campaign(
        self, coordinator: GovernanceCoordinator
    ) -> None:
        proposal = await coordinator.create_policy_proposal(policy_spec())
        assert proposal.status is PolicyStatus.VOTING

        campaign = await coordinator.get_campaign(proposal.campaign_id)
        assert campaign.campaign_type is CampaignType.POLICY_VOTE
        assert campaign.status is CampaignStatus.ACTIVE
        assert campaign.choice_ids == ("approve", "reject")

    async def test_invalid_proposal_creates_nothing(
        self, coordinator: GovernanceCoordinator
    ) -> None:
        with pytest.raises(InvalidProposalError):
            await coordinator.create_policy_proposal(policy_spec(proposal_text=""))
        assert await coordinator.list_campaigns() == []

    async def test_empty_electorate_cancels_campaign(
        self,
        coordinator: GovernanceCoordinator,
        roster: RosterProviderStub,
    ) -> None:
        roster.set_roster(SOCIETY_ID, [])
        with pytest.raises(EmptyElectorateError):
            await coordinator.create_policy_proposal(policy_spec())
        campaigns = await coordinator.list_campaigns()
        assert [c.status for c in campaigns] == [CampaignStatus.CANCELLED]
        assert await coordinator.list_policy_proposals() == []

    async def test_unknown_proposal(self, coordinator: GovernanceCoordinator) -> None:
        with pytest.raises(ProposalNotFoundError):
            await coordinator.get_policy_proposal("missing")


class TestVoting:
    async def test_vote_mirrors_tally(self, coordinator: GovernanceCoordinator) -> None:
        proposal = await coordinator.create_policy_proposal(policy_spec())
        await _vote(coordinator, proposal.proposal_id, approve=2, reject=1)
        reloaded = await coordinator.get_policy_proposal(proposal.proposal_id)
        assert (reloaded.approve_votes, reloaded.reject_votes) == (2, 1)

    async def test_duplicate_vote_rejected(self, coordinator: GovernanceCoordinator) -> None:
        proposal = await coordinator.create_policy_proposal(policy_spec())
        await coordinator.vote_on_policy(
            proposal.proposal_id, "resident-000", PolicyChoice.APPROVE
        )
        with pytest.raises(DuplicateVoteError):
            await coordinator.vote_on_policy(
                proposal.proposal_id, "resident-000", PolicyChoice.REJECT
            )


class TestFinalize:
    async def test_majority_approves(self, coordinator: GovernanceCoordinator) -> None:
        proposal = await coordinator.create_policy_proposal(policy_spec())
        await _vote(coordinator, proposal.proposal_id, approve=6, reject=3)

        decided = await coordinator.finalize_policy(proposal.proposal_id, "admin-001")
        assert decided.status is PolicyStatus.APPROVED
        assert decided.decided_at is not None
        campaign = await coordinator.get_campaign(decided.campaign_id)
        assert campaign.status is CampaignStatus.RESULTS_PUBLISHED

        approvals = await coordinator.query_audit(
            AuditFilter(resource_id=proposal.proposal_id, action=AuditAction.POLICY_APPROVED)
        )
        assert approvals[0].actor_id == "admin-001"

    async def test_supermajority_threshold(self, coordinator: GovernanceCoordinator) -> None:
        proposal = await coordinator.create_policy_proposal(
            policy_spec(voting_threshold_percent=75)
        )
        await _vote(coordinator, proposal.proposal_id, approve=6, reject=3)
        decided = await coordinator.finalize_policy(proposal.proposal_id, "admin-001")
        assert decided.status is PolicyStatus.REJECTED
        assert "below" in (decided.decision_reason or "")

    async def test_missed_quorum_rejects(self, coordinator: GovernanceCoordinator) -> None:
        proposal = await coordinator.create_policy_proposal(
            policy_spec(requires_quorum=True, minimum_participation_percent=60)
        )
        await _vote(coordinator, proposal.proposal_id, approve=5, reject=0)
        decided = await coordinator.finalize_policy(proposal.proposal_id, "admin-001")
        assert decided.status is PolicyStatus.REJECTED
        assert decided.decision_reason == "quorum not met"

    async def test_no_votes_rejects(self, coordinator: GovernanceCoordinator) -> None:
        proposal = await coordinator.create_policy_proposal(policy_spec())
        decided = await coordinator.finalize_policy(proposal.proposal_id, "admin-001")
        assert decided.status is PolicyStatus.REJECTED
        assert decided.decision_reason == "no votes cast"

    async def test_finalize_twice_rejected(self, coordinator: GovernanceCoordinator) -> None:
        proposal = await coordinator.create_policy_proposal(policy_spec())
        await _vote(coordinator, proposal.proposal_id, approve=1, reject=0)
        await coordinator.finalize_policy(proposal.proposal_id, "admin-001")
        with pytest.raises(InvalidTransitionError):
            await coordinator.finalize_policy(proposal.proposal_id, "admin-001")
