"""Policy proposals.

A proposal is decided by a linked POLICY_VOTE campaign offering the
choices ``approve`` and ``reject``. Ballots, eligibility, quorum and
tallying all belong to CampaignLifecycleManager; this service creates the
campaign, mirrors its tally and records the final decision.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional
from uuid import uuid4

from society_governance.application.dtos.governance import (
    CampaignSpecDTO,
    ChoiceSpecDTO,
    PolicyProposalSpecDTO,
)
from society_governance.application.ports.governance_store import (
    POLICY_PROPOSALS,
    GovernanceStoreProtocol,
)
from society_governance.application.ports.time_authority import TimeAuthorityProtocol
from society_governance.application.services.audit_log_service import AuditLog
from society_governance.application.services.base import LoggingMixin
from society_governance.application.services.campaign_lifecycle_service import (
    CampaignLifecycleManager,
)
from society_governance.application.services.entity_locks import EntityLockRegistry
from society_governance.domain.errors.policy import ProposalNotFoundError
from society_governance.domain.errors.state_transition import InvalidTransitionError
from society_governance.domain.exceptions import GovernanceError
from society_governance.domain.models.audit import AuditAction, ResourceType
from society_governance.domain.models.ballot import Ballot
from society_governance.domain.models.campaign import (
    CampaignResults,
    CampaignStatus,
    CampaignType,
)
from society_governance.domain.models.policy import (
    PolicyChoice,
    PolicyProposal,
    PolicyStatus,
)

_LOCK_KIND = "policy_proposal"


class PolicyProposalService(LoggingMixin):
    """Creates policy proposals and decides them through campaigns."""

    def __init__(
        self,
        store: GovernanceStoreProtocol,
        campaigns: CampaignLifecycleManager,
        audit_log: AuditLog,
        time_authority: TimeAuthorityProtocol,
        locks: Optional[EntityLockRegistry] = None,
    ) -> None:
        self._store = store
        self._campaigns = campaigns
        self._audit = audit_log
        self._time = time_authority
        self._locks = locks if locks is not None else EntityLockRegistry()
        self._init_logger()

    async def get_proposal(self, proposal_id: str) -> PolicyProposal:
        record = await self._store.get(POLICY_PROPOSALS, proposal_id)
        if record is None:
            raise ProposalNotFoundError(proposal_id)
        return PolicyProposal.from_dict(record)

    async def list_proposals(
        self,
        society_id: Optional[str] = None,
        status: Optional[PolicyStatus] = None,
    ) -> list[PolicyProposal]:
        proposals = [
            PolicyProposal.from_dict(r) for r in await self._store.list(POLICY_PROPOSALS)
        ]
        return [
            p
            for p in proposals
            if (society_id is None or p.society_id == society_id)
            and (status is None or p.status is status)
        ]

    async def create_proposal(self, spec: PolicyProposalSpecDTO) -> PolicyProposal:
        """Create a proposal and open its vote immediately.

        The linked campaign is created, scheduled and activated in one
        step. If scheduling fails the draft campaign is cancelled and the
        error propagates; no proposal is stored.

        Raises:
            InvalidProposalError: Malformed proposal.
            InvalidRuleError: Contradictory eligibility rule.
            RosterUnavailableError: Roster could not be fetched.
            EmptyElectorateError: Nobody is eligible to vote.
        """
        now = self._time.utcnow()
        proposal_id = str(uuid4())
        # Validate proposal fields before creating anything.
        draft = PolicyProposal(
            proposal_id=proposal_id,
            society_id=spec.society_id,
            title=spec.title,
            proposal_text=spec.proposal_text,
            category=spec.category,
            proposed_by=spec.proposed_by,
            status=PolicyStatus.DRAFT,
            campaign_id="",
            created_at=now,
            updated_at=now,
            changes=tuple(spec.changes),
            voting_threshold_percent=spec.voting_threshold_percent,
        )

        campaign = await self._campaigns.create_campaign(
            CampaignSpecDTO(
                society_id=spec.society_id,
                title=f"Policy: {spec.title}",
                description=spec.proposal_text,
                campaign_type=CampaignType.POLICY_VOTE,
                start_time=now,
                end_time=spec.voting_ends_at,
                choices=(
                    ChoiceSpecDTO(label="Approve", choice_id=PolicyChoice.APPROVE.value),
                    ChoiceSpecDTO(label="Reject", choice_id=PolicyChoice.REJECT.value),
                ),
                created_by=spec.proposed_by,
                eligibility_rule=spec.eligibility_rule,
                is_anonymous=spec.is_anonymous,
                requires_quorum=spec.requires_quorum,
                minimum_participation_percent=spec.minimum_participation_percent,
            )
        )
        try:
            await self._campaigns.schedule_campaign(campaign.campaign_id, spec.proposed_by)
        except GovernanceError as exc:
            await self._campaigns.cancel_campaign(
                campaign.campaign_id,
                f"Policy proposal aborted: {exc.kind.value}",
                spec.proposed_by,
            )
            raise
        await self._campaigns.activate_campaign(campaign.campaign_id, spec.proposed_by)

        draft = replace(draft, campaign_id=campaign.campaign_id)
        await self._audit.record(
            spec.proposed_by,
            AuditAction.POLICY_PROPOSED,
            ResourceType.POLICY_PROPOSAL,
            proposal_id,
            {"category": spec.category.value, "campaign_id": campaign.campaign_id},
        )
        proposal = draft.voting_opened(self._time.utcnow())
        await self._save(proposal)
        await self._audit.record(
            spec.proposed_by,
            AuditAction.POLICY_VOTING_OPENED,
            ResourceType.POLICY_PROPOSAL,
            proposal_id,
            {"voting_ends_at": spec.voting_ends_at.isoformat()},
        )
        self._log_operation("create_proposal", proposal_id=proposal_id).info(
            "policy_proposed", campaign_id=campaign.campaign_id
        )
        return proposal

    async def vote_on_policy(
        self, proposal_id: str, voter_id: str, choice: PolicyChoice
    ) -> Ballot:
        """Cast a vote on the linked campaign and refresh the mirrored tally.

        Raises:
            ProposalNotFoundError: Unknown proposal.
            CampaignNotActiveError: Voting has ended.
            VoterNotEligibleError, DuplicateVoteError: As for any campaign.
        """
        proposal = await self.get_proposal(proposal_id)
        ballot = await self._campaigns.cast_vote(proposal.campaign_id, voter_id, choice.value)
        async with self._locks.lock_for(_LOCK_KIND, proposal_id):
            proposal = await self.get_proposal(proposal_id)
            tally = await self._campaigns.tally(proposal.campaign_id)
            await self._save(
                proposal.with_tally(
                    tally.get(PolicyChoice.APPROVE.value, 0),
                    tally.get(PolicyChoice.REJECT.value, 0),
                    self._time.utcnow(),
                )
            )
        return ballot

    async def finalize_policy(self, proposal_id: str, actor_id: str) -> PolicyProposal:
        """Close and publish the linked campaign and decide the proposal.

        The proposal is rejected when quorum was required and missed, when
        no votes were cast, or when the approve share of votes cast is
        below the proposal's threshold.

        Raises:
            ProposalNotFoundError: Unknown proposal.
            InvalidTransitionError: Proposal already decided.
        """
        async with self._locks.lock_for(_LOCK_KIND, proposal_id):
            proposal = await self.get_proposal(proposal_id)
            if proposal.status is not PolicyStatus.VOTING:
                raise InvalidTransitionError(
                    "policy_proposal", proposal_id, proposal.status.value, "decided"
                )
            campaign = await self._campaigns.get_campaign(proposal.campaign_id)
            if campaign.status is CampaignStatus.ACTIVE:
                await self._campaigns.close_campaign(proposal.campaign_id, actor_id)
            results = await self._campaigns.publish_results(proposal.campaign_id, actor_id)

            approved, reason = self._decide(proposal, results)
            decided = proposal.with_tally(
                results.votes_for(PolicyChoice.APPROVE.value),
                results.votes_for(PolicyChoice.REJECT.value),
                self._time.utcnow(),
            ).decided(approved, reason, self._time.utcnow())
            await self._save(decided)
            await self._audit.record(
                actor_id,
                AuditAction.POLICY_APPROVED if approved else AuditAction.POLICY_REJECTED,
                ResourceType.POLICY_PROPOSAL,
                proposal_id,
                {
                    "approve_votes": decided.approve_votes,
                    "reject_votes": decided.reject_votes,
                    "quorum_met": results.quorum_met,
                    "reason": reason,
                },
            )
        self._log_operation("finalize_policy", proposal_id=proposal_id).info(
            "policy_decided", approved=approved, reason=reason
        )
        return decided

    @staticmethod
    def _decide(proposal: PolicyProposal, results: CampaignResults) -> tuple[bool, str]:
        if not results.quorum_met:
            return False, "quorum not met"
        approve = results.votes_for(PolicyChoice.APPROVE.value)
        total = results.total_votes
        if total == 0:
            return False, "no votes cast"
        share = approve / total * 100.0
        threshold = proposal.voting_threshold_percent
        if share >= threshold:
            return True, f"{share:.2f}% approval meets {threshold:g}% threshold"
        return False, f"{share:.2f}% approval below {threshold:g}% threshold"

    async def _save(self, proposal: PolicyProposal) -> None:
        await self._store.put(POLICY_PROPOSALS, proposal.proposal_id, proposal.to_dict())
