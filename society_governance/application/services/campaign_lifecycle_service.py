"""Voting campaign lifecycle.

Owns the campaign state machine:

    DRAFT -> SCHEDULED -> ACTIVE -> CLOSED -> RESULTS_PUBLISHED
      |          |
      +----------+--> CANCELLED

- DRAFT -> SCHEDULED fetches the roster, resolves the electorate and
  freezes it. An unavailable roster blocks the transition (fail closed);
  an empty electorate is rejected.
- SCHEDULED -> ACTIVE only at or after the start time.
- ACTIVE -> CLOSED at the end time or on an explicit close. Results are
  computed on close and published straight away when quorum is met;
  otherwise they wait for an explicit publish, which is audited as a
  manual override.
- CLOSED -> RESULTS_PUBLISHED recounts from stored ballots. Publishing an
  already published campaign returns the stored results unchanged.

Every mutation of a campaign runs under that campaign's lock, and every
transition appends an audit entry.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Optional
from uuid import uuid4

from society_governance.application.dtos.governance import CampaignSpecDTO
from society_governance.application.ports.governance_store import (
    CAMPAIGNS,
    GovernanceStoreProtocol,
)
from society_governance.application.ports.roster_provider import RosterProviderProtocol
from society_governance.application.ports.time_authority import TimeAuthorityProtocol
from society_governance.application.services.audit_log_service import AuditLog
from society_governance.application.services.ballot_store_service import BallotStore
from society_governance.application.services.base import LoggingMixin
from society_governance.application.services.eligibility_service import EligibilityEvaluator
from society_governance.application.services.entity_locks import EntityLockRegistry
from society_governance.domain.errors.campaign import (
    CampaignNotActiveError,
    CampaignNotFoundError,
    EmptyElectorateError,
    NotYetStartedError,
)
from society_governance.domain.errors.state_transition import InvalidTransitionError
from society_governance.domain.exceptions import GovernanceError
from society_governance.domain.models.audit import (
    ANONYMOUS_ACTOR_ID,
    SYSTEM_ACTOR_ID,
    AuditAction,
    ResourceType,
)
from society_governance.domain.models.ballot import Ballot
from society_governance.domain.models.campaign import (
    CampaignResults,
    CampaignStatus,
    Choice,
    VotingCampaign,
)

_LOCK_KIND = "campaign"


class CampaignLifecycleManager(LoggingMixin):
    """Runs voting campaigns from draft to published results."""

    def __init__(
        self,
        store: GovernanceStoreProtocol,
        roster_provider: RosterProviderProtocol,
        eligibility: EligibilityEvaluator,
        ballots: BallotStore,
        audit_log: AuditLog,
        time_authority: TimeAuthorityProtocol,
        locks: Optional[EntityLockRegistry] = None,
        default_quorum_percent: float = 50.0,
    ) -> None:
        self._store = store
        self._roster = roster_provider
        self._eligibility = eligibility
        self._ballots = ballots
        self._audit = audit_log
        self._time = time_authority
        self._locks = locks if locks is not None else EntityLockRegistry()
        self._default_quorum_percent = default_quorum_percent
        self._init_logger()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_campaign(self, campaign_id: str) -> VotingCampaign:
        """Load a campaign.

        Raises:
            CampaignNotFoundError: If no campaign has this id.
        """
        record = await self._store.get(CAMPAIGNS, campaign_id)
        if record is None:
            raise CampaignNotFoundError(campaign_id)
        return VotingCampaign.from_dict(record)

    async def list_campaigns(
        self,
        society_id: Optional[str] = None,
        status: Optional[CampaignStatus] = None,
    ) -> list[VotingCampaign]:
        campaigns = [VotingCampaign.from_dict(r) for r in await self._store.list(CAMPAIGNS)]
        return [
            c
            for c in campaigns
            if (society_id is None or c.society_id == society_id)
            and (status is None or c.status is status)
        ]

    async def tally(self, campaign_id: str) -> dict[str, int]:
        """Lock-free read of the current per-choice counts."""
        await self.get_campaign(campaign_id)
        return await self._ballots.tally(campaign_id)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def create_campaign(self, spec: CampaignSpecDTO) -> VotingCampaign:
        """Create a DRAFT campaign.

        Raises:
            InvalidRuleError: If the eligibility rule is contradictory.
            InvalidCampaignError: If the campaign data is malformed.
        """
        spec.eligibility_rule.validate()
        now = self._time.utcnow()
        minimum = spec.minimum_participation_percent
        if minimum is None:
            minimum = self._default_quorum_percent if spec.requires_quorum else 0.0

        campaign = VotingCampaign(
            campaign_id=str(uuid4()),
            society_id=spec.society_id,
            title=spec.title,
            description=spec.description,
            campaign_type=spec.campaign_type,
            status=CampaignStatus.DRAFT,
            start_time=spec.start_time,
            end_time=spec.end_time,
            choices=tuple(self._build_choices(spec)),
            eligibility_rule=spec.eligibility_rule,
            is_anonymous=spec.is_anonymous,
            requires_quorum=spec.requires_quorum,
            minimum_participation_percent=float(minimum),
            created_by=spec.created_by,
            created_at=now,
            updated_at=now,
        )
        log = self._log_operation("create_campaign", campaign_id=campaign.campaign_id)

        await self._save(campaign)
        await self._audit.record(
            spec.created_by,
            AuditAction.CAMPAIGN_CREATED,
            ResourceType.CAMPAIGN,
            campaign.campaign_id,
            {
                "society_id": campaign.society_id,
                "campaign_type": campaign.campaign_type.value,
                "title": campaign.title,
            },
        )
        log.info("campaign_created", society_id=campaign.society_id)
        return campaign

    async def schedule_campaign(
        self, campaign_id: str, actor_id: str = SYSTEM_ACTOR_ID
    ) -> VotingCampaign:
        """Resolve and freeze the electorate, then move to SCHEDULED.

        Raises:
            InvalidTransitionError: If the campaign is not in DRAFT.
            InvalidRuleError: If the eligibility rule is contradictory.
            RosterUnavailableError: If the roster cannot be fetched.
            EmptyElectorateError: If nobody is eligible.
        """
        log = self._log_operation("schedule_campaign", campaign_id=campaign_id)
        async with self._locks.lock_for(_LOCK_KIND, campaign_id):
            campaign = await self.get_campaign(campaign_id)
            self._require_transition(campaign, CampaignStatus.SCHEDULED)
            campaign.eligibility_rule.validate()

            roster = await self._roster.get_residency_roster(campaign.society_id)
            eligible = self._eligibility.resolve_eligibility(campaign.eligibility_rule, roster)
            if not eligible:
                log.warning("campaign_electorate_empty", roster_size=len(roster))
                raise EmptyElectorateError(campaign_id)

            scheduled = campaign.scheduled(eligible, self._time.utcnow())
            await self._save(scheduled)
            await self._audit.record(
                actor_id,
                AuditAction.CAMPAIGN_SCHEDULED,
                ResourceType.CAMPAIGN,
                campaign_id,
                {"eligible_count": len(eligible), "roster_size": len(roster)},
            )
        log.info("campaign_scheduled", eligible_count=len(eligible))
        return scheduled

    async def activate_campaign(
        self, campaign_id: str, actor_id: str = SYSTEM_ACTOR_ID
    ) -> VotingCampaign:
        """Open voting.

        Raises:
            InvalidTransitionError: If the campaign is not SCHEDULED.
            NotYetStartedError: If the start time has not been reached.
        """
        async with self._locks.lock_for(_LOCK_KIND, campaign_id):
            campaign = await self.get_campaign(campaign_id)
            self._require_transition(campaign, CampaignStatus.ACTIVE)
            now = self._time.utcnow()
            if now < campaign.start_time:
                raise NotYetStartedError(campaign_id, campaign.start_time.isoformat())

            activated = campaign.activated(now)
            await self._save(activated)
            await self._audit.record(
                actor_id,
                AuditAction.CAMPAIGN_ACTIVATED,
                ResourceType.CAMPAIGN,
                campaign_id,
            )
        self._log_operation("activate_campaign", campaign_id=campaign_id).info(
            "campaign_activated"
        )
        return activated

    async def cast_vote(self, campaign_id: str, voter_id: str, choice_id: str) -> Ballot:
        """Record a vote and refresh the campaign's derived counts.

        A rejected vote leaves no ballot behind. A vote arriving at or after
        the end time is rejected and closes the campaign on the spot, so
        voting ends on time even when no sweep has run yet.

        The ballot is stored before the campaign's counts. If saving the
        counts fails the ballot stands and StoreUnavailableError is
        raised; retrying the same vote then fails with DuplicateVoteError.
        The stored counts catch up on the next vote or on close, both of
        which recount from ballots.

        Raises:
            CampaignNotFoundError: Unknown campaign.
            CampaignNotActiveError: Campaign is not ACTIVE or has ended.
            VoterNotEligibleError: Voter is outside the frozen electorate.
            InvalidChoiceError: Choice is not on the ballot.
            DuplicateVoteError: Voter already voted.
            StoreUnavailableError: The ballot was stored but the counts were not.
        """
        async with self._locks.lock_for(_LOCK_KIND, campaign_id):
            campaign = await self.get_campaign(campaign_id)
            ended = (
                campaign.status is CampaignStatus.ACTIVE
                and self._time.utcnow() >= campaign.end_time
            )
            if not ended:
                ballot = await self._ballots.cast(campaign, voter_id, choice_id)
                tally = await self._ballots.tally(campaign_id)
                await self._save(campaign.with_tally(tally, self._time.utcnow()))

                if campaign.is_anonymous:
                    actor, details = ANONYMOUS_ACTOR_ID, {}
                else:
                    actor, details = voter_id, {"choice_id": choice_id}
                await self._audit.record(
                    actor, AuditAction.VOTE_CAST, ResourceType.CAMPAIGN, campaign_id, details
                )

        if ended:
            self._log_operation("cast_vote", campaign_id=campaign_id).info(
                "late_vote_rejected", end_time=campaign.end_time.isoformat()
            )
            await self._close_ended(campaign_id)
            raise CampaignNotActiveError(
                campaign_id,
                CampaignStatus.CLOSED.value,
                message=(
                    f"Voting in campaign {campaign_id} ended at "
                    f"{campaign.end_time.isoformat()}"
                ),
            )

        self._log_operation("cast_vote", campaign_id=campaign_id).debug(
            "vote_cast", anonymous=campaign.is_anonymous
        )
        return ballot

    async def close_campaign(
        self, campaign_id: str, actor_id: str = SYSTEM_ACTOR_ID
    ) -> VotingCampaign:
        """Stop voting and compute results.

        Results are published in the same step when quorum is met. When
        quorum is missed the campaign stays CLOSED with ``quorum_met`` False.

        Raises:
            InvalidTransitionError: If the campaign is not ACTIVE.
        """
        log = self._log_operation("close_campaign", campaign_id=campaign_id)
        async with self._locks.lock_for(_LOCK_KIND, campaign_id):
            campaign = await self.get_campaign(campaign_id)
            self._require_transition(campaign, CampaignStatus.CLOSED)
            now = self._time.utcnow()

            tally = await self._ballots.tally(campaign_id)
            counted = campaign.with_tally(tally, now)
            results = CampaignResults.compute(counted, tally, now)
            closed = counted.closed(results, now)
            await self._save(closed)
            await self._audit.record(
                actor_id,
                AuditAction.CAMPAIGN_CLOSED,
                ResourceType.CAMPAIGN,
                campaign_id,
                {
                    "total_votes": results.total_votes,
                    "eligible_count": results.eligible_count,
                    "participation_percent": results.participation_percent,
                    "quorum_met": results.quorum_met,
                },
            )
            log.info(
                "campaign_closed",
                participation_percent=results.participation_percent,
                quorum_met=results.quorum_met,
            )
            if not results.quorum_met:
                log.warning("campaign_quorum_not_met", publish_withheld=True)
                return closed
            return await self._publish(closed, SYSTEM_ACTOR_ID)

    async def publish_results(
        self, campaign_id: str, actor_id: str = SYSTEM_ACTOR_ID
    ) -> CampaignResults:
        """Publish final results.

        Idempotent: publishing an already published campaign returns the
        stored results and writes nothing.

        Raises:
            InvalidTransitionError: If the campaign has not been closed.
        """
        async with self._locks.lock_for(_LOCK_KIND, campaign_id):
            campaign = await self.get_campaign(campaign_id)
            if campaign.status is CampaignStatus.RESULTS_PUBLISHED and campaign.results:
                return campaign.results
            self._require_transition(campaign, CampaignStatus.RESULTS_PUBLISHED)
            published = await self._publish(campaign, actor_id)
        assert published.results is not None
        return published.results

    async def cancel_campaign(
        self, campaign_id: str, reason: str, actor_id: str = SYSTEM_ACTOR_ID
    ) -> VotingCampaign:
        """Cancel a DRAFT or SCHEDULED campaign.

        Raises:
            InvalidTransitionError: From any other status.
        """
        async with self._locks.lock_for(_LOCK_KIND, campaign_id):
            campaign = await self.get_campaign(campaign_id)
            cancelled = campaign.cancelled(reason, self._time.utcnow())
            await self._save(cancelled)
            await self._audit.record(
                actor_id,
                AuditAction.CAMPAIGN_CANCELLED,
                ResourceType.CAMPAIGN,
                campaign_id,
                {"reason": reason, "previous_status": campaign.status.value},
            )
        self._log_operation("cancel_campaign", campaign_id=campaign_id).info(
            "campaign_cancelled", reason=reason
        )
        return cancelled

    async def run_due_transitions(
        self, now: Optional[datetime] = None
    ) -> list[VotingCampaign]:
        """Activate campaigns whose start passed and close those whose end passed.

        One failing campaign does not stop the sweep; its error is logged
        and the next campaign is processed.

        Returns:
            Campaigns that changed status.
        """
        now = now or self._time.utcnow()
        log = self._log_operation("run_due_transitions")
        changed: list[VotingCampaign] = []
        for campaign in await self.list_campaigns():
            try:
                if campaign.status is CampaignStatus.SCHEDULED and campaign.start_time <= now:
                    changed.append(await self.activate_campaign(campaign.campaign_id))
                elif campaign.status is CampaignStatus.ACTIVE and campaign.end_time <= now:
                    changed.append(await self.close_campaign(campaign.campaign_id))
            except GovernanceError as exc:
                log.warning(
                    "due_transition_failed",
                    campaign_id=campaign.campaign_id,
                    kind=exc.kind.value,
                    message=exc.message,
                )
        if changed:
            log.info("due_transitions_applied", count=len(changed))
        return changed

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _close_ended(self, campaign_id: str) -> None:
        try:
            await self.close_campaign(campaign_id)
        except InvalidTransitionError:
            # closed meanwhile by a sweep or an explicit close
            pass

    async def _publish(self, campaign: VotingCampaign, actor_id: str) -> VotingCampaign:
        now = self._time.utcnow()
        tally = await self._ballots.tally(campaign.campaign_id)
        counted = campaign.with_tally(tally, now)
        results = CampaignResults.compute(counted, tally, now).published(now)
        published = counted.results_published(results, now)
        await self._save(published)
        await self._audit.record(
            actor_id,
            AuditAction.RESULTS_PUBLISHED,
            ResourceType.CAMPAIGN,
            campaign.campaign_id,
            {
                "total_votes": results.total_votes,
                "winner_id": results.winner_id,
                "tie_requires_runoff": results.tie_requires_runoff,
                "quorum_met": results.quorum_met,
                "manual_override": not results.quorum_met,
            },
        )
        log = self._log_operation("publish_results", campaign_id=campaign.campaign_id)
        if results.tie_requires_runoff:
            log.warning("campaign_tie_requires_runoff")
        log.info("results_published", winner_id=results.winner_id)
        return published

    async def _save(self, campaign: VotingCampaign) -> None:
        await self._store.put(CAMPAIGNS, campaign.campaign_id, campaign.to_dict())

    @staticmethod
    def _require_transition(campaign: VotingCampaign, target: CampaignStatus) -> None:
        if not campaign.status.can_transition_to(target):
            raise InvalidTransitionError(
                "campaign", campaign.campaign_id, campaign.status.value, target.value
            )

    @staticmethod
    def _build_choices(spec: CampaignSpecDTO) -> Iterable[Choice]:
        for choice in spec.choices:
            yield Choice(
                choice_id=choice.choice_id or str(uuid4()),
                label=choice.label,
                description=choice.description,
                candidate_user_id=choice.candidate_user_id,
            )
