"""Governance coordinator - single entry point to the governance engine.

Composes the audit log, eligibility evaluator, ballot store, campaign
lifecycle manager, escalation scheduler, succession coordinator and
policy proposal service over injected collaborators. The API layer calls
nothing else.

Every instance owns its own services and lock registry; there is no
module-level state, so independent instances can run side by side.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from society_governance.application.dtos.governance import (
    CampaignSpecDTO,
    EmergencySpecDTO,
    PolicyProposalSpecDTO,
    SuccessionEventDTO,
    SuccessionPlanSpecDTO,
)
from society_governance.application.ports.governance_store import GovernanceStoreProtocol
from society_governance.application.ports.notification_dispatcher import (
    NotificationDispatcherProtocol,
)
from society_governance.application.ports.roster_provider import RosterProviderProtocol
from society_governance.application.ports.time_authority import TimeAuthorityProtocol
from society_governance.application.services.audit_log_service import AuditLog
from society_governance.application.services.ballot_store_service import BallotStore
from society_governance.application.services.base import LoggingMixin
from society_governance.application.services.campaign_lifecycle_service import (
    CampaignLifecycleManager,
)
from society_governance.application.services.eligibility_service import EligibilityEvaluator
from society_governance.application.services.entity_locks import EntityLockRegistry
from society_governance.application.services.escalation_scheduler_service import (
    EscalationScheduler,
)
from society_governance.application.services.policy_proposal_service import (
    PolicyProposalService,
)
from society_governance.application.services.succession_service import SuccessionCoordinator
from society_governance.config.governance_config import GovernanceConfig
from society_governance.domain.errors.permission import PermissionDeniedError
from society_governance.domain.models.audit import (
    SYSTEM_ACTOR_ID,
    AuditEntry,
    AuditFilter,
)
from society_governance.domain.models.ballot import Ballot
from society_governance.domain.models.campaign import (
    CampaignResults,
    CampaignStatus,
    VotingCampaign,
)
from society_governance.domain.models.dashboard import GovernanceDashboard
from society_governance.domain.models.emergency import (
    AlertStatus,
    EmergencyAlert,
    EmergencyResponse,
)
from society_governance.domain.models.permission import (
    GovernanceAction,
    GovernanceRole,
    can_perform,
)
from society_governance.domain.models.policy import (
    PolicyChoice,
    PolicyProposal,
    PolicyStatus,
)
from society_governance.domain.models.succession import SuccessionPlan


class GovernanceCoordinator(LoggingMixin):
    """Root of the governance engine."""

    def __init__(
        self,
        store: GovernanceStoreProtocol,
        roster_provider: RosterProviderProtocol,
        dispatcher: NotificationDispatcherProtocol,
        time_authority: TimeAuthorityProtocol,
        config: Optional[GovernanceConfig] = None,
    ) -> None:
        """Wire the engine over its collaborators.

        Args:
            store: Persistence adapter for every entity and the audit log.
            roster_provider: Source of residency rosters.
            dispatcher: Notification delivery for escalation levels.
            time_authority: Clock and timer source.
            config: Engine tunables; defaults apply when omitted.
        """
        self._config = config or GovernanceConfig()
        self._time = time_authority
        locks = EntityLockRegistry()

        self.audit_log = AuditLog(
            store,
            time_authority,
            retry_seconds=self._config.audit_retry_seconds,
            buffer_limit=self._config.audit_buffer_limit,
        )
        self.ballots = BallotStore(store, time_authority, self._config.ballot_token_key)
        self.campaigns = CampaignLifecycleManager(
            store=store,
            roster_provider=roster_provider,
            eligibility=EligibilityEvaluator(),
            ballots=self.ballots,
            audit_log=self.audit_log,
            time_authority=time_authority,
            locks=locks,
            default_quorum_percent=self._config.default_quorum_percent,
        )
        self.escalation = EscalationScheduler(
            store=store,
            dispatcher=dispatcher,
            audit_log=self.audit_log,
            time_authority=time_authority,
            locks=locks,
            default_level_timeout_minutes=self._config.default_level_timeout_minutes,
        )
        self.succession = SuccessionCoordinator(store, self.audit_log, time_authority, locks)
        self.policies = PolicyProposalService(
            store, self.campaigns, self.audit_log, time_authority, locks
        )
        self.escalation.add_exhaustion_listener(self.succession.on_alert_exhausted)
        self._init_logger()

    @property
    def config(self) -> GovernanceConfig:
        return self._config

    @property
    def time_authority(self) -> TimeAuthorityProtocol:
        return self._time

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Re-arm escalation timers left by a previous process."""
        restored = await self.escalation.restore()
        self._log_operation("start").info("governance_engine_started", restored_timers=restored)

    async def shutdown(self) -> None:
        await self.escalation.shutdown()
        await self.audit_log.close()
        self._log_operation("shutdown").info("governance_engine_stopped")

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------

    def authorize(
        self,
        role: Union[GovernanceRole, str],
        action: GovernanceAction,
    ) -> None:
        """Check a role may perform an action.

        Raises:
            PermissionDeniedError: If the role lacks the permission or is unknown.
        """
        try:
            resolved = GovernanceRole(role)
        except ValueError:
            raise PermissionDeniedError(str(role), action.value) from None
        if not can_perform(resolved, action):
            raise PermissionDeniedError(resolved.value, action.value)

    # ------------------------------------------------------------------
    # Campaigns
    # ------------------------------------------------------------------

    async def create_campaign(self, spec: CampaignSpecDTO) -> VotingCampaign:
        return await self.campaigns.create_campaign(spec)

    async def schedule_campaign(
        self, campaign_id: str, actor_id: str = SYSTEM_ACTOR_ID
    ) -> VotingCampaign:
        return await self.campaigns.schedule_campaign(campaign_id, actor_id)

    async def activate_campaign(
        self, campaign_id: str, actor_id: str = SYSTEM_ACTOR_ID
    ) -> VotingCampaign:
        return await self.campaigns.activate_campaign(campaign_id, actor_id)

    async def cast_vote(self, campaign_id: str, voter_id: str, choice_id: str) -> Ballot:
        return await self.campaigns.cast_vote(campaign_id, voter_id, choice_id)

    async def close_campaign(
        self, campaign_id: str, actor_id: str = SYSTEM_ACTOR_ID
    ) -> VotingCampaign:
        return await self.campaigns.close_campaign(campaign_id, actor_id)

    async def publish_results(
        self, campaign_id: str, actor_id: str = SYSTEM_ACTOR_ID
    ) -> CampaignResults:
        return await self.campaigns.publish_results(campaign_id, actor_id)

    async def cancel_campaign(
        self, campaign_id: str, reason: str, actor_id: str = SYSTEM_ACTOR_ID
    ) -> VotingCampaign:
        return await self.campaigns.cancel_campaign(campaign_id, reason, actor_id)

    async def get_campaign(self, campaign_id: str) -> VotingCampaign:
        return await self.campaigns.get_campaign(campaign_id)

    async def list_campaigns(
        self,
        society_id: Optional[str] = None,
        status: Optional[CampaignStatus] = None,
    ) -> list[VotingCampaign]:
        return await self.campaigns.list_campaigns(society_id, status)

    async def run_due_transitions(
        self, now: Optional[datetime] = None
    ) -> list[VotingCampaign]:
        return await self.campaigns.run_due_transitions(now)

    # ------------------------------------------------------------------
    # Emergencies
    # ------------------------------------------------------------------

    async def declare_emergency(self, spec: EmergencySpecDTO) -> EmergencyAlert:
        return await self.escalation.declare_emergency(spec)

    async def acknowledge_escalation(
        self,
        alert_id: str,
        level: int,
        acknowledged_by: str,
        response: EmergencyResponse = EmergencyResponse.ACKNOWLEDGED,
        eta_minutes: Optional[int] = None,
        notes: str = "",
    ) -> EmergencyAlert:
        return await self.escalation.acknowledge_escalation(
            alert_id, level, acknowledged_by, response, eta_minutes, notes
        )

    async def resolve_emergency(
        self, alert_id: str, notes: str, resolved_by: str
    ) -> EmergencyAlert:
        return await self.escalation.resolve_emergency(alert_id, notes, resolved_by)

    async def get_alert(self, alert_id: str) -> EmergencyAlert:
        return await self.escalation.get_alert(alert_id)

    async def list_alerts(
        self,
        society_id: Optional[str] = None,
        status: Optional[AlertStatus] = None,
    ) -> list[EmergencyAlert]:
        return await self.escalation.list_alerts(society_id, status)

    # ------------------------------------------------------------------
    # Succession
    # ------------------------------------------------------------------

    async def create_succession_plan(self, spec: SuccessionPlanSpecDTO) -> SuccessionPlan:
        return await self.succession.create_plan(spec)

    async def trigger_succession(
        self,
        plan_id: str,
        actor_id: str,
        reason: str = "Administrative override",
    ) -> SuccessionPlan:
        return await self.succession.trigger_succession(plan_id, actor_id, reason)

    async def evaluate_succession_trigger(
        self, event: SuccessionEventDTO
    ) -> Optional[SuccessionPlan]:
        return await self.succession.evaluate_trigger(event)

    async def complete_succession(self, plan_id: str, actor_id: str) -> SuccessionPlan:
        return await self.succession.complete_succession(plan_id, actor_id)

    async def get_succession_plan(self, plan_id: str) -> SuccessionPlan:
        return await self.succession.get_plan(plan_id)

    # ------------------------------------------------------------------
    # Policy proposals
    # ------------------------------------------------------------------

    async def create_policy_proposal(self, spec: PolicyProposalSpecDTO) -> PolicyProposal:
        return await self.policies.create_proposal(spec)

    async def vote_on_policy(
        self, proposal_id: str, voter_id: str, choice: PolicyChoice
    ) -> Ballot:
        return await self.policies.vote_on_policy(proposal_id, voter_id, choice)

    async def finalize_policy(self, proposal_id: str, actor_id: str) -> PolicyProposal:
        return await self.policies.finalize_policy(proposal_id, actor_id)

    async def get_policy_proposal(self, proposal_id: str) -> PolicyProposal:
        return await self.policies.get_proposal(proposal_id)

    async def list_policy_proposals(
        self,
        society_id: Optional[str] = None,
        status: Optional[PolicyStatus] = None,
    ) -> list[PolicyProposal]:
        return await self.policies.list_proposals(society_id, status)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def query_audit(self, audit_filter: Optional[AuditFilter] = None) -> list[AuditEntry]:
        return await self.audit_log.query(audit_filter)

    async def get_dashboard(self, society_id: str) -> GovernanceDashboard:
        """Summarize a society's governance activity."""
        campaigns = await self.campaigns.list_campaigns(society_id)
        alerts = await self.escalation.list_alerts(society_id)
        proposals = await self.policies.list_proposals(society_id)
        plan = await self.succession.find_plan_for_society(society_id)

        participation = [
            c.results.participation_percent
            for c in campaigns
            if c.status is CampaignStatus.RESULTS_PUBLISHED and c.results is not None
        ]
        return GovernanceDashboard(
            society_id=society_id,
            generated_at=self._time.utcnow(),
            active_campaigns=sum(1 for c in campaigns if c.status is CampaignStatus.ACTIVE),
            scheduled_campaigns=sum(
                1 for c in campaigns if c.status is CampaignStatus.SCHEDULED
            ),
            open_emergencies=sum(1 for a in alerts if not a.status.is_terminal()),
            last_emergency_at=max((a.declared_at for a in alerts), default=None),
            pending_policies=sum(1 for p in proposals if p.status is PolicyStatus.VOTING),
            average_participation_percent=(
                round(sum(participation) / len(participation), 2) if participation else None
            ),
            succession_plan_exists=plan is not None,
            deputies_assigned=len(plan.deputies) if plan is not None else 0,
        )
