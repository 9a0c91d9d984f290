"""Governance API routes.

FastAPI router for the society governance engine:
- Voting campaigns: lifecycle, ballots and results
- Emergency alerts: declaration, acknowledgment and resolution
- Succession plans: creation, manual trigger and completion
- Policy proposals: creation, votes and decision
- Dashboard and audit trail

Every route checks the caller's role first (X-Governance-Role header),
then delegates to GovernanceCoordinator. Domain errors are rendered as
RFC 7807 problem documents by ``governance_error_handler``, which the
application registers for GovernanceError.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from society_governance.api.dependencies.governance import (
    get_governance_coordinator,
    require_permission,
)
from society_governance.api.models.governance import (
    AcknowledgeRequest,
    ActorRequest,
    AuditEntryResponse,
    AuditQueryResponse,
    BallotResponse,
    CampaignListResponse,
    CampaignResponse,
    CampaignResultsResponse,
    CancelCampaignRequest,
    CastVoteRequest,
    CreateCampaignRequest,
    CreatePolicyProposalRequest,
    CreateSuccessionPlanRequest,
    DashboardResponse,
    DeclareEmergencyRequest,
    EligibilityRuleRequest,
    EmergencyAlertListResponse,
    EmergencyAlertResponse,
    PolicyProposalResponse,
    PolicyVoteRequest,
    ResolveRequest,
    SuccessionPlanResponse,
    TriggerSuccessionRequest,
)
from society_governance.application.dtos.governance import (
    CampaignSpecDTO,
    ChoiceSpecDTO,
    EmergencySpecDTO,
    EscalationLevelSpecDTO,
    PolicyProposalSpecDTO,
    SuccessionPlanSpecDTO,
)
from society_governance.application.services.governance_coordinator import (
    GovernanceCoordinator,
)
from society_governance.domain.exceptions import GovernanceError, GovernanceErrorKind
from society_governance.domain.models.audit import AuditAction, AuditFilter, ResourceType
from society_governance.domain.models.campaign import CampaignStatus
from society_governance.domain.models.eligibility import EligibilityRule
from society_governance.domain.models.emergency import AlertStatus
from society_governance.domain.models.permission import GovernanceAction
from society_governance.domain.models.policy import PolicyChange, PolicyStatus
from society_governance.domain.models.succession import (
    DEFAULT_TRIGGERS,
    Deputy,
    SuccessionTrigger,
)

router = APIRouter(prefix="/v1/governance", tags=["governance"])

PROBLEM_BASE_URI = "https://society-governance.example.com/errors"


# =============================================================================
# Error Mapping
# =============================================================================

_STATUS_BY_KIND: dict[GovernanceErrorKind, int] = {
    GovernanceErrorKind.CAMPAIGN_NOT_FOUND: 404,
    GovernanceErrorKind.ALERT_NOT_FOUND: 404,
    GovernanceErrorKind.PROPOSAL_NOT_FOUND: 404,
    GovernanceErrorKind.SUCCESSION_PLAN_NOT_FOUND: 404,
    GovernanceErrorKind.PERMISSION_DENIED: 403,
    GovernanceErrorKind.VOTER_NOT_ELIGIBLE: 403,
    GovernanceErrorKind.INVALID_RULE: 422,
    GovernanceErrorKind.INVALID_CHOICE: 422,
    GovernanceErrorKind.INVALID_CAMPAIGN: 422,
    GovernanceErrorKind.INVALID_ALERT: 422,
    GovernanceErrorKind.INVALID_PLAN: 422,
    GovernanceErrorKind.INVALID_PROPOSAL: 422,
    GovernanceErrorKind.EMPTY_ELECTORATE: 422,
    GovernanceErrorKind.ROSTER_UNAVAILABLE: 503,
    GovernanceErrorKind.STORE_UNAVAILABLE: 503,
}


def status_for_kind(kind: GovernanceErrorKind) -> int:
    """HTTP status for an error kind; state conflicts map to 409."""
    return _STATUS_BY_KIND.get(kind, 409)


def _kebab(kind: GovernanceErrorKind) -> str:
    return "".join(f"-{c.lower()}" if c.isupper() else c for c in kind.value).lstrip("-")


async def governance_error_handler(request: Request, exc: GovernanceError) -> JSONResponse:
    """Render a GovernanceError as an RFC 7807 problem document."""
    status = status_for_kind(exc.kind)
    return JSONResponse(
        status_code=status,
        content={
            "type": f"{PROBLEM_BASE_URI}/{_kebab(exc.kind)}",
            "title": exc.kind.value,
            "status": status,
            "detail": exc.message or str(exc),
            "kind": exc.kind.value,
            "instance": request.url.path,
        },
    )


# =============================================================================
# Request Conversion
# =============================================================================


def _rule(model: EligibilityRuleRequest) -> EligibilityRule:
    return EligibilityRule.from_dict(model.model_dump(mode="json"))


def _campaign_spec(body: CreateCampaignRequest) -> CampaignSpecDTO:
    return CampaignSpecDTO(
        society_id=body.society_id,
        title=body.title,
        description=body.description,
        campaign_type=body.campaign_type,
        start_time=body.start_time,
        end_time=body.end_time,
        choices=tuple(ChoiceSpecDTO(**choice.model_dump()) for choice in body.choices),
        created_by=body.created_by,
        eligibility_rule=_rule(body.eligibility_rule),
        is_anonymous=body.is_anonymous,
        requires_quorum=body.requires_quorum,
        minimum_participation_percent=body.minimum_participation_percent,
    )


def _emergency_spec(body: DeclareEmergencyRequest) -> EmergencySpecDTO:
    return EmergencySpecDTO(
        society_id=body.society_id,
        title=body.title,
        description=body.description,
        severity=body.severity,
        emergency_type=body.emergency_type,
        declared_by=body.declared_by,
        location=body.location,
        affected_areas=tuple(body.affected_areas),
        escalation_chain=tuple(
            EscalationLevelSpecDTO(
                responder_role=level.responder_role,
                responder_id=level.responder_id,
                contact_methods=tuple(level.contact_methods),
                timeout_minutes=level.timeout_minutes,
            )
            for level in body.escalation_chain
        ),
    )


def _succession_spec(body: CreateSuccessionPlanRequest) -> SuccessionPlanSpecDTO:
    triggers = (
        DEFAULT_TRIGGERS
        if body.triggers is None
        else tuple(SuccessionTrigger.from_dict(t.model_dump(mode="json")) for t in body.triggers)
    )
    return SuccessionPlanSpecDTO(
        society_id=body.society_id,
        current_leader_id=body.current_leader_id,
        deputies=tuple(Deputy.from_dict(d.model_dump(mode="json")) for d in body.deputies),
        created_by=body.created_by,
        succession_order=tuple(body.succession_order),
        triggers=triggers,
        is_automatic=body.is_automatic,
    )


def _policy_spec(body: CreatePolicyProposalRequest) -> PolicyProposalSpecDTO:
    return PolicyProposalSpecDTO(
        society_id=body.society_id,
        title=body.title,
        proposal_text=body.proposal_text,
        category=body.category,
        proposed_by=body.proposed_by,
        voting_ends_at=body.voting_ends_at,
        changes=tuple(PolicyChange.from_dict(c.model_dump(mode="json")) for c in body.changes),
        voting_threshold_percent=body.voting_threshold_percent,
        eligibility_rule=_rule(body.eligibility_rule),
        is_anonymous=body.is_anonymous,
        requires_quorum=body.requires_quorum,
        minimum_participation_percent=body.minimum_participation_percent,
    )


# =============================================================================
# Campaigns
# =============================================================================


@router.post(
    "/campaigns",
    response_model=CampaignResponse,
    status_code=201,
    dependencies=[Depends(require_permission(GovernanceAction.CREATE_CAMPAIGN))],
)
async def create_campaign(
    body: CreateCampaignRequest,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> CampaignResponse:
    """Create a DRAFT campaign."""
    campaign = await coordinator.create_campaign(_campaign_spec(body))
    return CampaignResponse.from_record(campaign.to_dict())


@router.get(
    "/campaigns",
    response_model=CampaignListResponse,
    dependencies=[Depends(require_permission(GovernanceAction.VIEW_CAMPAIGNS))],
)
async def list_campaigns(
    society_id: Optional[str] = Query(None),
    status: Optional[CampaignStatus] = Query(None),
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> CampaignListResponse:
    campaigns = await coordinator.list_campaigns(society_id, status)
    return CampaignListResponse(
        campaigns=[CampaignResponse.from_record(c.to_dict()) for c in campaigns],
        count=len(campaigns),
    )


@router.get(
    "/campaigns/{campaign_id}",
    response_model=CampaignResponse,
    dependencies=[Depends(require_permission(GovernanceAction.VIEW_CAMPAIGNS))],
)
async def get_campaign(
    campaign_id: str,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> CampaignResponse:
    campaign = await coordinator.get_campaign(campaign_id)
    return CampaignResponse.from_record(campaign.to_dict())


@router.post(
    "/campaigns/{campaign_id}/schedule",
    response_model=CampaignResponse,
    dependencies=[Depends(require_permission(GovernanceAction.EDIT_CAMPAIGN))],
)
async def schedule_campaign(
    campaign_id: str,
    body: ActorRequest,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> CampaignResponse:
    """Resolve and freeze the electorate, then move to SCHEDULED."""
    campaign = await coordinator.schedule_campaign(campaign_id, body.actor_id)
    return CampaignResponse.from_record(campaign.to_dict())


@router.post(
    "/campaigns/{campaign_id}/activate",
    response_model=CampaignResponse,
    dependencies=[Depends(require_permission(GovernanceAction.EDIT_CAMPAIGN))],
)
async def activate_campaign(
    campaign_id: str,
    body: ActorRequest,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> CampaignResponse:
    campaign = await coordinator.activate_campaign(campaign_id, body.actor_id)
    return CampaignResponse.from_record(campaign.to_dict())


@router.post(
    "/campaigns/{campaign_id}/votes",
    response_model=BallotResponse,
    status_code=201,
    dependencies=[Depends(require_permission(GovernanceAction.VOTE))],
)
async def cast_vote(
    campaign_id: str,
    body: CastVoteRequest,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> BallotResponse:
    """Cast one ballot. The receipt never includes the voter identity."""
    ballot = await coordinator.cast_vote(campaign_id, body.voter_id, body.choice_id)
    return BallotResponse.model_validate(ballot.to_dict())


@router.post(
    "/campaigns/{campaign_id}/close",
    response_model=CampaignResponse,
    dependencies=[Depends(require_permission(GovernanceAction.EDIT_CAMPAIGN))],
)
async def close_campaign(
    campaign_id: str,
    body: ActorRequest,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> CampaignResponse:
    """Close voting; results publish automatically when quorum is met."""
    campaign = await coordinator.close_campaign(campaign_id, body.actor_id)
    return CampaignResponse.from_record(campaign.to_dict())


@router.post(
    "/campaigns/{campaign_id}/publish",
    response_model=CampaignResultsResponse,
    dependencies=[Depends(require_permission(GovernanceAction.EDIT_CAMPAIGN))],
)
async def publish_results(
    campaign_id: str,
    body: ActorRequest,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> CampaignResultsResponse:
    results = await coordinator.publish_results(campaign_id, body.actor_id)
    return CampaignResultsResponse.model_validate(results.to_dict())


@router.post(
    "/campaigns/{campaign_id}/cancel",
    response_model=CampaignResponse,
    dependencies=[Depends(require_permission(GovernanceAction.DELETE_CAMPAIGN))],
)
async def cancel_campaign(
    campaign_id: str,
    body: CancelCampaignRequest,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> CampaignResponse:
    campaign = await coordinator.cancel_campaign(campaign_id, body.reason, body.actor_id)
    return CampaignResponse.from_record(campaign.to_dict())


# =============================================================================
# Emergencies
# =============================================================================


@router.post(
    "/emergencies",
    response_model=EmergencyAlertResponse,
    status_code=201,
    dependencies=[Depends(require_permission(GovernanceAction.CREATE_EMERGENCY))],
)
async def declare_emergency(
    body: DeclareEmergencyRequest,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> EmergencyAlertResponse:
    """Declare an emergency and notify the first escalation level."""
    alert = await coordinator.declare_emergency(_emergency_spec(body))
    return EmergencyAlertResponse.model_validate(alert.to_dict())


@router.get(
    "/emergencies",
    response_model=EmergencyAlertListResponse,
    dependencies=[Depends(require_permission(GovernanceAction.VIEW_EMERGENCIES))],
)
async def list_emergencies(
    society_id: Optional[str] = Query(None),
    status: Optional[AlertStatus] = Query(None),
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> EmergencyAlertListResponse:
    alerts = await coordinator.list_alerts(society_id, status)
    return EmergencyAlertListResponse(
        alerts=[EmergencyAlertResponse.model_validate(a.to_dict()) for a in alerts],
        count=len(alerts),
    )


@router.get(
    "/emergencies/{alert_id}",
    response_model=EmergencyAlertResponse,
    dependencies=[Depends(require_permission(GovernanceAction.VIEW_EMERGENCIES))],
)
async def get_emergency(
    alert_id: str,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> EmergencyAlertResponse:
    alert = await coordinator.get_alert(alert_id)
    return EmergencyAlertResponse.model_validate(alert.to_dict())


@router.post(
    "/emergencies/{alert_id}/acknowledgments",
    response_model=EmergencyAlertResponse,
    dependencies=[Depends(require_permission(GovernanceAction.ACKNOWLEDGE_EMERGENCY))],
)
async def acknowledge_emergency(
    alert_id: str,
    body: AcknowledgeRequest,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> EmergencyAlertResponse:
    """Acknowledge the active level; stops further escalation."""
    alert = await coordinator.acknowledge_escalation(
        alert_id,
        body.level,
        body.acknowledged_by,
        body.response,
        body.eta_minutes,
        body.notes,
    )
    return EmergencyAlertResponse.model_validate(alert.to_dict())


@router.post(
    "/emergencies/{alert_id}/resolve",
    response_model=EmergencyAlertResponse,
    dependencies=[Depends(require_permission(GovernanceAction.RESOLVE_EMERGENCY))],
)
async def resolve_emergency(
    alert_id: str,
    body: ResolveRequest,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> EmergencyAlertResponse:
    alert = await coordinator.resolve_emergency(alert_id, body.notes, body.resolved_by)
    return EmergencyAlertResponse.model_validate(alert.to_dict())


# =============================================================================
# Succession
# =============================================================================


@router.post(
    "/succession-plans",
    response_model=SuccessionPlanResponse,
    status_code=201,
    dependencies=[Depends(require_permission(GovernanceAction.CREATE_SUCCESSION_PLAN))],
)
async def create_succession_plan(
    body: CreateSuccessionPlanRequest,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> SuccessionPlanResponse:
    plan = await coordinator.create_succession_plan(_succession_spec(body))
    return SuccessionPlanResponse.model_validate(plan.to_dict())


@router.get(
    "/succession-plans/{plan_id}",
    response_model=SuccessionPlanResponse,
    dependencies=[Depends(require_permission(GovernanceAction.VIEW_ANALYTICS))],
)
async def get_succession_plan(
    plan_id: str,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> SuccessionPlanResponse:
    plan = await coordinator.get_succession_plan(plan_id)
    return SuccessionPlanResponse.model_validate(plan.to_dict())


@router.post(
    "/succession-plans/{plan_id}/trigger",
    response_model=SuccessionPlanResponse,
    dependencies=[Depends(require_permission(GovernanceAction.TRIGGER_SUCCESSION))],
)
async def trigger_succession(
    plan_id: str,
    body: TriggerSuccessionRequest,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> SuccessionPlanResponse:
    """Manually activate a succession plan."""
    plan = await coordinator.trigger_succession(plan_id, body.actor_id, body.reason)
    return SuccessionPlanResponse.model_validate(plan.to_dict())


@router.post(
    "/succession-plans/{plan_id}/complete",
    response_model=SuccessionPlanResponse,
    dependencies=[Depends(require_permission(GovernanceAction.TRIGGER_SUCCESSION))],
)
async def complete_succession(
    plan_id: str,
    body: ActorRequest,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> SuccessionPlanResponse:
    plan = await coordinator.complete_succession(plan_id, body.actor_id)
    return SuccessionPlanResponse.model_validate(plan.to_dict())


# =============================================================================
# Policy proposals
# =============================================================================


@router.post(
    "/policies",
    response_model=PolicyProposalResponse,
    status_code=201,
    dependencies=[Depends(require_permission(GovernanceAction.PROPOSE_POLICY))],
)
async def create_policy_proposal(
    body: CreatePolicyProposalRequest,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> PolicyProposalResponse:
    """Create a proposal and open its vote immediately."""
    proposal = await coordinator.create_policy_proposal(_policy_spec(body))
    return PolicyProposalResponse.model_validate(proposal.to_dict())


@router.get(
    "/policies",
    response_model=list[PolicyProposalResponse],
    dependencies=[Depends(require_permission(GovernanceAction.VIEW_CAMPAIGNS))],
)
async def list_policy_proposals(
    society_id: Optional[str] = Query(None),
    status: Optional[PolicyStatus] = Query(None),
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> list[PolicyProposalResponse]:
    proposals = await coordinator.list_policy_proposals(society_id, status)
    return [PolicyProposalResponse.model_validate(p.to_dict()) for p in proposals]


@router.get(
    "/policies/{proposal_id}",
    response_model=PolicyProposalResponse,
    dependencies=[Depends(require_permission(GovernanceAction.VIEW_CAMPAIGNS))],
)
async def get_policy_proposal(
    proposal_id: str,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> PolicyProposalResponse:
    proposal = await coordinator.get_policy_proposal(proposal_id)
    return PolicyProposalResponse.model_validate(proposal.to_dict())


@router.post(
    "/policies/{proposal_id}/votes",
    response_model=BallotResponse,
    status_code=201,
    dependencies=[Depends(require_permission(GovernanceAction.VOTE_POLICY))],
)
async def vote_on_policy(
    proposal_id: str,
    body: PolicyVoteRequest,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> BallotResponse:
    ballot = await coordinator.vote_on_policy(proposal_id, body.voter_id, body.choice)
    return BallotResponse.model_validate(ballot.to_dict())


@router.post(
    "/policies/{proposal_id}/finalize",
    response_model=PolicyProposalResponse,
    dependencies=[Depends(require_permission(GovernanceAction.APPROVE_POLICY))],
)
async def finalize_policy(
    proposal_id: str,
    body: ActorRequest,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> PolicyProposalResponse:
    """Close the vote and record the approve/reject decision."""
    proposal = await coordinator.finalize_policy(proposal_id, body.actor_id)
    return PolicyProposalResponse.model_validate(proposal.to_dict())


# =============================================================================
# Reporting
# =============================================================================


@router.get(
    "/societies/{society_id}/dashboard",
    response_model=DashboardResponse,
    dependencies=[Depends(require_permission(GovernanceAction.VIEW_ANALYTICS))],
)
async def get_dashboard(
    society_id: str,
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> DashboardResponse:
    dashboard = await coordinator.get_dashboard(society_id)
    return DashboardResponse.model_validate(dashboard.to_dict())


@router.get(
    "/audit",
    response_model=AuditQueryResponse,
    dependencies=[Depends(require_permission(GovernanceAction.EXPORT_DATA))],
)
async def query_audit(
    resource_type: Optional[ResourceType] = Query(None),
    resource_id: Optional[str] = Query(None),
    actor_id: Optional[str] = Query(None),
    action: Optional[AuditAction] = Query(None),
    since: Optional[datetime] = Query(None, description="Inclusive lower bound"),
    until: Optional[datetime] = Query(None, description="Exclusive upper bound"),
    coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
) -> AuditQueryResponse:
    """Read the audit trail in (timestamp, sequence) order."""
    entries = await coordinator.query_audit(
        AuditFilter(
            resource_type=resource_type,
            resource_id=resource_id,
            actor_id=actor_id,
            action=action,
            since=since,
            until=until,
        )
    )
    return AuditQueryResponse(
        entries=[AuditEntryResponse.model_validate(e.to_dict()) for e in entries],
        count=len(entries),
    )
