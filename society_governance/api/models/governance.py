"""API models for governance endpoints.

Pydantic models for request/response payloads of the governance API:
campaigns and votes, emergency alerts, succession plans, policy
proposals, the dashboard and the audit trail.

Response models validate directly from the domain records' ``to_dict``
output; fields a response does not declare (for example the frozen
electorate) are dropped.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from society_governance.domain.models.audit import AuditAction, ResourceType
from society_governance.domain.models.campaign import CampaignStatus, CampaignType
from society_governance.domain.models.eligibility import (
    ALL_OCCUPANT_CATEGORIES,
    EligibilityRole,
    OccupantCategory,
)
from society_governance.domain.models.emergency import (
    AlertSeverity,
    AlertStatus,
    ContactMethod,
    EmergencyResponse,
    EmergencyType,
    NotificationStatus,
)
from society_governance.domain.models.policy import (
    ChangeType,
    PolicyCategory,
    PolicyChoice,
    PolicyStatus,
)
from society_governance.domain.models.succession import (
    DeputyRole,
    SuccessionStatus,
    TriggerType,
)

# =============================================================================
# Shared
# =============================================================================


class ProblemDetail(BaseModel):
    """RFC 7807 error body. ``kind`` is the machine-readable error kind."""

    type: str = Field(..., description="URI identifying the error type")
    title: str = Field(..., description="Short summary of the error type")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Human-readable explanation")
    kind: str = Field(..., description="Governance error kind to branch on")
    instance: str = Field(..., description="Request path that failed")


class ActorRequest(BaseModel):
    """Body for commands that only need to know who acts."""

    actor_id: str = Field(..., min_length=1, description="User performing the action")


# =============================================================================
# Campaigns
# =============================================================================


class EligibilityRuleRequest(BaseModel):
    minimum_residency_months: int = Field(0, ge=0, description="Whole months of residency")
    requires_verification: bool = Field(False, description="Only verified residents qualify")
    included_roles: list[EligibilityRole] = Field(
        default_factory=list, description="Roles that qualify; empty means all"
    )
    excluded_roles: list[EligibilityRole] = Field(
        default_factory=list, description="Roles that never qualify"
    )
    included_categories: list[OccupantCategory] = Field(
        default_factory=lambda: sorted(ALL_OCCUPANT_CATEGORIES, key=lambda c: c.value),
        description="Occupant categories that qualify",
    )


class ChoiceRequest(BaseModel):
    label: str = Field(..., min_length=1, description="Display name")
    choice_id: Optional[str] = Field(None, description="Stable id; generated when omitted")
    description: str = Field("", description="Bio, manifesto or option text")
    candidate_user_id: Optional[str] = Field(None, description="Resident id for candidates")


class CreateCampaignRequest(BaseModel):
    society_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = Field("")
    campaign_type: CampaignType = Field(..., description="What the campaign decides")
    start_time: datetime = Field(..., description="Voting opens (ISO 8601)")
    end_time: datetime = Field(..., description="Voting closes (ISO 8601)")
    choices: list[ChoiceRequest] = Field(..., min_length=2)
    created_by: str = Field(..., min_length=1)
    eligibility_rule: EligibilityRuleRequest = Field(default_factory=EligibilityRuleRequest)
    is_anonymous: bool = Field(False, description="Store keyed tokens instead of voter ids")
    requires_quorum: bool = Field(False)
    minimum_participation_percent: Optional[float] = Field(None, ge=0, le=100)


class CancelCampaignRequest(ActorRequest):
    reason: str = Field(..., min_length=1, description="Why the campaign is cancelled")


class CastVoteRequest(BaseModel):
    voter_id: str = Field(..., min_length=1)
    choice_id: str = Field(..., min_length=1)


class ChoiceResponse(BaseModel):
    choice_id: str
    label: str
    description: str = ""
    candidate_user_id: Optional[str] = None
    vote_count: int = Field(..., ge=0)


class ChoiceResultResponse(BaseModel):
    choice_id: str
    votes: int
    percentage: float


class CampaignResultsResponse(BaseModel):
    campaign_id: str
    total_votes: int
    eligible_count: int
    participation_percent: float
    quorum_required: bool
    quorum_met: bool
    breakdown: list[ChoiceResultResponse]
    winner_id: Optional[str] = None
    tie_requires_runoff: bool
    computed_at: datetime
    published_at: Optional[datetime] = None


class CampaignResponse(BaseModel):
    campaign_id: str
    society_id: str
    title: str
    description: str = ""
    campaign_type: CampaignType
    status: CampaignStatus
    start_time: datetime
    end_time: datetime
    is_anonymous: bool
    requires_quorum: bool
    minimum_participation_percent: float
    choices: list[ChoiceResponse]
    total_votes: int
    eligible_count: int = Field(0, description="Size of the frozen electorate")
    created_by: str
    created_at: datetime
    updated_at: datetime
    closed_at: Optional[datetime] = None
    results: Optional[CampaignResultsResponse] = None
    cancellation_reason: Optional[str] = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> CampaignResponse:
        return cls.model_validate(
            {**record, "eligible_count": len(record.get("eligible_voter_ids", ()))}
        )


class CampaignListResponse(BaseModel):
    campaigns: list[CampaignResponse]
    count: int


class BallotResponse(BaseModel):
    """Receipt for an accepted ballot. Voter identity is never echoed."""

    campaign_id: str
    choice_id: str
    cast_at: datetime
    is_anonymous: bool


# =============================================================================
# Emergencies
# =============================================================================


class EscalationLevelRequest(BaseModel):
    responder_role: str = Field(..., min_length=1)
    responder_id: str = Field(..., min_length=1)
    contact_methods: list[ContactMethod] = Field(..., min_length=1)
    timeout_minutes: Optional[int] = Field(
        None, ge=1, description="Minutes before auto-escalation; configured default if omitted"
    )


class DeclareEmergencyRequest(BaseModel):
    society_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = Field("")
    severity: AlertSeverity
    emergency_type: EmergencyType = EmergencyType.OTHER
    declared_by: str = Field(..., min_length=1)
    location: Optional[str] = None
    affected_areas: list[str] = Field(default_factory=list)
    escalation_chain: list[EscalationLevelRequest] = Field(..., min_length=1)


class AcknowledgeRequest(BaseModel):
    level: int = Field(..., ge=1, description="Level being acknowledged")
    acknowledged_by: str = Field(..., min_length=1)
    response: EmergencyResponse = EmergencyResponse.ACKNOWLEDGED
    eta_minutes: Optional[int] = Field(None, ge=0)
    notes: str = ""


class ResolveRequest(BaseModel):
    resolved_by: str = Field(..., min_length=1)
    notes: str = Field(..., description="Resolution notes")


class EscalationLevelResponse(BaseModel):
    level: int
    responder_role: str
    responder_id: str
    contact_methods: list[ContactMethod]
    timeout_minutes: int
    is_activated: bool
    activated_at: Optional[datetime] = None
    acknowledged_at: Optional[datetime] = None
    acknowledged_by: Optional[str] = None
    timed_out_at: Optional[datetime] = None


class AcknowledgmentResponse(BaseModel):
    level: int
    acknowledged_by: str
    acknowledged_at: datetime
    response: EmergencyResponse
    eta_minutes: Optional[int] = None
    notes: str = ""


class NotificationRecordResponse(BaseModel):
    level: int
    target: str
    method: ContactMethod
    status: NotificationStatus
    attempted_at: datetime
    failure_reason: Optional[str] = None


class EmergencyAlertResponse(BaseModel):
    alert_id: str
    society_id: str
    title: str
    description: str = ""
    severity: AlertSeverity
    emergency_type: EmergencyType
    status: AlertStatus
    current_level: int
    escalation_chain: list[EscalationLevelResponse]
    acknowledgments: list[AcknowledgmentResponse]
    notifications: list[NotificationRecordResponse]
    declared_by: str
    declared_at: datetime
    updated_at: datetime
    location: Optional[str] = None
    affected_areas: list[str] = Field(default_factory=list)
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None
    closed_at: Optional[datetime] = None


class EmergencyAlertListResponse(BaseModel):
    alerts: list[EmergencyAlertResponse]
    count: int


# =============================================================================
# Succession
# =============================================================================


class DeputyModel(BaseModel):
    user_id: str = Field(..., min_length=1)
    role: DeputyRole
    responsibilities: list[str] = Field(default_factory=list)
    is_active: bool = True


class SuccessionTriggerModel(BaseModel):
    trigger_type: TriggerType
    condition: str = ""
    is_active: bool = True


class CreateSuccessionPlanRequest(BaseModel):
    society_id: str = Field(..., min_length=1)
    current_leader_id: str = Field(..., min_length=1)
    deputies: list[DeputyModel] = Field(..., min_length=1)
    created_by: str = Field(..., min_length=1)
    succession_order: list[str] = Field(
        default_factory=list, description="Deputy user ids in takeover order"
    )
    triggers: Optional[list[SuccessionTriggerModel]] = Field(
        None, description="Defaults to manual and emergency triggers"
    )
    is_automatic: bool = True


class TriggerSuccessionRequest(ActorRequest):
    reason: str = Field("Administrative override")


class SuccessionPlanResponse(BaseModel):
    plan_id: str
    society_id: str
    current_leader_id: str
    status: SuccessionStatus
    deputies: list[DeputyModel]
    succession_order: list[str]
    triggers: list[SuccessionTriggerModel]
    is_automatic: bool
    created_by: str
    created_at: datetime
    updated_at: datetime
    activated_at: Optional[datetime] = None
    activated_by: Optional[str] = None
    activation_reason: Optional[str] = None
    activation_trigger: Optional[TriggerType] = None
    source_alert_id: Optional[str] = None
    assigned_leader_id: Optional[str] = None
    assigned_deputies: list[str] = Field(default_factory=list)
    completed_at: Optional[datetime] = None


# =============================================================================
# Policy proposals
# =============================================================================


class PolicyChangeModel(BaseModel):
    section: str = Field(..., min_length=1)
    change_type: ChangeType
    rationale: str = ""
    current_text: Optional[str] = None
    proposed_text: Optional[str] = None


class CreatePolicyProposalRequest(BaseModel):
    society_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    proposal_text: str = Field(..., min_length=1)
    category: PolicyCategory
    proposed_by: str = Field(..., min_length=1)
    voting_ends_at: datetime
    changes: list[PolicyChangeModel] = Field(default_factory=list)
    voting_threshold_percent: float = Field(50.0, gt=0, le=100)
    eligibility_rule: EligibilityRuleRequest = Field(default_factory=EligibilityRuleRequest)
    is_anonymous: bool = False
    requires_quorum: bool = False
    minimum_participation_percent: Optional[float] = Field(None, ge=0, le=100)


class PolicyVoteRequest(BaseModel):
    voter_id: str = Field(..., min_length=1)
    choice: PolicyChoice


class PolicyProposalResponse(BaseModel):
    proposal_id: str
    society_id: str
    title: str
    proposal_text: str
    category: PolicyCategory
    proposed_by: str
    status: PolicyStatus
    campaign_id: str
    created_at: datetime
    updated_at: datetime
    changes: list[PolicyChangeModel]
    voting_threshold_percent: float
    approve_votes: int
    reject_votes: int
    decided_at: Optional[datetime] = None
    decision_reason: Optional[str] = None


# =============================================================================
# Reporting
# =============================================================================


class DashboardResponse(BaseModel):
    society_id: str
    generated_at: datetime
    active_campaigns: int
    scheduled_campaigns: int
    open_emergencies: int
    last_emergency_at: Optional[datetime] = None
    pending_policies: int
    average_participation_percent: Optional[float] = None
    succession_plan_exists: bool
    deputies_assigned: int


class AuditEntryResponse(BaseModel):
    timestamp: datetime
    sequence_number: int
    actor_id: str
    action: AuditAction
    resource_type: ResourceType
    resource_id: str
    details: dict[str, Any]


class AuditQueryResponse(BaseModel):
    entries: list[AuditEntryResponse]
    count: int
