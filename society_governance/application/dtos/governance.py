"""Command DTOs for the governance engine.

Application-layer inputs for creating campaigns, emergencies, succession
plans and policy proposals. The API layer converts its Pydantic request
models into these before calling GovernanceCoordinator, so the
application layer never depends on the API layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from society_governance.domain.models.audit import SYSTEM_ACTOR_ID
from society_governance.domain.models.campaign import CampaignType
from society_governance.domain.models.eligibility import EligibilityRule
from society_governance.domain.models.emergency import (
    AlertSeverity,
    ContactMethod,
    EmergencyType,
)
from society_governance.domain.models.policy import PolicyCategory, PolicyChange
from society_governance.domain.models.succession import (
    DEFAULT_TRIGGERS,
    Deputy,
    SuccessionTrigger,
    TriggerType,
)


@dataclass(frozen=True)
class ChoiceSpecDTO:
    """A candidate or option to put on the ballot.

    Attributes:
        label: Display name.
        choice_id: Stable id; generated when omitted.
        description: Bio, manifesto or option text.
        candidate_user_id: Resident id when the choice is a person.
    """

    label: str
    choice_id: Optional[str] = None
    description: str = ""
    candidate_user_id: Optional[str] = None


@dataclass(frozen=True)
class CampaignSpecDTO:
    """Input for createCampaign.

    ``minimum_participation_percent`` left as None falls back to the
    configured default for quorum campaigns and to 0 otherwise.
    """

    society_id: str
    title: str
    campaign_type: CampaignType
    start_time: datetime
    end_time: datetime
    choices: tuple[ChoiceSpecDTO, ...]
    created_by: str
    description: str = ""
    eligibility_rule: EligibilityRule = field(default_factory=EligibilityRule)
    is_anonymous: bool = False
    requires_quorum: bool = False
    minimum_participation_percent: Optional[float] = None


@dataclass(frozen=True)
class EscalationLevelSpecDTO:
    """One responder tier. Levels are numbered by their position in the chain."""

    responder_role: str
    responder_id: str
    contact_methods: tuple[ContactMethod, ...]
    timeout_minutes: Optional[int] = None


@dataclass(frozen=True)
class EmergencySpecDTO:
    """Input for declareEmergency."""

    society_id: str
    title: str
    severity: AlertSeverity
    declared_by: str
    escalation_chain: tuple[EscalationLevelSpecDTO, ...]
    emergency_type: EmergencyType = EmergencyType.OTHER
    description: str = ""
    location: Optional[str] = None
    affected_areas: tuple[str, ...] = ()


@dataclass(frozen=True)
class SuccessionPlanSpecDTO:
    """Input for createSuccessionPlan."""

    society_id: str
    current_leader_id: str
    deputies: tuple[Deputy, ...]
    created_by: str
    succession_order: tuple[str, ...] = ()
    triggers: tuple[SuccessionTrigger, ...] = DEFAULT_TRIGGERS
    is_automatic: bool = True


@dataclass(frozen=True)
class SuccessionEventDTO:
    """Something that may activate a society's succession plan.

    Attributes:
        society_id: Society whose plan is evaluated.
        trigger_type: Kind of event.
        reason: Human-readable cause, recorded on the plan.
        actor_id: Who raised the event; the system for escalation events.
        source_alert_id: Alert that exhausted its chain, when applicable.
    """

    society_id: str
    trigger_type: TriggerType
    reason: str
    actor_id: str = SYSTEM_ACTOR_ID
    source_alert_id: Optional[str] = None


@dataclass(frozen=True)
class PolicyProposalSpecDTO:
    """Input for createPolicyProposal.

    The linked POLICY_VOTE campaign opens immediately and closes at
    ``voting_ends_at``.
    """

    society_id: str
    title: str
    proposal_text: str
    category: PolicyCategory
    proposed_by: str
    voting_ends_at: datetime
    changes: tuple[PolicyChange, ...] = ()
    voting_threshold_percent: float = 50.0
    eligibility_rule: EligibilityRule = field(default_factory=EligibilityRule)
    is_anonymous: bool = False
    requires_quorum: bool = False
    minimum_participation_percent: Optional[float] = None
