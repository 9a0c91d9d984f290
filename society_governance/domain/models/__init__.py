"""Domain models for the governance engine."""

from society_governance.domain.models.audit import (
    AuditAction,
    AuditEntry,
    AuditFilter,
    ResourceType,
)
from society_governance.domain.models.ballot import Ballot
from society_governance.domain.models.campaign import (
    CampaignResults,
    CampaignStatus,
    CampaignType,
    Choice,
    ChoiceResult,
    VotingCampaign,
)
from society_governance.domain.models.dashboard import GovernanceDashboard
from society_governance.domain.models.eligibility import (
    EligibilityRole,
    EligibilityRule,
    OccupantCategory,
    RosterEntry,
    RosterSnapshot,
)
from society_governance.domain.models.emergency import (
    Acknowledgment,
    AlertSeverity,
    AlertStatus,
    ContactMethod,
    EmergencyAlert,
    EmergencyResponse,
    EmergencyType,
    EscalationLevel,
    NotificationRecord,
    NotificationStatus,
)
from society_governance.domain.models.permission import (
    GovernanceAction,
    GovernanceRole,
)
from society_governance.domain.models.policy import (
    PolicyCategory,
    PolicyChange,
    PolicyChoice,
    PolicyProposal,
    PolicyStatus,
)
from society_governance.domain.models.succession import (
    Deputy,
    DeputyRole,
    SuccessionPlan,
    SuccessionStatus,
    SuccessionTrigger,
    TriggerType,
)

__all__: list[str] = [
    "Acknowledgment",
    "AlertSeverity",
    "AlertStatus",
    "AuditAction",
    "AuditEntry",
    "AuditFilter",
    "Ballot",
    "CampaignResults",
    "CampaignStatus",
    "CampaignType",
    "Choice",
    "ChoiceResult",
    "ContactMethod",
    "Deputy",
    "DeputyRole",
    "EligibilityRole",
    "EligibilityRule",
    "EmergencyAlert",
    "EmergencyResponse",
    "EmergencyType",
    "EscalationLevel",
    "GovernanceAction",
    "GovernanceDashboard",
    "GovernanceRole",
    "NotificationRecord",
    "NotificationStatus",
    "OccupantCategory",
    "PolicyCategory",
    "PolicyChange",
    "PolicyChoice",
    "PolicyProposal",
    "PolicyStatus",
    "ResourceType",
    "RosterEntry",
    "RosterSnapshot",
    "SuccessionPlan",
    "SuccessionStatus",
    "SuccessionTrigger",
    "TriggerType",
    "VotingCampaign",
]
