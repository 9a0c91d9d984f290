"""Application services for the governance engine."""

from society_governance.application.services.audit_log_service import AuditLog
from society_governance.application.services.ballot_store_service import (
    BallotStore,
    derive_voter_token,
)
from society_governance.application.services.base import LoggingMixin
from society_governance.application.services.campaign_lifecycle_service import (
    CampaignLifecycleManager,
)
from society_governance.application.services.eligibility_service import EligibilityEvaluator
from society_governance.application.services.entity_locks import EntityLockRegistry
from society_governance.application.services.escalation_scheduler_service import (
    EscalationScheduler,
)
from society_governance.application.services.governance_coordinator import (
    GovernanceCoordinator,
)
from society_governance.application.services.policy_proposal_service import (
    PolicyProposalService,
)
from society_governance.application.services.succession_service import SuccessionCoordinator

__all__: list[str] = [
    "AuditLog",
    "BallotStore",
    "CampaignLifecycleManager",
    "EligibilityEvaluator",
    "EntityLockRegistry",
    "EscalationScheduler",
    "GovernanceCoordinator",
    "LoggingMixin",
    "PolicyProposalService",
    "SuccessionCoordinator",
    "derive_voter_token",
]
