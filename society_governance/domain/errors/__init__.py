"""Domain errors for the governance engine.

Provides specific exception classes for different failure scenarios.
All exceptions inherit from GovernanceError and carry a GovernanceErrorKind.
"""

from society_governance.domain.errors.campaign import (
    CampaignError,
    CampaignNotActiveError,
    CampaignNotFoundError,
    DuplicateVoteError,
    EmptyElectorateError,
    InvalidCampaignError,
    InvalidChoiceError,
    InvalidRuleError,
    NotYetStartedError,
    VoterNotEligibleError,
)
from society_governance.domain.errors.emergency import (
    AlertAlreadyResolvedError,
    AlertNotFoundError,
    EmergencyError,
    InvalidAcknowledgmentError,
    InvalidAlertError,
)
from society_governance.domain.errors.permission import PermissionDeniedError
from society_governance.domain.errors.policy import (
    InvalidProposalError,
    ProposalNotFoundError,
)
from society_governance.domain.errors.roster import RosterUnavailableError
from society_governance.domain.errors.state_transition import InvalidTransitionError
from society_governance.domain.errors.store import (
    RecordExistsError,
    StoreUnavailableError,
)
from society_governance.domain.errors.succession import (
    InvalidPlanError,
    NoPlanConfiguredError,
    SuccessionError,
    SuccessionPlanNotFoundError,
)
from society_governance.domain.exceptions import GovernanceError, GovernanceErrorKind

__all__: list[str] = [
    "AlertAlreadyResolvedError",
    "AlertNotFoundError",
    "CampaignError",
    "CampaignNotActiveError",
    "CampaignNotFoundError",
    "DuplicateVoteError",
    "EmergencyError",
    "EmptyElectorateError",
    "GovernanceError",
    "GovernanceErrorKind",
    "InvalidAcknowledgmentError",
    "InvalidAlertError",
    "InvalidCampaignError",
    "InvalidChoiceError",
    "InvalidPlanError",
    "InvalidProposalError",
    "InvalidRuleError",
    "InvalidTransitionError",
    "NoPlanConfiguredError",
    "NotYetStartedError",
    "PermissionDeniedError",
    "ProposalNotFoundError",
    "RecordExistsError",
    "RosterUnavailableError",
    "StoreUnavailableError",
    "SuccessionError",
    "SuccessionPlanNotFoundError",
    "VoterNotEligibleError",
]
