"""Application DTOs (Data Transfer Objects).

These DTOs carry commands into the application layer. They are distinct
from domain models (immutable business objects) and API models (Pydantic
models for serialization).
"""

from society_governance.application.dtos.governance import (
    CampaignSpecDTO,
    ChoiceSpecDTO,
    EmergencySpecDTO,
    EscalationLevelSpecDTO,
    PolicyProposalSpecDTO,
    SuccessionEventDTO,
    SuccessionPlanSpecDTO,
)

__all__ = [
    "CampaignSpecDTO",
    "ChoiceSpecDTO",
    "EmergencySpecDTO",
    "EscalationLevelSpecDTO",
    "PolicyProposalSpecDTO",
    "SuccessionEventDTO",
    "SuccessionPlanSpecDTO",
]
