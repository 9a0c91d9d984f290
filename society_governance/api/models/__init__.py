"""API models (Pydantic DTOs) for the governance API."""

from society_governance.api.models.governance import (
    CampaignResponse,
    DashboardResponse,
    EmergencyAlertResponse,
    PolicyProposalResponse,
    ProblemDetail,
    SuccessionPlanResponse,
)

__all__: list[str] = [
    "CampaignResponse",
    "DashboardResponse",
    "EmergencyAlertResponse",
    "PolicyProposalResponse",
    "ProblemDetail",
    "SuccessionPlanResponse",
]
