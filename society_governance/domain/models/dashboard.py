"""Governance dashboard summary model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from society_governance.domain.models._records import iso


@dataclass(frozen=True, eq=True)
class GovernanceDashboard:
    """Point-in-time governance summary for one society.

    Attributes:
        average_participation_percent: Mean participation over campaigns
            with published results, None when there are none.
    """

    society_id: str
    generated_at: datetime
    active_campaigns: int
    scheduled_campaigns: int
    open_emergencies: int
    last_emergency_at: Optional[datetime]
    pending_policies: int
    average_participation_percent: Optional[float]
    succession_plan_exists: bool
    deputies_assigned: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "society_id": self.society_id,
            "generated_at": iso(self.generated_at),
            "active_campaigns": self.active_campaigns,
            "scheduled_campaigns": self.scheduled_campaigns,
            "open_emergencies": self.open_emergencies,
            "last_emergency_at": iso(self.last_emergency_at),
            "pending_policies": self.pending_policies,
            "average_participation_percent": self.average_participation_percent,
            "succession_plan_exists": self.succession_plan_exists,
            "deputies_assigned": self.deputies_assigned,
        }
