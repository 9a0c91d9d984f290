"""Builders for governance test data and an event-loop settling helper."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import Any

from society_governance.application.dtos.governance import (
    CampaignSpecDTO,
    ChoiceSpecDTO,
    EmergencySpecDTO,
    EscalationLevelSpecDTO,
    PolicyProposalSpecDTO,
    SuccessionPlanSpecDTO,
)
from society_governance.domain.models.campaign import CampaignType
from society_governance.domain.models.eligibility import (
    EligibilityRole,
    OccupantCategory,
    RosterEntry,
)
from society_governance.domain.models.emergency import AlertSeverity, ContactMethod
from society_governance.domain.models.policy import PolicyCategory
from society_governance.domain.models.succession import Deputy, DeputyRole
from society_governance.infrastructure.stubs.fake_time_authority import DEFAULT_FROZEN_AT

SOCIETY_ID = "society-green-acres"

# Residents moved in two years before the default fake time.
LONG_AGO = DEFAULT_FROZEN_AT - timedelta(days=730)


async def settle(rounds: int = 50) -> None:
    """Let woken timer tasks and callbacks run to completion."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def make_resident(
    resident_id: str,
    role: EligibilityRole = EligibilityRole.RESIDENT,
    category: OccupantCategory = OccupantCategory.OWNER,
    residency_start: datetime = LONG_AGO,
    is_verified: bool = True,
) -> RosterEntry:
    return RosterEntry(
        resident_id=resident_id,
        role=role,
        category=category,
        residency_start=residency_start,
        is_verified=is_verified,
    )


def make_residents(count: int, prefix: str = "resident") -> list[RosterEntry]:
    return [make_resident(f"{prefix}-{i:03d}") for i in range(count)]


def campaign_spec(**overrides: Any) -> CampaignSpecDTO:
    """Two-choice poll open for one week from the default fake time."""
    values: dict[str, Any] = {
        "society_id": SOCIETY_ID,
        "title": "Repaint the clubhouse",
        "campaign_type": CampaignType.POLL,
        "start_time": DEFAULT_FROZEN_AT,
        "end_time": DEFAULT_FROZEN_AT + timedelta(days=7),
        "choices": (
            ChoiceSpecDTO(label="Yes", choice_id="yes"),
            ChoiceSpecDTO(label="No", choice_id="no"),
        ),
        "created_by": "committee-chair",
    }
    values.update(overrides)
    return CampaignSpecDTO(**values)


def emergency_spec(*timeouts: int, **overrides: Any) -> EmergencySpecDTO:
    """Emergency with one level per timeout; responders are ``responder-<n>``."""
    timeouts = timeouts or (10, 15)
    values: dict[str, Any] = {
        "society_id": SOCIETY_ID,
        "title": "Water leak in basement",
        "severity": AlertSeverity.HIGH,
        "declared_by": "resident-001",
        "escalation_chain": tuple(
            EscalationLevelSpecDTO(
                responder_role="security" if n == 1 else "committee",
                responder_id=f"responder-{n}",
                contact_methods=(ContactMethod.PUSH, ContactMethod.SMS),
                timeout_minutes=minutes,
            )
            for n, minutes in enumerate(timeouts, start=1)
        ),
    }
    values.update(overrides)
    return EmergencySpecDTO(**values)


def succession_spec(**overrides: Any) -> SuccessionPlanSpecDTO:
    values: dict[str, Any] = {
        "society_id": SOCIETY_ID,
        "current_leader_id": "chair-001",
        "deputies": (
            Deputy(user_id="deputy-b", role=DeputyRole.SECONDARY_DEPUTY),
            Deputy(user_id="deputy-a", role=DeputyRole.PRIMARY_DEPUTY),
        ),
        "created_by": "admin-001",
    }
    values.update(overrides)
    return SuccessionPlanSpecDTO(**values)


def policy_spec(**overrides: Any) -> PolicyProposalSpecDTO:
    values: dict[str, Any] = {
        "society_id": SOCIETY_ID,
        "title": "Quiet hours after 22:00",
        "proposal_text": "No amplified music after 22:00 on weekdays.",
        "category": PolicyCategory.COMMUNITY,
        "proposed_by": "resident-001",
        "voting_ends_at": DEFAULT_FROZEN_AT + timedelta(days=3),
    }
    values.update(overrides)
    return PolicyProposalSpecDTO(**values)


