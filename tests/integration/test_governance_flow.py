"""End-to-end flow across every part of the governance engine.

One society runs an election, answers an emergency nobody acknowledges,
hands leadership to its deputy and decides a policy, all on fake time.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from society_governance.application.services.governance_coordinator import (
    GovernanceCoordinator,
)
from society_governance.domain.models.audit import AuditAction, AuditFilter, ResourceType
from society_governance.domain.models.campaign import CampaignStatus
from society_governance.domain.models.emergency import AlertStatus
from society_governance.domain.models.policy import PolicyChoice, PolicyStatus
from society_governance.domain.models.succession import SuccessionStatus
from society_governance.infrastructure.stubs import FakeTimeAuthority, RosterProviderStub
from society_governance.infrastructure.stubs.fake_time_authority import DEFAULT_FROZEN_AT
from tests.helpers import (
    SOCIETY_ID,
    campaign_spec,
    emergency_spec,
    make_resident,
    policy_spec,
    settle,
    succession_spec,
)

pytestmark = pytest.mark.integration


async def test_society_week(
    coordinator: GovernanceCoordinator,
    fake_time: FakeTimeAuthority,
    roster: RosterProviderStub,
) -> None:
    plan = await coordinator.create_succession_plan(succession_spec())

    campaign = await coordinator.create_campaign(
        campaign_spec(
            start_time=DEFAULT_FROZEN_AT + timedelta(days=1),
            end_time=DEFAULT_FROZEN_AT + timedelta(days=8),
            requires_quorum=True,
        )
    )
    await coordinator.schedule_campaign(campaign.campaign_id, "committee-chair")
    roster.add_resident(SOCIETY_ID, make_resident("late-arrival"))

    proposal = await coordinator.create_policy_proposal(policy_spec())
    for n in range(2, 8):
        await coordinator.vote_on_policy(proposal.proposal_id, f"resident-{n:03d}", PolicyChoice.APPROVE)
    await coordinator.vote_on_policy(proposal.proposal_id, "resident-008", PolicyChoice.REJECT)

    fake_time.advance(timedelta(days=1))
    changed = await coordinator.run_due_transitions()
    assert [c.campaign_id for c in changed] == [campaign.campaign_id]
    for n in range(7):
        await coordinator.cast_vote(campaign.campaign_id, f"resident-{n:03d}", "yes" if n < 5 else "no")

    alert = await coordinator.declare_emergency(emergency_spec(10, 15))
    await settle()
    fake_time.advance(minutes=10)
    await settle()
    fake_time.advance(minutes=15)
    await settle()

    closed_alert = await coordinator.get_alert(alert.alert_id)
    assert closed_alert.status is AlertStatus.CLOSED_UNRESOLVED
    active_plan = await coordinator.get_succession_plan(plan.plan_id)
    assert active_plan.status is SuccessionStatus.ACTIVE
    assert active_plan.assigned_leader_id == "deputy-a"
    assert active_plan.source_alert_id == alert.alert_id

    decided = await coordinator.finalize_policy(proposal.proposal_id, "admin-001")
    assert decided.status is PolicyStatus.APPROVED
    assert (decided.approve_votes, decided.reject_votes) == (6, 1)

    fake_time.advance(timedelta(days=7))
    await coordinator.run_due_transitions()
    finished = await coordinator.get_campaign(campaign.campaign_id)
    assert finished.status is CampaignStatus.RESULTS_PUBLISHED
    assert finished.results is not None
    assert finished.results.winner_id == "yes"
    assert finished.results.eligible_count == 10

    completed = await coordinator.complete_succession(plan.plan_id, "deputy-a")
    assert completed.status is SuccessionStatus.COMPLETED

    dashboard = await coordinator.get_dashboard(SOCIETY_ID)
    assert dashboard.active_campaigns == 0
    assert dashboard.pending_policies == 0
    assert dashboard.last_emergency_at == alert.declared_at

    entries = await coordinator.query_audit()
    keys = [entry.record_key for entry in entries]
    assert keys == sorted(keys)
    assert {entry.resource_type for entry in entries} == set(ResourceType)
    succession_audit = await coordinator.query_audit(AuditFilter(resource_id=plan.plan_id))
    assert [e.action for e in succession_audit] == [
        AuditAction.SUCCESSION_PLAN_CREATED,
        AuditAction.SUCCESSION_ACTIVATED,
        AuditAction.SUCCESSION_COMPLETED,
    ]
