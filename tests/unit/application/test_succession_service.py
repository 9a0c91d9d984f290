"""Unit tests for succession plan activation."""

from __future__ import annotations

import pytest

from society_governance.application.dtos.governance import SuccessionEventDTO
from society_governance.application.services.governance_coordinator import (
    GovernanceCoordinator,
)
from society_governance.domain.errors import (
    InvalidPlanError,
    InvalidTransitionError,
    NoPlanConfiguredError,
    SuccessionPlanNotFoundError,
)
from society_governance.domain.models.audit import AuditAction, AuditFilter
from society_governance.domain.models.succession import (
    SuccessionStatus,
    SuccessionTrigger,
    TriggerType,
)
from tests.helpers import SOCIETY_ID, succession_spec


def _event(trigger_type: TriggerType = TriggerType.EMERGENCY) -> SuccessionEventDTO:
    return SuccessionEventDTO(
        society_id=SOCIETY_ID,
        trigger_type=trigger_type,
        reason="Chair unreachable",
    )


class TestCreatePlan:
    async def test_create_starts_inactive(self, coordinator: GovernanceCoordinator) -> None:
        plan = await coordinator.create_succession_plan(succession_spec())
        assert plan.status is SuccessionStatus.INACTIVE
        assert plan.ordered_deputies() == ("deputy-a", "deputy-b")

    async def test_one_open_plan_per_society(self, coordinator: GovernanceCoordinator) -> None:
        await coordinator.create_succession_plan(succession_spec())
        with pytest.raises(InvalidPlanError, match="already has"):
            await coordinator.create_succession_plan(succession_spec())

    async def test_completed_plan_can_be_replaced(
        self, coordinator: GovernanceCoordinator
    ) -> None:
        plan = await coordinator.create_succession_plan(succession_spec())
        await coordinator.trigger_succession(plan.plan_id, "admin-001")
        await coordinator.complete_succession(plan.plan_id, "admin-001")
        replacement = await coordinator.create_succession_plan(
            succession_spec(current_leader_id="deputy-c")
        )
        assert replacement.plan_id != plan.plan_id

    async def test_unknown_plan(self, coordinator: GovernanceCoordinator) -> None:
        with pytest.raises(SuccessionPlanNotFoundError):
            await coordinator.get_succession_plan("missing")


class TestEvaluateTrigger:
    async def test_no_plan_raises(self, coordinator: GovernanceCoordinator) -> None:
        with pytest.raises(NoPlanConfiguredError):
            await coordinator.evaluate_succession_trigger(_event())

    async def test_emergency_trigger_activates(self, coordinator: GovernanceCoordinator) -> None:
        await coordinator.create_succession_plan(succession_spec())
        activated = await coordinator.evaluate_succession_trigger(_event())
        assert activated is not None
        assert activated.status is SuccessionStatus.ACTIVE
        assert activated.assigned_leader_id == "deputy-a"
        assert activated.assigned_deputies == ("deputy-a", "deputy-b")
        assert activated.activation_trigger is TriggerType.EMERGENCY

    async def test_second_trigger_is_a_no_op(self, coordinator: GovernanceCoordinator) -> None:
        await coordinator.create_succession_plan(succession_spec())
        await coordinator.evaluate_succession_trigger(_event())
        assert await coordinator.evaluate_succession_trigger(_event()) is None
        activations = await coordinator.query_audit(
            AuditFilter(action=AuditAction.SUCCESSION_ACTIVATED)
        )
        assert len(activations) == 1

    async def test_unconfigured_trigger_is_skipped_and_audited(
        self, coordinator: GovernanceCoordinator
    ) -> None:
        plan = await coordinator.create_succession_plan(
            succession_spec(triggers=(SuccessionTrigger(TriggerType.RESIGNATION),))
        )
        assert await coordinator.evaluate_succession_trigger(_event()) is None
        skipped = await coordinator.query_audit(
            AuditFilter(resource_id=plan.plan_id, action=AuditAction.SUCCESSION_TRIGGER_SKIPPED)
        )
        assert len(skipped) == 1
        assert (await coordinator.get_succession_plan(plan.plan_id)).status is (
            SuccessionStatus.INACTIVE
        )

    async def test_manual_only_plan_ignores_automatic_triggers(
        self, coordinator: GovernanceCoordinator
    ) -> None:
        plan = await coordinator.create_succession_plan(succession_spec(is_automatic=False))
        assert await coordinator.evaluate_succession_trigger(_event()) is None
        manual = await coordinator.trigger_succession(plan.plan_id, "admin-001", "Chair resigned")
        assert manual.activation_trigger is TriggerType.MANUAL
        assert manual.activated_by == "admin-001"


class TestManualSuccession:
    async def test_trigger_and_complete(self, coordinator: GovernanceCoordinator) -> None:
        plan = await coordinator.create_succession_plan(succession_spec())
        active = await coordinator.trigger_succession(plan.plan_id, "admin-001")
        assert active.activation_reason == "Administrative override"

        completed = await coordinator.complete_succession(plan.plan_id, "admin-001")
        assert completed.status is SuccessionStatus.COMPLETED
        assert completed.completed_at is not None

    async def test_trigger_twice_rejected(self, coordinator: GovernanceCoordinator) -> None:
        plan = await coordinator.create_succession_plan(succession_spec())
        await coordinator.trigger_succession(plan.plan_id, "admin-001")
        with pytest.raises(InvalidTransitionError):
            await coordinator.trigger_succession(plan.plan_id, "admin-001")

    async def test_complete_requires_active(self, coordinator: GovernanceCoordinator) -> None:
        plan = await coordinator.create_succession_plan(succession_spec())
        with pytest.raises(InvalidTransitionError):
            await coordinator.complete_succession(plan.plan_id, "admin-001")
