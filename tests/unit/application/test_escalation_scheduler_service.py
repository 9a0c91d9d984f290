"""Unit tests for emergency escalation.

Time only moves when a test advances the FakeTimeAuthority. After every
declare or advance the test settles the event loop so woken timer tasks
run to completion before assertions.
"""

from __future__ import annotations

from typing import Any

import pytest

from society_governance.application.dtos.governance import EscalationLevelSpecDTO
from society_governance.application.ports.governance_store import ALERTS
from society_governance.application.services.governance_coordinator import (
    GovernanceCoordinator,
)
from society_governance.config.governance_config import TEST_GOVERNANCE_CONFIG
from society_governance.domain.errors import (
    AlertAlreadyResolvedError,
    AlertNotFoundError,
    InvalidAcknowledgmentError,
    InvalidAlertError,
    StoreUnavailableError,
)
from society_governance.domain.models.audit import (
    SYSTEM_ACTOR_ID,
    AuditAction,
    AuditFilter,
    ResourceType,
)
from society_governance.domain.models.emergency import (
    AlertStatus,
    ContactMethod,
    EmergencyResponse,
    NotificationStatus,
)
from society_governance.domain.models.succession import SuccessionStatus
from society_governance.infrastructure.stubs import (
    FakeTimeAuthority,
    GovernanceStoreStub,
    NotificationDispatcherStub,
    RosterProviderStub,
)
from tests.helpers import emergency_spec, settle, succession_spec


class _AlertWriteRecordingStore(GovernanceStoreStub):
    """Store that keeps every alert record written, in order."""

    def __init__(self) -> None:
        super().__init__()
        self.alert_writes: list[dict[str, Any]] = []

    async def put(self, collection: str, key: str, record: dict[str, Any]) -> None:
        await super().put(collection, key, record)
        if collection == ALERTS:
            self.alert_writes.append(record)


def _coordinator_over(
    store: GovernanceStoreStub,
    roster: RosterProviderStub,
    dispatcher: NotificationDispatcherStub,
    fake_time: FakeTimeAuthority,
) -> GovernanceCoordinator:
    return GovernanceCoordinator(
        store=store,
        roster_provider=roster,
        dispatcher=dispatcher,
        time_authority=fake_time,
        config=TEST_GOVERNANCE_CONFIG,
    )


async def _audit_actions(coordinator: GovernanceCoordinator, alert_id: str) -> list[AuditAction]:
    entries = await coordinator.query_audit(AuditFilter(resource_id=alert_id))
    return [entry.action for entry in entries]


class TestDeclare:
    async def test_level_one_activates_immediately(
        self,
        coordinator: GovernanceCoordinator,
        dispatcher: NotificationDispatcherStub,
    ) -> None:
        alert = await coordinator.declare_emergency(emergency_spec())
        await settle()

        assert alert.status is AlertStatus.DECLARED
        assert alert.current_level == 1
        assert coordinator.escalation.active_timer_level(alert.alert_id) == 1
        assert {n.contact_method for n in dispatcher.sent_to("responder-1")} == {
            ContactMethod.PUSH,
            ContactMethod.SMS,
        }
        assert await _audit_actions(coordinator, alert.alert_id) == [
            AuditAction.EMERGENCY_DECLARED,
            AuditAction.LEVEL_ACTIVATED,
        ]

    async def test_empty_chain_rejected(self, coordinator: GovernanceCoordinator) -> None:
        with pytest.raises(InvalidAlertError):
            await coordinator.declare_emergency(emergency_spec(escalation_chain=()))

    async def test_missing_timeout_uses_default(
        self, coordinator: GovernanceCoordinator
    ) -> None:
        chain = (
            EscalationLevelSpecDTO(
                responder_role="security",
                responder_id="responder-1",
                contact_methods=(ContactMethod.PUSH,),
            ),
        )
        alert = await coordinator.declare_emergency(emergency_spec(escalation_chain=chain))
        assert alert.escalation_chain[0].timeout_minutes == 15

    async def test_unknown_alert(self, coordinator: GovernanceCoordinator) -> None:
        with pytest.raises(AlertNotFoundError):
            await coordinator.get_alert("missing")

    async def test_alert_first_stored_with_level_one_active(
        self,
        roster: RosterProviderStub,
        dispatcher: NotificationDispatcherStub,
        fake_time: FakeTimeAuthority,
    ) -> None:
        store = _AlertWriteRecordingStore()
        coordinator = _coordinator_over(store, roster, dispatcher, fake_time)
        await coordinator.declare_emergency(emergency_spec())

        first = store.alert_writes[0]
        assert first["current_level"] == 1
        assert first["escalation_chain"][0]["is_activated"] is True
        await coordinator.shutdown()

    async def test_store_outage_leaves_no_half_declared_alert(
        self,
        coordinator: GovernanceCoordinator,
        store: GovernanceStoreStub,
        dispatcher: NotificationDispatcherStub,
    ) -> None:
        store.set_unavailable(collection=ALERTS)
        with pytest.raises(StoreUnavailableError):
            await coordinator.declare_emergency(emergency_spec())
        store.set_unavailable(False, collection=ALERTS)

        assert await coordinator.list_alerts() == []
        assert dispatcher.dispatched == []
        declared = await coordinator.query_audit(
            AuditFilter(action=AuditAction.EMERGENCY_DECLARED)
        )
        assert declared == []


class TestEscalation:
    async def test_timeout_escalates_to_next_level(
        self,
        coordinator: GovernanceCoordinator,
        fake_time: FakeTimeAuthority,
        dispatcher: NotificationDispatcherStub,
    ) -> None:
        alert = await coordinator.declare_emergency(emergency_spec(10, 15))
        await settle()

        fake_time.advance(minutes=9)
        await settle()
        assert (await coordinator.get_alert(alert.alert_id)).current_level == 1

        fake_time.advance(minutes=1)
        await settle()
        escalated = await coordinator.get_alert(alert.alert_id)
        assert escalated.status is AlertStatus.ESCALATING
        assert escalated.current_level == 2
        assert escalated.level(1).is_timed_out
        assert dispatcher.sent_to("responder-2")

    async def test_exhausted_chain_closes_and_activates_succession(
        self,
        coordinator: GovernanceCoordinator,
        fake_time: FakeTimeAuthority,
    ) -> None:
        plan = await coordinator.create_succession_plan(succession_spec())
        alert = await coordinator.declare_emergency(emergency_spec(10, 15))
        await settle()
        fake_time.advance(minutes=10)
        await settle()
        fake_time.advance(minutes=15)
        await settle()

        closed = await coordinator.get_alert(alert.alert_id)
        assert closed.status is AlertStatus.CLOSED_UNRESOLVED
        assert not coordinator.escalation.has_active_timer(alert.alert_id)

        activated = await coordinator.get_succession_plan(plan.plan_id)
        assert activated.status is SuccessionStatus.ACTIVE
        assert activated.assigned_leader_id == "deputy-a"
        assert activated.source_alert_id == alert.alert_id

        activations = await coordinator.query_audit(
            AuditFilter(action=AuditAction.SUCCESSION_ACTIVATED)
        )
        assert len(activations) == 1
        assert activations[0].actor_id == SYSTEM_ACTOR_ID

    async def test_exhaustion_without_plan_is_audited_on_alert(
        self,
        coordinator: GovernanceCoordinator,
        fake_time: FakeTimeAuthority,
    ) -> None:
        alert = await coordinator.declare_emergency(emergency_spec(5))
        await settle()
        fake_time.advance(minutes=5)
        await settle()

        failures = await coordinator.query_audit(
            AuditFilter(action=AuditAction.SUCCESSION_TRIGGER_FAILED)
        )
        assert len(failures) == 1
        assert failures[0].resource_type is ResourceType.ALERT
        assert failures[0].resource_id == alert.alert_id
        assert failures[0].details["kind"] == "NoPlanConfigured"

    async def test_dispatch_failure_never_stops_escalation(
        self,
        coordinator: GovernanceCoordinator,
        fake_time: FakeTimeAuthority,
        dispatcher: NotificationDispatcherStub,
    ) -> None:
        dispatcher.fail_target("responder-1")
        alert = await coordinator.declare_emergency(emergency_spec(10, 15))
        await settle()

        declared = await coordinator.get_alert(alert.alert_id)
        failed = [n for n in declared.notifications if n.status is NotificationStatus.FAILED]
        assert len(failed) == 2
        assert failed[0].failure_reason

        fake_time.advance(minutes=10)
        await settle()
        escalated = await coordinator.get_alert(alert.alert_id)
        assert escalated.current_level == 2
        assert any(
            n.level == 2 and n.status is NotificationStatus.SENT
            for n in escalated.notifications
        )
        actions = await _audit_actions(coordinator, alert.alert_id)
        assert actions.count(AuditAction.NOTIFICATION_FAILED) == 2


class TestAcknowledge:
    async def test_acknowledgment_stops_escalation(
        self,
        coordinator: GovernanceCoordinator,
        fake_time: FakeTimeAuthority,
        dispatcher: NotificationDispatcherStub,
    ) -> None:
        alert = await coordinator.declare_emergency(emergency_spec(10, 15))
        await settle()
        fake_time.advance(minutes=5)
        await settle()

        acked = await coordinator.acknowledge_escalation(
            alert.alert_id, 1, "responder-1", EmergencyResponse.RESPONDING, eta_minutes=4
        )
        assert acked.status is AlertStatus.ACKNOWLEDGED
        assert not coordinator.escalation.has_active_timer(alert.alert_id)

        fake_time.advance(minutes=30)
        await settle()
        later = await coordinator.get_alert(alert.alert_id)
        assert later.status is AlertStatus.ACKNOWLEDGED
        assert later.current_level == 1
        assert not dispatcher.sent_to("responder-2")

    async def test_acknowledgment_at_deadline_wins_over_timer(
        self,
        coordinator: GovernanceCoordinator,
        fake_time: FakeTimeAuthority,
        dispatcher: NotificationDispatcherStub,
    ) -> None:
        alert = await coordinator.declare_emergency(emergency_spec(10, 15))
        await settle()

        # the level 1 timer is woken but has not run yet
        fake_time.advance(minutes=10)
        acked = await coordinator.acknowledge_escalation(
            alert.alert_id, 1, "responder-1", EmergencyResponse.ON_SITE
        )
        await settle()

        assert acked.status is AlertStatus.ACKNOWLEDGED
        later = await coordinator.get_alert(alert.alert_id)
        assert later.status is AlertStatus.ACKNOWLEDGED
        assert later.current_level == 1
        assert not dispatcher.sent_to("responder-2")
        assert not coordinator.escalation.has_active_timer(alert.alert_id)
        assert AuditAction.ESCALATION_ACKNOWLEDGED in await _audit_actions(
            coordinator, alert.alert_id
        )

    async def test_cannot_respond_keeps_escalating(
        self,
        coordinator: GovernanceCoordinator,
        fake_time: FakeTimeAuthority,
    ) -> None:
        alert = await coordinator.declare_emergency(emergency_spec(10, 15))
        await settle()

        still_open = await coordinator.acknowledge_escalation(
            alert.alert_id, 1, "responder-1", EmergencyResponse.CANNOT_RESPOND
        )
        assert still_open.status is AlertStatus.DECLARED
        assert len(still_open.acknowledgments) == 1

        fake_time.advance(minutes=10)
        await settle()
        assert (await coordinator.get_alert(alert.alert_id)).current_level == 2

    async def test_wrong_level_rejected(self, coordinator: GovernanceCoordinator) -> None:
        alert = await coordinator.declare_emergency(emergency_spec(10, 15))
        with pytest.raises(InvalidAcknowledgmentError, match="active level is 1"):
            await coordinator.acknowledge_escalation(alert.alert_id, 2, "responder-2")

    async def test_second_acknowledgment_rejected(
        self, coordinator: GovernanceCoordinator
    ) -> None:
        alert = await coordinator.declare_emergency(emergency_spec())
        await coordinator.acknowledge_escalation(alert.alert_id, 1, "responder-1")
        with pytest.raises(InvalidAcknowledgmentError, match="already acknowledged"):
            await coordinator.acknowledge_escalation(alert.alert_id, 1, "responder-1")


class TestResolve:
    async def test_resolve_cancels_timer(
        self,
        coordinator: GovernanceCoordinator,
        fake_time: FakeTimeAuthority,
    ) -> None:
        alert = await coordinator.declare_emergency(emergency_spec(10, 15))
        await settle()
        resolved = await coordinator.resolve_emergency(
            alert.alert_id, "Valve closed", "responder-1"
        )
        assert resolved.status is AlertStatus.RESOLVED
        assert resolved.resolution_notes == "Valve closed"

        fake_time.advance(minutes=30)
        await settle()
        assert (await coordinator.get_alert(alert.alert_id)).current_level == 1

    async def test_double_resolve_rejected_without_duplicate_audit(
        self, coordinator: GovernanceCoordinator
    ) -> None:
        alert = await coordinator.declare_emergency(emergency_spec())
        await coordinator.resolve_emergency(alert.alert_id, "Fixed", "responder-1")
        with pytest.raises(AlertAlreadyResolvedError):
            await coordinator.resolve_emergency(alert.alert_id, "Fixed again", "responder-2")

        actions = await _audit_actions(coordinator, alert.alert_id)
        assert actions.count(AuditAction.EMERGENCY_RESOLVED) == 1

    async def test_acknowledge_after_resolve_rejected(
        self, coordinator: GovernanceCoordinator
    ) -> None:
        alert = await coordinator.declare_emergency(emergency_spec())
        await coordinator.resolve_emergency(alert.alert_id, "Fixed", "responder-1")
        with pytest.raises(AlertAlreadyResolvedError):
            await coordinator.acknowledge_escalation(alert.alert_id, 1, "responder-1")


class TestRestore:
    async def test_new_engine_rearms_persisted_timers(
        self,
        coordinator: GovernanceCoordinator,
        store: GovernanceStoreStub,
        roster: RosterProviderStub,
        dispatcher: NotificationDispatcherStub,
        fake_time: FakeTimeAuthority,
    ) -> None:
        alert = await coordinator.declare_emergency(emergency_spec(10, 15))
        await settle()
        # Simulate the first process going away.
        await coordinator.escalation.shutdown()

        restarted = GovernanceCoordinator(
            store=store,
            roster_provider=roster,
            dispatcher=dispatcher,
            time_authority=fake_time,
            config=TEST_GOVERNANCE_CONFIG,
        )
        await restarted.start()
        try:
            await settle()
            assert restarted.escalation.active_timer_level(alert.alert_id) == 1

            fake_time.advance(minutes=10)
            await settle()
            assert (await restarted.get_alert(alert.alert_id)).current_level == 2
        finally:
            await restarted.shutdown()

    async def test_overdue_level_fires_on_restore(
        self,
        coordinator: GovernanceCoordinator,
        store: GovernanceStoreStub,
        roster: RosterProviderStub,
        dispatcher: NotificationDispatcherStub,
        fake_time: FakeTimeAuthority,
    ) -> None:
        alert = await coordinator.declare_emergency(emergency_spec(10, 15))
        await settle()
        await coordinator.escalation.shutdown()
        fake_time.advance(minutes=12)

        restarted = GovernanceCoordinator(
            store=store,
            roster_provider=roster,
            dispatcher=dispatcher,
            time_authority=fake_time,
            config=TEST_GOVERNANCE_CONFIG,
        )
        await restarted.start()
        try:
            await settle()
            assert (await restarted.get_alert(alert.alert_id)).current_level == 2
        finally:
            await restarted.shutdown()
