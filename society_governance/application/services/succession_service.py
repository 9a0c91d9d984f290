"""Succession coordination.

Activates a society's succession plan when a trigger fires: either an
emergency that exhausted its escalation chain or an explicit trigger by
an administrator. Activation assigns deputies in the plan's order.

A missing plan is never ignored. ``evaluate_trigger`` raises
NoPlanConfiguredError; when the trigger came from an exhausted alert the
failure is logged at error level and audited against the alert so
operators learn that escalation ran out with no fallback.
"""

from __future__ import annotations

from typing import Optional
from uuid import uuid4

from society_governance.application.dtos.governance import (
    SuccessionEventDTO,
    SuccessionPlanSpecDTO,
)
from society_governance.application.ports.governance_store import (
    SUCCESSION_PLANS,
    GovernanceStoreProtocol,
)
from society_governance.application.ports.time_authority import TimeAuthorityProtocol
from society_governance.application.services.audit_log_service import AuditLog
from society_governance.application.services.base import LoggingMixin
from society_governance.application.services.entity_locks import EntityLockRegistry
from society_governance.domain.errors.succession import (
    InvalidPlanError,
    NoPlanConfiguredError,
    SuccessionPlanNotFoundError,
)
from society_governance.domain.models.audit import (
    SYSTEM_ACTOR_ID,
    AuditAction,
    ResourceType,
)
from society_governance.domain.models.emergency import EmergencyAlert
from society_governance.domain.models.succession import (
    SuccessionPlan,
    SuccessionStatus,
    TriggerType,
)

_LOCK_KIND = "succession_plan"


class SuccessionCoordinator(LoggingMixin):
    """Owns succession plans and their activation."""

    def __init__(
        self,
        store: GovernanceStoreProtocol,
        audit_log: AuditLog,
        time_authority: TimeAuthorityProtocol,
        locks: Optional[EntityLockRegistry] = None,
    ) -> None:
        self._store = store
        self._audit = audit_log
        self._time = time_authority
        self._locks = locks if locks is not None else EntityLockRegistry()
        self._init_logger()

    async def get_plan(self, plan_id: str) -> SuccessionPlan:
        record = await self._store.get(SUCCESSION_PLANS, plan_id)
        if record is None:
            raise SuccessionPlanNotFoundError(plan_id)
        return SuccessionPlan.from_dict(record)

    async def find_plan_for_society(self, society_id: str) -> Optional[SuccessionPlan]:
        """The society's current plan: the newest one not yet completed."""
        plans = [
            SuccessionPlan.from_dict(record)
            for record in await self._store.list(SUCCESSION_PLANS)
        ]
        current = [
            plan
            for plan in plans
            if plan.society_id == society_id and plan.status is not SuccessionStatus.COMPLETED
        ]
        if not current:
            return None
        return max(current, key=lambda plan: plan.created_at)

    async def create_plan(self, spec: SuccessionPlanSpecDTO) -> SuccessionPlan:
        """Create an INACTIVE plan.

        Raises:
            InvalidPlanError: If the plan is malformed or the society
                already has a plan that is not completed.
        """
        existing = await self.find_plan_for_society(spec.society_id)
        if existing is not None:
            raise InvalidPlanError(
                f"society {spec.society_id} already has succession plan {existing.plan_id}"
            )
        now = self._time.utcnow()
        plan = SuccessionPlan(
            plan_id=str(uuid4()),
            society_id=spec.society_id,
            current_leader_id=spec.current_leader_id,
            status=SuccessionStatus.INACTIVE,
            deputies=tuple(spec.deputies),
            succession_order=tuple(spec.succession_order),
            triggers=tuple(spec.triggers),
            is_automatic=spec.is_automatic,
            created_by=spec.created_by,
            created_at=now,
            updated_at=now,
        )
        await self._save(plan)
        await self._audit.record(
            spec.created_by,
            AuditAction.SUCCESSION_PLAN_CREATED,
            ResourceType.SUCCESSION_PLAN,
            plan.plan_id,
            {"society_id": plan.society_id, "deputies": len(plan.deputies)},
        )
        self._log_operation("create_plan", plan_id=plan.plan_id).info(
            "succession_plan_created", society_id=plan.society_id
        )
        return plan

    async def evaluate_trigger(self, event: SuccessionEventDTO) -> Optional[SuccessionPlan]:
        """Activate the society's plan if the event qualifies.

        Returns:
            The activated plan, or None when the plan is already active or
            does not respond to this trigger type.

        Raises:
            NoPlanConfiguredError: If the society has no plan.
        """
        log = self._log_operation(
            "evaluate_trigger",
            society_id=event.society_id,
            trigger_type=event.trigger_type.value,
        )
        plan = await self.find_plan_for_society(event.society_id)
        if plan is None:
            raise NoPlanConfiguredError(event.society_id)

        async with self._locks.lock_for(_LOCK_KIND, plan.plan_id):
            plan = await self.get_plan(plan.plan_id)
            if plan.status is not SuccessionStatus.INACTIVE:
                log.info("succession_already_active", plan_id=plan.plan_id)
                return None
            if not plan.responds_to(event.trigger_type):
                await self._audit.record(
                    event.actor_id,
                    AuditAction.SUCCESSION_TRIGGER_SKIPPED,
                    ResourceType.SUCCESSION_PLAN,
                    plan.plan_id,
                    {
                        "trigger_type": event.trigger_type.value,
                        "reason": event.reason,
                        "is_automatic": plan.is_automatic,
                    },
                )
                log.warning("succession_trigger_not_configured", plan_id=plan.plan_id)
                return None
            return await self._activate(plan, event)

    async def trigger_succession(
        self,
        plan_id: str,
        actor_id: str,
        reason: str = "Administrative override",
    ) -> SuccessionPlan:
        """Manually activate a plan.

        Raises:
            SuccessionPlanNotFoundError: Unknown plan.
            InvalidTransitionError: If the plan is not INACTIVE.
        """
        async with self._locks.lock_for(_LOCK_KIND, plan_id):
            plan = await self.get_plan(plan_id)
            event = SuccessionEventDTO(
                society_id=plan.society_id,
                trigger_type=TriggerType.MANUAL,
                reason=reason,
                actor_id=actor_id,
            )
            return await self._activate(plan, event)

    async def complete_succession(self, plan_id: str, actor_id: str) -> SuccessionPlan:
        """Mark an ACTIVE plan's handover as done.

        Raises:
            SuccessionPlanNotFoundError: Unknown plan.
            InvalidTransitionError: If the plan is not ACTIVE.
        """
        async with self._locks.lock_for(_LOCK_KIND, plan_id):
            plan = await self.get_plan(plan_id)
            completed = plan.completed(self._time.utcnow())
            await self._save(completed)
            await self._audit.record(
                actor_id,
                AuditAction.SUCCESSION_COMPLETED,
                ResourceType.SUCCESSION_PLAN,
                plan_id,
                {"assigned_leader_id": completed.assigned_leader_id},
            )
        self._log_operation("complete_succession", plan_id=plan_id).info(
            "succession_completed"
        )
        return completed

    async def on_alert_exhausted(self, alert: EmergencyAlert) -> Optional[SuccessionPlan]:
        """Exhaustion listener for the escalation scheduler."""
        event = SuccessionEventDTO(
            society_id=alert.society_id,
            trigger_type=TriggerType.EMERGENCY,
            reason=f"Emergency {alert.alert_id} exhausted its escalation chain unacknowledged",
            source_alert_id=alert.alert_id,
        )
        try:
            return await self.evaluate_trigger(event)
        except NoPlanConfiguredError as exc:
            self._log_operation(
                "on_alert_exhausted", alert_id=alert.alert_id, society_id=alert.society_id
            ).error("succession_no_plan_configured", message=exc.message)
            await self._audit.record(
                SYSTEM_ACTOR_ID,
                AuditAction.SUCCESSION_TRIGGER_FAILED,
                ResourceType.ALERT,
                alert.alert_id,
                exc.to_dict(),
            )
            return None

    async def _activate(
        self, plan: SuccessionPlan, event: SuccessionEventDTO
    ) -> SuccessionPlan:
        activated = plan.activated(
            trigger_type=event.trigger_type,
            reason=event.reason,
            activated_by=event.actor_id,
            now=self._time.utcnow(),
            source_alert_id=event.source_alert_id,
        )
        await self._save(activated)
        await self._audit.record(
            event.actor_id,
            AuditAction.SUCCESSION_ACTIVATED,
            ResourceType.SUCCESSION_PLAN,
            plan.plan_id,
            {
                "trigger_type": event.trigger_type.value,
                "reason": event.reason,
                "assigned_leader_id": activated.assigned_leader_id,
                "assigned_deputies": list(activated.assigned_deputies),
                "source_alert_id": event.source_alert_id,
            },
        )
        self._log_operation("activate", plan_id=plan.plan_id).warning(
            "succession_activated",
            trigger_type=event.trigger_type.value,
            assigned_leader_id=activated.assigned_leader_id,
        )
        return activated

    async def _save(self, plan: SuccessionPlan) -> None:
        await self._store.put(SUCCESSION_PLANS, plan.plan_id, plan.to_dict())
