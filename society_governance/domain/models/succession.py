"""Succession plan model.

A SuccessionPlan names the deputies who take over leadership of a society
and the order in which they do so. The plan sits INACTIVE until a trigger
fires (an emergency that exhausted its escalation chain, or an explicit
administrative trigger), then becomes ACTIVE with deputies assigned in
the predefined order, and finally COMPLETED once the handover is done.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from society_governance.domain.errors.state_transition import InvalidTransitionError
from society_governance.domain.errors.succession import InvalidPlanError
from society_governance.domain.models._records import iso, parse_iso, require_iso


class SuccessionStatus(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"
    COMPLETED = "completed"


class TriggerType(str, Enum):
    RESIGNATION = "resignation"
    INACTIVITY = "inactivity"
    NO_CONFIDENCE_VOTE = "no_confidence_vote"
    TERM_COMPLETION = "term_completion"
    MANUAL = "manual"
    EMERGENCY = "emergency"


class DeputyRole(str, Enum):
    """Deputy rank; also the fallback succession order."""

    PRIMARY_DEPUTY = "primary_deputy"
    SECONDARY_DEPUTY = "secondary_deputy"
    EMERGENCY_DEPUTY = "emergency_deputy"
    SPECIALIZED_DEPUTY = "specialized_deputy"


_ROLE_RANK: dict[DeputyRole, int] = {role: rank for rank, role in enumerate(DeputyRole)}


@dataclass(frozen=True, eq=True)
class Deputy:
    user_id: str
    role: DeputyRole
    responsibilities: tuple[str, ...] = ()
    is_active: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "role": self.role.value,
            "responsibilities": list(self.responsibilities),
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Deputy:
        return cls(
            user_id=data["user_id"],
            role=DeputyRole(data["role"]),
            responsibilities=tuple(data.get("responsibilities", ())),
            is_active=bool(data.get("is_active", True)),
        )


@dataclass(frozen=True, eq=True)
class SuccessionTrigger:
    trigger_type: TriggerType
    condition: str = ""
    is_active: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger_type": self.trigger_type.value,
            "condition": self.condition,
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SuccessionTrigger:
        return cls(
            trigger_type=TriggerType(data["trigger_type"]),
            condition=data.get("condition", ""),
            is_active=bool(data.get("is_active", True)),
        )


DEFAULT_TRIGGERS: tuple[SuccessionTrigger, ...] = (
    SuccessionTrigger(TriggerType.MANUAL, "Administrative override"),
    SuccessionTrigger(TriggerType.EMERGENCY, "Escalation chain exhausted without acknowledgment"),
)


@dataclass(frozen=True, eq=True)
class SuccessionPlan:
    """A society's leadership succession plan.

    Attributes:
        plan_id: Plan id.
        society_id: Owning society; one plan per society.
        current_leader_id: Leader the plan stands in for.
        status: INACTIVE, ACTIVE or COMPLETED.
        deputies: Named deputies with their roles.
        succession_order: Deputy user ids in takeover order. When empty,
            deputies are ordered by role rank.
        triggers: Conditions the plan responds to.
        is_automatic: Whether non-manual triggers may activate the plan.
        assigned_leader_id: Deputy who took over on activation.
        assigned_deputies: Full ordered deputy assignment on activation.
    """

    plan_id: str
    society_id: str
    current_leader_id: str
    status: SuccessionStatus
    deputies: tuple[Deputy, ...]
    created_by: str
    created_at: datetime
    updated_at: datetime
    succession_order: tuple[str, ...] = ()
    triggers: tuple[SuccessionTrigger, ...] = DEFAULT_TRIGGERS
    is_automatic: bool = True
    activated_at: Optional[datetime] = None
    activated_by: Optional[str] = None
    activation_reason: Optional[str] = None
    activation_trigger: Optional[TriggerType] = None
    source_alert_id: Optional[str] = None
    assigned_leader_id: Optional[str] = None
    assigned_deputies: tuple[str, ...] = ()
    completed_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.deputies:
            raise InvalidPlanError("at least one deputy is required")
        deputy_ids = [deputy.user_id for deputy in self.deputies]
        if len(set(deputy_ids)) != len(deputy_ids):
            raise InvalidPlanError("deputies must be unique")
        unknown = [uid for uid in self.succession_order if uid not in deputy_ids]
        if unknown:
            raise InvalidPlanError(f"succession order names non-deputies: {', '.join(unknown)}")
        if self.current_leader_id in deputy_ids:
            raise InvalidPlanError("current leader cannot be their own deputy")

    def ordered_deputies(self) -> tuple[str, ...]:
        """Active deputies in takeover order."""
        active = {deputy.user_id: deputy for deputy in self.deputies if deputy.is_active}
        if self.succession_order:
            ordered = [uid for uid in self.succession_order if uid in active]
            ordered += sorted(
                (uid for uid in active if uid not in self.succession_order),
                key=lambda uid: _ROLE_RANK[active[uid].role],
            )
            return tuple(ordered)
        return tuple(
            deputy.user_id
            for deputy in sorted(active.values(), key=lambda d: _ROLE_RANK[d.role])
        )

    def responds_to(self, trigger_type: TriggerType) -> bool:
        """Whether a trigger of this type may activate the plan."""
        if trigger_type is TriggerType.MANUAL:
            return True
        if not self.is_automatic:
            return False
        return any(
            trigger.trigger_type is trigger_type and trigger.is_active
            for trigger in self.triggers
        )

    def activated(
        self,
        trigger_type: TriggerType,
        reason: str,
        activated_by: str,
        now: datetime,
        source_alert_id: Optional[str] = None,
    ) -> SuccessionPlan:
        """Move INACTIVE -> ACTIVE and assign deputies in order.

        Raises:
            InvalidTransitionError: If the plan is not INACTIVE.
            InvalidPlanError: If no active deputy is available.
        """
        if self.status is not SuccessionStatus.INACTIVE:
            raise InvalidTransitionError(
                "succession_plan", self.plan_id, self.status.value, SuccessionStatus.ACTIVE.value
            )
        order = self.ordered_deputies()
        if not order:
            raise InvalidPlanError("no active deputy available to take over")
        return replace(
            self,
            status=SuccessionStatus.ACTIVE,
            activated_at=now,
            activated_by=activated_by,
            activation_reason=reason,
            activation_trigger=trigger_type,
            source_alert_id=source_alert_id,
            assigned_leader_id=order[0],
            assigned_deputies=order,
            updated_at=now,
        )

    def completed(self, now: datetime) -> SuccessionPlan:
        if self.status is not SuccessionStatus.ACTIVE:
            raise InvalidTransitionError(
                "succession_plan", self.plan_id, self.status.value, SuccessionStatus.COMPLETED.value
            )
        return replace(self, status=SuccessionStatus.COMPLETED, completed_at=now, updated_at=now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "plan_id": self.plan_id,
            "society_id": self.society_id,
            "current_leader_id": self.current_leader_id,
            "status": self.status.value,
            "deputies": [deputy.to_dict() for deputy in self.deputies],
            "succession_order": list(self.succession_order),
            "triggers": [trigger.to_dict() for trigger in self.triggers],
            "is_automatic": self.is_automatic,
            "created_by": self.created_by,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
            "activated_at": iso(self.activated_at),
            "activated_by": self.activated_by,
            "activation_reason": self.activation_reason,
            "activation_trigger": (
                self.activation_trigger.value if self.activation_trigger else None
            ),
            "source_alert_id": self.source_alert_id,
            "assigned_leader_id": self.assigned_leader_id,
            "assigned_deputies": list(self.assigned_deputies),
            "completed_at": iso(self.completed_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SuccessionPlan:
        trigger = data.get("activation_trigger")
        return cls(
            plan_id=data["plan_id"],
            society_id=data["society_id"],
            current_leader_id=data["current_leader_id"],
            status=SuccessionStatus(data["status"]),
            deputies=tuple(Deputy.from_dict(deputy) for deputy in data["deputies"]),
            succession_order=tuple(data.get("succession_order", ())),
            triggers=tuple(SuccessionTrigger.from_dict(t) for t in data.get("triggers", ())),
            is_automatic=bool(data.get("is_automatic", True)),
            created_by=data["created_by"],
            created_at=require_iso(data["created_at"]),
            updated_at=require_iso(data["updated_at"]),
            activated_at=parse_iso(data.get("activated_at")),
            activated_by=data.get("activated_by"),
            activation_reason=data.get("activation_reason"),
            activation_trigger=TriggerType(trigger) if trigger else None,
            source_alert_id=data.get("source_alert_id"),
            assigned_leader_id=data.get("assigned_leader_id"),
            assigned_deputies=tuple(data.get("assigned_deputies", ())),
            completed_at=parse_iso(data.get("completed_at")),
        )
