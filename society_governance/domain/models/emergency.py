"""Emergency alert and escalation chain models.

An EmergencyAlert owns an ordered escalation chain. Level 1 activates on
declaration; each level either gets acknowledged before its timeout or
times out and hands over to the next level. When the last level times out
the alert closes unresolved. RESOLVED is reachable from any non-terminal
state; every other transition only moves forward:

    DECLARED -> ESCALATING -> CLOSED_UNRESOLVED
        |            |
        +--> ACKNOWLEDGED <--+
    (any non-terminal) -> RESOLVED
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional

from society_governance.domain.errors.emergency import (
    AlertAlreadyResolvedError,
    InvalidAcknowledgmentError,
    InvalidAlertError,
)
from society_governance.domain.errors.state_transition import InvalidTransitionError
from society_governance.domain.models._records import iso, parse_iso, require_iso


class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class EmergencyType(str, Enum):
    FIRE = "fire"
    MEDICAL = "medical"
    SECURITY = "security"
    NATURAL_DISASTER = "natural_disaster"
    INFRASTRUCTURE = "infrastructure"
    POWER_OUTAGE = "power_outage"
    WATER_SHORTAGE = "water_shortage"
    GAS_LEAK = "gas_leak"
    ELEVATOR = "elevator"
    OTHER = "other"


class ContactMethod(str, Enum):
    PUSH = "push"
    SMS = "sms"
    CALL = "call"
    EMAIL = "email"
    WHATSAPP = "whatsapp"


class EmergencyResponse(str, Enum):
    """What a responder says when acknowledging a level."""

    ACKNOWLEDGED = "acknowledged"
    RESPONDING = "responding"
    ON_SITE = "on_site"
    CANNOT_RESPOND = "cannot_respond"
    FALSE_ALARM = "false_alarm"

    def stops_escalation(self) -> bool:
        return self is not EmergencyResponse.CANNOT_RESPOND


class AlertStatus(str, Enum):
    """Lifecycle state of an emergency alert."""

    DECLARED = "declared"
    ESCALATING = "escalating"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"
    CLOSED_UNRESOLVED = "closed_unresolved"

    def can_transition_to(self, target: AlertStatus) -> bool:
        return target in ALERT_TRANSITIONS[self]

    def is_terminal(self) -> bool:
        return self in (AlertStatus.RESOLVED, AlertStatus.CLOSED_UNRESOLVED)

    def auto_escalates(self) -> bool:
        """Whether a level timer may run in this state."""
        return self in (AlertStatus.DECLARED, AlertStatus.ESCALATING)


ALERT_TRANSITIONS: dict[AlertStatus, frozenset[AlertStatus]] = {
    AlertStatus.DECLARED: frozenset(
        {
            AlertStatus.ESCALATING,
            AlertStatus.ACKNOWLEDGED,
            AlertStatus.CLOSED_UNRESOLVED,
            AlertStatus.RESOLVED,
        }
    ),
    AlertStatus.ESCALATING: frozenset(
        {
            AlertStatus.ESCALATING,
            AlertStatus.ACKNOWLEDGED,
            AlertStatus.CLOSED_UNRESOLVED,
            AlertStatus.RESOLVED,
        }
    ),
    AlertStatus.ACKNOWLEDGED: frozenset({AlertStatus.RESOLVED}),
    AlertStatus.RESOLVED: frozenset(),
    AlertStatus.CLOSED_UNRESOLVED: frozenset(),
}


@dataclass(frozen=True, eq=True)
class EscalationLevel:
    """One responder tier in an escalation chain.

    Attributes:
        level: 1-based position, strictly increasing along the chain.
        responder_role: Role responsible at this level.
        responder_id: Person responsible at this level.
        contact_methods: How the responder is notified.
        timeout_minutes: Time allowed before auto-advance.
        is_activated: Whether this level has been reached.
        activated_at: When the level was reached.
        acknowledged_at: When the responder acknowledged.
        acknowledged_by: Who acknowledged.
        timed_out_at: When the level's timer fired unacknowledged.
    """

    level: int
    responder_role: str
    responder_id: str
    contact_methods: tuple[ContactMethod, ...]
    timeout_minutes: int
    is_activated: bool = False
    activated_at: Optional[datetime] = None
    acknowledged_at: Optional[datetime] = None
    acknowledged_by: Optional[str] = None
    timed_out_at: Optional[datetime] = None

    @property
    def timeout(self) -> timedelta:
        return timedelta(minutes=self.timeout_minutes)

    @property
    def is_acknowledged(self) -> bool:
        return self.acknowledged_at is not None

    @property
    def is_timed_out(self) -> bool:
        return self.timed_out_at is not None

    def deadline(self) -> Optional[datetime]:
        if self.activated_at is None:
            return None
        return self.activated_at + self.timeout

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "responder_role": self.responder_role,
            "responder_id": self.responder_id,
            "contact_methods": [method.value for method in self.contact_methods],
            "timeout_minutes": self.timeout_minutes,
            "is_activated": self.is_activated,
            "activated_at": iso(self.activated_at),
            "acknowledged_at": iso(self.acknowledged_at),
            "acknowledged_by": self.acknowledged_by,
            "timed_out_at": iso(self.timed_out_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EscalationLevel:
        return cls(
            level=int(data["level"]),
            responder_role=data["responder_role"],
            responder_id=data["responder_id"],
            contact_methods=tuple(ContactMethod(m) for m in data.get("contact_methods", ())),
            timeout_minutes=int(data["timeout_minutes"]),
            is_activated=bool(data.get("is_activated", False)),
            activated_at=parse_iso(data.get("activated_at")),
            acknowledged_at=parse_iso(data.get("acknowledged_at")),
            acknowledged_by=data.get("acknowledged_by"),
            timed_out_at=parse_iso(data.get("timed_out_at")),
        )


def validate_chain(levels: Sequence[EscalationLevel]) -> None:
    """Check an escalation chain is non-empty, numbered 1..N, with positive timeouts.

    Raises:
        InvalidAlertError: If the chain is malformed.
    """
    if not levels:
        raise InvalidAlertError("escalation chain must contain at least one level")
    for expected, level in enumerate(levels, start=1):
        if level.level != expected:
            raise InvalidAlertError(
                f"escalation levels must be numbered 1..N in order, got {level.level} at position {expected}"
            )
        if level.timeout_minutes <= 0:
            raise InvalidAlertError(f"level {level.level} timeout must be positive")
        if not level.contact_methods:
            raise InvalidAlertError(f"level {level.level} needs at least one contact method")


@dataclass(frozen=True, eq=True)
class Acknowledgment:
    """A responder's acknowledgment of an escalation level."""

    alert_id: str
    level: int
    acknowledged_by: str
    acknowledged_at: datetime
    response: EmergencyResponse = EmergencyResponse.ACKNOWLEDGED
    eta_minutes: Optional[int] = None
    notes: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "alert_id": self.alert_id,
            "level": self.level,
            "acknowledged_by": self.acknowledged_by,
            "acknowledged_at": iso(self.acknowledged_at),
            "response": self.response.value,
            "eta_minutes": self.eta_minutes,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Acknowledgment:
        return cls(
            alert_id=data["alert_id"],
            level=int(data["level"]),
            acknowledged_by=data["acknowledged_by"],
            acknowledged_at=require_iso(data["acknowledged_at"]),
            response=EmergencyResponse(data.get("response", "acknowledged")),
            eta_minutes=data.get("eta_minutes"),
            notes=data.get("notes", ""),
        )


class NotificationStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"


@dataclass(frozen=True, eq=True)
class NotificationRecord:
    """Outcome of one dispatch attempt to one contact method."""

    level: int
    target: str
    method: ContactMethod
    status: NotificationStatus
    attempted_at: datetime
    failure_reason: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "target": self.target,
            "method": self.method.value,
            "status": self.status.value,
            "attempted_at": iso(self.attempted_at),
            "failure_reason": self.failure_reason,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> NotificationRecord:
        return cls(
            level=int(data["level"]),
            target=data["target"],
            method=ContactMethod(data["method"]),
            status=NotificationStatus(data["status"]),
            attempted_at=require_iso(data["attempted_at"]),
            failure_reason=data.get("failure_reason"),
        )


@dataclass(frozen=True, eq=True)
class EmergencyAlert:
    """An emergency and its escalation progress.

    ``current_level`` is the number of the most recently activated level,
    0 before level 1 activates.
    """

    alert_id: str
    society_id: str
    title: str
    severity: AlertSeverity
    emergency_type: EmergencyType
    status: AlertStatus
    escalation_chain: tuple[EscalationLevel, ...]
    declared_by: str
    declared_at: datetime
    updated_at: datetime
    description: str = ""
    location: Optional[str] = None
    affected_areas: tuple[str, ...] = ()
    current_level: int = 0
    acknowledgments: tuple[Acknowledgment, ...] = ()
    notifications: tuple[NotificationRecord, ...] = ()
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None
    closed_at: Optional[datetime] = None

    @property
    def active_level(self) -> Optional[EscalationLevel]:
        if self.current_level == 0:
            return None
        return self.level(self.current_level)

    @property
    def next_level(self) -> Optional[EscalationLevel]:
        if self.current_level >= len(self.escalation_chain):
            return None
        return self.escalation_chain[self.current_level]

    def level(self, number: int) -> EscalationLevel:
        if not 1 <= number <= len(self.escalation_chain):
            raise InvalidAcknowledgmentError(self.alert_id, number, "no such level")
        return self.escalation_chain[number - 1]

    def _replace_level(self, updated: EscalationLevel) -> tuple[EscalationLevel, ...]:
        return tuple(
            updated if level.level == updated.level else level
            for level in self.escalation_chain
        )

    def _transition(self, target: AlertStatus, now: datetime, **changes: Any) -> EmergencyAlert:
        if self.status.is_terminal():
            raise AlertAlreadyResolvedError(self.alert_id, self.status.value)
        if target is not self.status and not self.status.can_transition_to(target):
            raise InvalidTransitionError("alert", self.alert_id, self.status.value, target.value)
        return replace(self, status=target, updated_at=now, **changes)

    def with_level_activated(self, now: datetime) -> EmergencyAlert:
        """Activate the next level in the chain.

        Level 1 keeps the alert DECLARED; later levels move it to ESCALATING.
        """
        upcoming = self.next_level
        if upcoming is None:
            raise InvalidTransitionError(
                "alert", self.alert_id, self.status.value, "next_level",
                message=f"Alert {self.alert_id} has no further escalation levels",
            )
        activated = replace(upcoming, is_activated=True, activated_at=now)
        target = AlertStatus.DECLARED if activated.level == 1 else AlertStatus.ESCALATING
        return self._transition(
            target,
            now,
            escalation_chain=self._replace_level(activated),
            current_level=activated.level,
        )

    def with_level_timed_out(self, number: int, now: datetime) -> EmergencyAlert:
        level = self.level(number)
        return replace(
            self,
            escalation_chain=self._replace_level(replace(level, timed_out_at=now)),
            updated_at=now,
        )

    def with_acknowledgment(self, acknowledgment: Acknowledgment) -> EmergencyAlert:
        """Record an acknowledgment of the active level.

        A CANNOT_RESPOND acknowledgment is recorded but leaves the level
        open so escalation continues.

        Raises:
            AlertAlreadyResolvedError: If the alert is terminal.
            InvalidAcknowledgmentError: If the level is not the active one.
        """
        if self.status.is_terminal():
            raise AlertAlreadyResolvedError(self.alert_id, self.status.value)
        if self.status is AlertStatus.ACKNOWLEDGED:
            raise InvalidAcknowledgmentError(
                self.alert_id, acknowledgment.level, "alert is already acknowledged"
            )
        if acknowledgment.level != self.current_level:
            raise InvalidAcknowledgmentError(
                self.alert_id,
                acknowledgment.level,
                f"active level is {self.current_level}",
            )
        now = acknowledgment.acknowledged_at
        acknowledgments = self.acknowledgments + (acknowledgment,)
        if not acknowledgment.response.stops_escalation():
            return replace(self, acknowledgments=acknowledgments, updated_at=now)
        level = self.level(acknowledgment.level)
        acked = replace(
            level,
            acknowledged_at=now,
            acknowledged_by=acknowledgment.acknowledged_by,
        )
        return self._transition(
            AlertStatus.ACKNOWLEDGED,
            now,
            escalation_chain=self._replace_level(acked),
            acknowledgments=acknowledgments,
        )

    def with_notification(self, record: NotificationRecord) -> EmergencyAlert:
        return replace(self, notifications=self.notifications + (record,))

    def resolved(self, resolved_by: str, notes: str, now: datetime) -> EmergencyAlert:
        return self._transition(
            AlertStatus.RESOLVED,
            now,
            resolved_by=resolved_by,
            resolved_at=now,
            resolution_notes=notes,
            closed_at=now,
        )

    def closed_unresolved(self, now: datetime) -> EmergencyAlert:
        return self._transition(AlertStatus.CLOSED_UNRESOLVED, now, closed_at=now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "alert_id": self.alert_id,
            "society_id": self.society_id,
            "title": self.title,
            "description": self.description,
            "severity": self.severity.value,
            "emergency_type": self.emergency_type.value,
            "status": self.status.value,
            "escalation_chain": [level.to_dict() for level in self.escalation_chain],
            "current_level": self.current_level,
            "acknowledgments": [ack.to_dict() for ack in self.acknowledgments],
            "notifications": [record.to_dict() for record in self.notifications],
            "declared_by": self.declared_by,
            "declared_at": iso(self.declared_at),
            "updated_at": iso(self.updated_at),
            "location": self.location,
            "affected_areas": list(self.affected_areas),
            "resolved_by": self.resolved_by,
            "resolved_at": iso(self.resolved_at),
            "resolution_notes": self.resolution_notes,
            "closed_at": iso(self.closed_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EmergencyAlert:
        return cls(
            alert_id=data["alert_id"],
            society_id=data["society_id"],
            title=data["title"],
            description=data.get("description", ""),
            severity=AlertSeverity(data["severity"]),
            emergency_type=EmergencyType(data.get("emergency_type", "other")),
            status=AlertStatus(data["status"]),
            escalation_chain=tuple(
                EscalationLevel.from_dict(level) for level in data["escalation_chain"]
            ),
            current_level=int(data.get("current_level", 0)),
            acknowledgments=tuple(
                Acknowledgment.from_dict(ack) for ack in data.get("acknowledgments", ())
            ),
            notifications=tuple(
                NotificationRecord.from_dict(rec) for rec in data.get("notifications", ())
            ),
            declared_by=data["declared_by"],
            declared_at=require_iso(data["declared_at"]),
            updated_at=require_iso(data["updated_at"]),
            location=data.get("location"),
            affected_areas=tuple(data.get("affected_areas", ())),
            resolved_by=data.get("resolved_by"),
            resolved_at=parse_iso(data.get("resolved_at")),
            resolution_notes=data.get("resolution_notes"),
            closed_at=parse_iso(data.get("closed_at")),
        )
