"""Audit entry model.

AuditEntry records are append-only. Each entry references the resource
it concerns by type and id, never by embedding the resource. Entries are
keyed by ``(timestamp, sequence_number)`` so that two entries with the
same timestamp still have a stable order.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional

from society_governance.domain.models._records import ensure_utc, iso, require_iso

SYSTEM_ACTOR_ID: str = "governance_system"
ANONYMOUS_ACTOR_ID: str = "anonymous_voter"


class ResourceType(str, Enum):
    CAMPAIGN = "campaign"
    ALERT = "alert"
    SUCCESSION_PLAN = "succession_plan"
    POLICY_PROPOSAL = "policy_proposal"


class AuditAction(str, Enum):
    CAMPAIGN_CREATED = "campaign_created"
    CAMPAIGN_SCHEDULED = "campaign_scheduled"
    CAMPAIGN_ACTIVATED = "campaign_activated"
    CAMPAIGN_CLOSED = "campaign_closed"
    CAMPAIGN_CANCELLED = "campaign_cancelled"
    RESULTS_PUBLISHED = "results_published"
    VOTE_CAST = "vote_cast"
    EMERGENCY_DECLARED = "emergency_declared"
    LEVEL_ACTIVATED = "level_activated"
    LEVEL_TIMED_OUT = "level_timed_out"
    ESCALATION_ACKNOWLEDGED = "escalation_acknowledged"
    EMERGENCY_RESOLVED = "emergency_resolved"
    EMERGENCY_CLOSED_UNRESOLVED = "emergency_closed_unresolved"
    NOTIFICATION_FAILED = "notification_failed"
    SUCCESSION_PLAN_CREATED = "succession_plan_created"
    SUCCESSION_ACTIVATED = "succession_activated"
    SUCCESSION_COMPLETED = "succession_completed"
    SUCCESSION_TRIGGER_SKIPPED = "succession_trigger_skipped"
    SUCCESSION_TRIGGER_FAILED = "succession_trigger_failed"
    POLICY_PROPOSED = "policy_proposed"
    POLICY_VOTING_OPENED = "policy_voting_opened"
    POLICY_APPROVED = "policy_approved"
    POLICY_REJECTED = "policy_rejected"


@dataclass(frozen=True, eq=True)
class AuditEntry:
    """One immutable governance action.

    Attributes:
        timestamp: When the action happened (UTC).
        sequence_number: Process-wide monotonic tie-breaker.
        actor_id: Who acted; SYSTEM_ACTOR_ID for timer-driven actions.
        action: What happened.
        resource_type: Kind of resource acted on.
        resource_id: Id of the resource acted on.
        details: Action-specific context, read-only.
    """

    timestamp: datetime
    sequence_number: int
    actor_id: str
    action: AuditAction
    resource_type: ResourceType
    resource_id: str
    details: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if not isinstance(self.details, MappingProxyType):
            object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    @property
    def record_key(self) -> str:
        """Store key ordering entries by timestamp, then sequence."""
        return f"{ensure_utc(self.timestamp).isoformat()}#{self.sequence_number:012d}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": iso(self.timestamp),
            "sequence_number": self.sequence_number,
            "actor_id": self.actor_id,
            "action": self.action.value,
            "resource_type": self.resource_type.value,
            "resource_id": self.resource_id,
            "details": dict(self.details),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AuditEntry:
        return cls(
            timestamp=require_iso(data["timestamp"]),
            sequence_number=int(data["sequence_number"]),
            actor_id=data["actor_id"],
            action=AuditAction(data["action"]),
            resource_type=ResourceType(data["resource_type"]),
            resource_id=data["resource_id"],
            details=MappingProxyType(dict(data.get("details", {}))),
        )


@dataclass(frozen=True)
class AuditFilter:
    """Read filter for audit queries. Unset fields match everything.

    ``since`` is inclusive, ``until`` is exclusive.
    """

    resource_type: Optional[ResourceType] = None
    resource_id: Optional[str] = None
    actor_id: Optional[str] = None
    action: Optional[AuditAction] = None
    since: Optional[datetime] = None
    until: Optional[datetime] = None

    def matches(self, entry: AuditEntry) -> bool:
        if self.resource_type is not None and entry.resource_type is not self.resource_type:
            return False
        if self.resource_id is not None and entry.resource_id != self.resource_id:
            return False
        if self.actor_id is not None and entry.actor_id != self.actor_id:
            return False
        if self.action is not None and entry.action is not self.action:
            return False
        timestamp = ensure_utc(entry.timestamp)
        if self.since is not None and timestamp < ensure_utc(self.since):
            return False
        if self.until is not None and timestamp >= ensure_utc(self.until):
            return False
        return True
