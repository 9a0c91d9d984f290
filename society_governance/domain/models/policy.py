"""Policy proposal model.

A PolicyProposal is a thin wrapper over a POLICY_VOTE campaign with two
choices, approve and reject. The campaign owns ballots, tally and quorum;
the proposal mirrors the tally and records the final decision.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from society_governance.domain.errors.policy import InvalidProposalError
from society_governance.domain.errors.state_transition import InvalidTransitionError
from society_governance.domain.models._records import iso, parse_iso, require_iso


class PolicyStatus(str, Enum):
    DRAFT = "draft"
    VOTING = "voting"
    APPROVED = "approved"
    REJECTED = "rejected"


POLICY_TRANSITIONS: dict[PolicyStatus, frozenset[PolicyStatus]] = {
    PolicyStatus.DRAFT: frozenset({PolicyStatus.VOTING}),
    PolicyStatus.VOTING: frozenset({PolicyStatus.APPROVED, PolicyStatus.REJECTED}),
    PolicyStatus.APPROVED: frozenset(),
    PolicyStatus.REJECTED: frozenset(),
}


class PolicyChoice(str, Enum):
    """Choice ids on the linked campaign."""

    APPROVE = "approve"
    REJECT = "reject"


class PolicyCategory(str, Enum):
    BYLAWS = "bylaws"
    FINANCIAL = "financial"
    MAINTENANCE = "maintenance"
    SECURITY = "security"
    COMMUNITY = "community"
    VISITOR = "visitor"
    PARKING = "parking"
    AMENITY = "amenity"
    ENVIRONMENTAL = "environmental"
    EMERGENCY = "emergency"
    GOVERNANCE = "governance"


class ChangeType(str, Enum):
    ADD = "add"
    MODIFY = "modify"
    REMOVE = "remove"


@dataclass(frozen=True, eq=True)
class PolicyChange:
    section: str
    change_type: ChangeType
    rationale: str = ""
    current_text: Optional[str] = None
    proposed_text: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "section": self.section,
            "change_type": self.change_type.value,
            "rationale": self.rationale,
            "current_text": self.current_text,
            "proposed_text": self.proposed_text,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PolicyChange:
        return cls(
            section=data["section"],
            change_type=ChangeType(data["change_type"]),
            rationale=data.get("rationale", ""),
            current_text=data.get("current_text"),
            proposed_text=data.get("proposed_text"),
        )


@dataclass(frozen=True, eq=True)
class PolicyProposal:
    """A proposed policy change decided by a linked campaign.

    Attributes:
        voting_threshold_percent: Share of approve votes, out of all
            votes cast, required for approval.
        approve_votes: Mirror of the linked campaign tally.
        reject_votes: Mirror of the linked campaign tally.
    """

    proposal_id: str
    society_id: str
    title: str
    proposal_text: str
    category: PolicyCategory
    proposed_by: str
    status: PolicyStatus
    campaign_id: str
    created_at: datetime
    updated_at: datetime
    changes: tuple[PolicyChange, ...] = ()
    voting_threshold_percent: float = 50.0
    approve_votes: int = 0
    reject_votes: int = 0
    decided_at: Optional[datetime] = None
    decision_reason: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.title.strip():
            raise InvalidProposalError("title is required")
        if not self.proposal_text.strip():
            raise InvalidProposalError("proposal text is required")
        if not 0.0 < self.voting_threshold_percent <= 100.0:
            raise InvalidProposalError("voting threshold must be above 0 and at most 100")

    @property
    def total_votes(self) -> int:
        return self.approve_votes + self.reject_votes

    def _transition(self, target: PolicyStatus, now: datetime, **changes: Any) -> PolicyProposal:
        if target not in POLICY_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                "policy_proposal", self.proposal_id, self.status.value, target.value
            )
        return replace(self, status=target, updated_at=now, **changes)

    def voting_opened(self, now: datetime) -> PolicyProposal:
        return self._transition(PolicyStatus.VOTING, now)

    def with_tally(self, approve: int, reject: int, now: datetime) -> PolicyProposal:
        return replace(self, approve_votes=approve, reject_votes=reject, updated_at=now)

    def decided(self, approved: bool, reason: str, now: datetime) -> PolicyProposal:
        target = PolicyStatus.APPROVED if approved else PolicyStatus.REJECTED
        return self._transition(target, now, decided_at=now, decision_reason=reason)

    def to_dict(self) -> dict[str, Any]:
        return {
            "proposal_id": self.proposal_id,
            "society_id": self.society_id,
            "title": self.title,
            "proposal_text": self.proposal_text,
            "category": self.category.value,
            "proposed_by": self.proposed_by,
            "status": self.status.value,
            "campaign_id": self.campaign_id,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
            "changes": [change.to_dict() for change in self.changes],
            "voting_threshold_percent": self.voting_threshold_percent,
            "approve_votes": self.approve_votes,
            "reject_votes": self.reject_votes,
            "decided_at": iso(self.decided_at),
            "decision_reason": self.decision_reason,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PolicyProposal:
        return cls(
            proposal_id=data["proposal_id"],
            society_id=data["society_id"],
            title=data["title"],
            proposal_text=data["proposal_text"],
            category=PolicyCategory(data["category"]),
            proposed_by=data["proposed_by"],
            status=PolicyStatus(data["status"]),
            campaign_id=data["campaign_id"],
            created_at=require_iso(data["created_at"]),
            updated_at=require_iso(data["updated_at"]),
            changes=tuple(PolicyChange.from_dict(c) for c in data.get("changes", ())),
            voting_threshold_percent=float(data.get("voting_threshold_percent", 50.0)),
            approve_votes=int(data.get("approve_votes", 0)),
            reject_votes=int(data.get("reject_votes", 0)),
            decided_at=parse_iso(data.get("decided_at")),
            decision_reason=data.get("decision_reason"),
        )
