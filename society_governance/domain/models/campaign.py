"""Voting campaign model.

A VotingCampaign moves through a strict lifecycle:

    DRAFT -> SCHEDULED -> ACTIVE -> CLOSED -> RESULTS_PUBLISHED

with CANCELLED reachable from DRAFT or SCHEDULED only. The electorate is
resolved and frozen on DRAFT -> SCHEDULED. Vote counts on choices are
derived from stored ballots and are never set by callers, so
``total_votes == sum(choice.vote_count)`` holds for every instance built
through this module.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from society_governance.domain.errors.campaign import InvalidCampaignError
from society_governance.domain.errors.state_transition import InvalidTransitionError
from society_governance.domain.exceptions import GovernanceErrorKind
from society_governance.domain.models._records import iso, parse_iso, require_iso
from society_governance.domain.models.eligibility import EligibilityRule


class CampaignType(str, Enum):
    """What a campaign decides."""

    COMMITTEE_ELECTION = "committee_election"
    POLL = "poll"
    REFERENDUM = "referendum"
    EMERGENCY_DECISION = "emergency_decision"
    POLICY_VOTE = "policy_vote"
    RESIDENT_PROMOTION = "resident_promotion"
    BUDGET_APPROVAL = "budget_approval"


class CampaignStatus(str, Enum):
    """Lifecycle state of a voting campaign."""

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    CLOSED = "closed"
    RESULTS_PUBLISHED = "results_published"
    CANCELLED = "cancelled"

    def can_transition_to(self, target: CampaignStatus) -> bool:
        return target in CAMPAIGN_TRANSITIONS[self]

    def is_terminal(self) -> bool:
        return not CAMPAIGN_TRANSITIONS[self]


CAMPAIGN_TRANSITIONS: dict[CampaignStatus, frozenset[CampaignStatus]] = {
    CampaignStatus.DRAFT: frozenset({CampaignStatus.SCHEDULED, CampaignStatus.CANCELLED}),
    CampaignStatus.SCHEDULED: frozenset({CampaignStatus.ACTIVE, CampaignStatus.CANCELLED}),
    CampaignStatus.ACTIVE: frozenset({CampaignStatus.CLOSED}),
    CampaignStatus.CLOSED: frozenset({CampaignStatus.RESULTS_PUBLISHED}),
    CampaignStatus.RESULTS_PUBLISHED: frozenset(),
    CampaignStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True, eq=True)
class Choice:
    """A candidate or option on the ballot.

    Attributes:
        choice_id: Stable id used on ballots.
        label: Display name.
        description: Bio, manifesto or option text.
        candidate_user_id: Resident id when the choice is a person.
        vote_count: Derived from ballots, never set by callers.
    """

    choice_id: str
    label: str
    description: str = ""
    candidate_user_id: Optional[str] = None
    vote_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "choice_id": self.choice_id,
            "label": self.label,
            "description": self.description,
            "candidate_user_id": self.candidate_user_id,
            "vote_count": self.vote_count,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Choice:
        return cls(
            choice_id=data["choice_id"],
            label=data["label"],
            description=data.get("description", ""),
            candidate_user_id=data.get("candidate_user_id"),
            vote_count=int(data.get("vote_count", 0)),
        )


@dataclass(frozen=True, eq=True)
class ChoiceResult:
    """Per-choice line of a result breakdown."""

    choice_id: str
    votes: int
    percentage: float

    def to_dict(self) -> dict[str, Any]:
        return {"choice_id": self.choice_id, "votes": self.votes, "percentage": self.percentage}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChoiceResult:
        return cls(
            choice_id=data["choice_id"],
            votes=int(data["votes"]),
            percentage=float(data["percentage"]),
        )


@dataclass(frozen=True, eq=True)
class CampaignResults:
    """Outcome of a closed campaign.

    Quorum failure and ties are informational: they are reported here and
    never raised.

    Attributes:
        campaign_id: Campaign the results belong to.
        total_votes: Ballots counted.
        eligible_count: Size of the frozen electorate.
        participation_percent: total_votes / eligible_count * 100.
        quorum_required: Whether the campaign requires quorum.
        quorum_met: False only when quorum was required and missed.
        breakdown: Votes and share per choice, in ballot order.
        winner_id: Single highest choice; None on ties or no votes.
        tie_requires_runoff: Two or more choices share the top count.
        computed_at: When the tally was computed.
        published_at: When results were published, if they have been.
    """

    campaign_id: str
    total_votes: int
    eligible_count: int
    participation_percent: float
    quorum_required: bool
    quorum_met: bool
    breakdown: tuple[ChoiceResult, ...]
    winner_id: Optional[str]
    tie_requires_runoff: bool
    computed_at: datetime
    published_at: Optional[datetime] = None

    @property
    def quorum_not_met(self) -> bool:
        return not self.quorum_met

    @property
    def is_published(self) -> bool:
        return self.published_at is not None

    @property
    def notices(self) -> tuple[GovernanceErrorKind, ...]:
        """Informational error kinds attached to this outcome."""
        notices: list[GovernanceErrorKind] = []
        if self.quorum_not_met:
            notices.append(GovernanceErrorKind.QUORUM_NOT_MET)
        if self.tie_requires_runoff:
            notices.append(GovernanceErrorKind.TIE_REQUIRES_RUNOFF)
        return tuple(notices)

    def votes_for(self, choice_id: str) -> int:
        for line in self.breakdown:
            if line.choice_id == choice_id:
                return line.votes
        return 0

    @classmethod
    def compute(
        cls,
        campaign: VotingCampaign,
        tally: Mapping[str, int],
        computed_at: datetime,
    ) -> CampaignResults:
        """Compute results from a ballot tally.

        Highest count wins. An exact tie at the top yields no winner and
        sets ``tie_requires_runoff``; there is no random tie-break.
        """
        total = sum(tally.get(choice.choice_id, 0) for choice in campaign.choices)
        eligible = len(campaign.eligible_voter_ids)
        participation = (total / eligible * 100.0) if eligible else 0.0
        quorum_met = (
            not campaign.requires_quorum
            or participation >= campaign.minimum_participation_percent
        )

        breakdown = tuple(
            ChoiceResult(
                choice_id=choice.choice_id,
                votes=tally.get(choice.choice_id, 0),
                percentage=round(tally.get(choice.choice_id, 0) / total * 100.0, 2)
                if total
                else 0.0,
            )
            for choice in campaign.choices
        )

        winner_id: Optional[str] = None
        tie = False
        if total:
            top = max(line.votes for line in breakdown)
            leaders = [line.choice_id for line in breakdown if line.votes == top]
            if len(leaders) == 1:
                winner_id = leaders[0]
            else:
                tie = True

        return cls(
            campaign_id=campaign.campaign_id,
            total_votes=total,
            eligible_count=eligible,
            participation_percent=round(participation, 2),
            quorum_required=campaign.requires_quorum,
            quorum_met=quorum_met,
            breakdown=breakdown,
            winner_id=winner_id,
            tie_requires_runoff=tie,
            computed_at=computed_at,
        )

    def published(self, published_at: datetime) -> CampaignResults:
        return replace(self, published_at=published_at)

    def to_dict(self) -> dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "total_votes": self.total_votes,
            "eligible_count": self.eligible_count,
            "participation_percent": self.participation_percent,
            "quorum_required": self.quorum_required,
            "quorum_met": self.quorum_met,
            "breakdown": [line.to_dict() for line in self.breakdown],
            "winner_id": self.winner_id,
            "tie_requires_runoff": self.tie_requires_runoff,
            "computed_at": iso(self.computed_at),
            "published_at": iso(self.published_at),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CampaignResults:
        return cls(
            campaign_id=data["campaign_id"],
            total_votes=int(data["total_votes"]),
            eligible_count=int(data["eligible_count"]),
            participation_percent=float(data["participation_percent"]),
            quorum_required=bool(data["quorum_required"]),
            quorum_met=bool(data["quorum_met"]),
            breakdown=tuple(ChoiceResult.from_dict(line) for line in data["breakdown"]),
            winner_id=data.get("winner_id"),
            tie_requires_runoff=bool(data["tie_requires_runoff"]),
            computed_at=require_iso(data["computed_at"]),
            published_at=parse_iso(data.get("published_at")),
        )


@dataclass(frozen=True, eq=True)
class VotingCampaign:
    """A voting campaign and its frozen electorate.

    Instances are immutable; every lifecycle step returns a new instance.
    """

    campaign_id: str
    society_id: str
    title: str
    campaign_type: CampaignType
    status: CampaignStatus
    start_time: datetime
    end_time: datetime
    choices: tuple[Choice, ...]
    eligibility_rule: EligibilityRule
    created_by: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    is_anonymous: bool = False
    requires_quorum: bool = False
    minimum_participation_percent: float = 0.0
    eligible_voter_ids: frozenset[str] = field(default_factory=frozenset)
    total_votes: int = 0
    closed_at: Optional[datetime] = None
    results: Optional[CampaignResults] = None
    cancellation_reason: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.title.strip():
            raise InvalidCampaignError("title is required")
        if self.end_time <= self.start_time:
            raise InvalidCampaignError("end time must be after start time")
        if len(self.choices) < 2:
            raise InvalidCampaignError("at least two candidates or options are required")
        ids = [choice.choice_id for choice in self.choices]
        if len(set(ids)) != len(ids):
            raise InvalidCampaignError("choice ids must be unique")
        if not 0.0 <= self.minimum_participation_percent <= 100.0:
            raise InvalidCampaignError("minimum participation must be between 0 and 100")
        if self.total_votes != sum(choice.vote_count for choice in self.choices):
            raise InvalidCampaignError("total votes must equal the sum of choice votes")

    @property
    def choice_ids(self) -> tuple[str, ...]:
        return tuple(choice.choice_id for choice in self.choices)

    def has_choice(self, choice_id: str) -> bool:
        return choice_id in self.choice_ids

    def is_voter_eligible(self, voter_id: str) -> bool:
        return voter_id in self.eligible_voter_ids

    def _transition(self, target: CampaignStatus, now: datetime, **changes: Any) -> VotingCampaign:
        if not self.status.can_transition_to(target):
            raise InvalidTransitionError(
                "campaign", self.campaign_id, self.status.value, target.value
            )
        return replace(self, status=target, updated_at=now, **changes)

    def scheduled(self, eligible_voter_ids: frozenset[str], now: datetime) -> VotingCampaign:
        """Freeze the resolved electorate and move to SCHEDULED."""
        return self._transition(
            CampaignStatus.SCHEDULED, now, eligible_voter_ids=frozenset(eligible_voter_ids)
        )

    def activated(self, now: datetime) -> VotingCampaign:
        return self._transition(CampaignStatus.ACTIVE, now)

    def closed(self, results: CampaignResults, now: datetime) -> VotingCampaign:
        return self._transition(CampaignStatus.CLOSED, now, closed_at=now, results=results)

    def results_published(self, results: CampaignResults, now: datetime) -> VotingCampaign:
        return self._transition(CampaignStatus.RESULTS_PUBLISHED, now, results=results)

    def cancelled(self, reason: str, now: datetime) -> VotingCampaign:
        return self._transition(CampaignStatus.CANCELLED, now, cancellation_reason=reason)

    def with_tally(self, tally: Mapping[str, int], now: datetime) -> VotingCampaign:
        """Rebuild vote counts from a ballot tally.

        Counts for choices absent from the tally are zero, and
        ``total_votes`` is recomputed from the same numbers.
        """
        choices = tuple(
            replace(choice, vote_count=tally.get(choice.choice_id, 0))
            for choice in self.choices
        )
        return replace(
            self,
            choices=choices,
            total_votes=sum(choice.vote_count for choice in choices),
            updated_at=now,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "society_id": self.society_id,
            "title": self.title,
            "description": self.description,
            "campaign_type": self.campaign_type.value,
            "status": self.status.value,
            "start_time": iso(self.start_time),
            "end_time": iso(self.end_time),
            "is_anonymous": self.is_anonymous,
            "requires_quorum": self.requires_quorum,
            "minimum_participation_percent": self.minimum_participation_percent,
            "choices": [choice.to_dict() for choice in self.choices],
            "eligibility_rule": self.eligibility_rule.to_dict(),
            "eligible_voter_ids": sorted(self.eligible_voter_ids),
            "total_votes": self.total_votes,
            "created_by": self.created_by,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
            "closed_at": iso(self.closed_at),
            "results": self.results.to_dict() if self.results else None,
            "cancellation_reason": self.cancellation_reason,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> VotingCampaign:
        results = data.get("results")
        return cls(
            campaign_id=data["campaign_id"],
            society_id=data["society_id"],
            title=data["title"],
            description=data.get("description", ""),
            campaign_type=CampaignType(data["campaign_type"]),
            status=CampaignStatus(data["status"]),
            start_time=require_iso(data["start_time"]),
            end_time=require_iso(data["end_time"]),
            is_anonymous=bool(data.get("is_anonymous", False)),
            requires_quorum=bool(data.get("requires_quorum", False)),
            minimum_participation_percent=float(data.get("minimum_participation_percent", 0.0)),
            choices=tuple(Choice.from_dict(choice) for choice in data["choices"]),
            eligibility_rule=EligibilityRule.from_dict(data["eligibility_rule"]),
            eligible_voter_ids=frozenset(data.get("eligible_voter_ids", ())),
            total_votes=int(data.get("total_votes", 0)),
            created_by=data["created_by"],
            created_at=require_iso(data["created_at"]),
            updated_at=require_iso(data["updated_at"]),
            closed_at=parse_iso(data.get("closed_at")),
            results=CampaignResults.from_dict(results) if results else None,
            cancellation_reason=data.get("cancellation_reason"),
        )
