"""Ballot model.

A Ballot is a single recorded vote. It is created once and never mutated
or deleted. ``voter_identity`` is the raw voter id for identified
campaigns, or a keyed one-way token for anonymous campaigns.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from society_governance.domain.models._records import iso, require_iso


@dataclass(frozen=True, eq=True)
class Ballot:
    """An immutable vote.

    Attributes:
        campaign_id: Campaign the ballot belongs to.
        voter_identity: Voter id, or derived token when anonymous.
        choice_id: Chosen candidate or option.
        cast_at: When the ballot was accepted (UTC).
        is_anonymous: Whether voter_identity is a derived token.
    """

    campaign_id: str
    voter_identity: str
    choice_id: str
    cast_at: datetime
    is_anonymous: bool = False

    @property
    def collection(self) -> str:
        """Store collection; one per campaign, keyed by voter identity."""
        return ballot_collection(self.campaign_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "voter_identity": self.voter_identity,
            "choice_id": self.choice_id,
            "cast_at": iso(self.cast_at),
            "is_anonymous": self.is_anonymous,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Ballot:
        return cls(
            campaign_id=data["campaign_id"],
            voter_identity=data["voter_identity"],
            choice_id=data["choice_id"],
            cast_at=require_iso(data["cast_at"]),
            is_anonymous=bool(data.get("is_anonymous", False)),
        )


def ballot_collection(campaign_id: str) -> str:
    return f"ballots/{campaign_id}"
