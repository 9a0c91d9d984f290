"""Eligibility rule and residency roster models.

An EligibilityRule is a declarative filter over a residency roster. It is
evaluated once, when a campaign is scheduled, and the resulting voter set
is frozen into the campaign. Later roster changes never alter an
electorate that has already been resolved.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from society_governance.domain.errors.campaign import InvalidRuleError
from society_governance.domain.models._records import ensure_utc, iso, require_iso


class EligibilityRole(str, Enum):
    """Organizational role held by a resident."""

    RESIDENT = "resident"
    COMMITTEE_MEMBER = "committee_member"
    ADMIN = "admin"
    STAFF = "staff"
    GUEST = "guest"


class OccupantCategory(str, Enum):
    """How a resident occupies their unit."""

    OWNER = "owner"
    TENANT = "tenant"
    FAMILY_MEMBER = "family_member"


ALL_OCCUPANT_CATEGORIES: frozenset[OccupantCategory] = frozenset(OccupantCategory)


def _parse_roles(values: Iterable[str]) -> frozenset[EligibilityRole]:
    roles: set[EligibilityRole] = set()
    for value in values:
        try:
            roles.add(EligibilityRole(value))
        except ValueError:
            raise InvalidRuleError(f"unknown role '{value}'") from None
    return frozenset(roles)


def _parse_categories(values: Iterable[str]) -> frozenset[OccupantCategory]:
    categories: set[OccupantCategory] = set()
    for value in values:
        try:
            categories.add(OccupantCategory(value))
        except ValueError:
            raise InvalidRuleError(f"unknown occupant category '{value}'") from None
    return frozenset(categories)


@dataclass(frozen=True, eq=True)
class EligibilityRule:
    """Declarative voter filter evaluated against a roster snapshot.

    Attributes:
        minimum_residency_months: Whole months of residency required.
        requires_verification: Only verified residents qualify.
        included_roles: Roles that qualify. Empty means every role.
        excluded_roles: Roles that never qualify.
        included_categories: Occupant categories that qualify.
    """

    minimum_residency_months: int = 0
    requires_verification: bool = False
    included_roles: frozenset[EligibilityRole] = field(default_factory=frozenset)
    excluded_roles: frozenset[EligibilityRole] = field(default_factory=frozenset)
    included_categories: frozenset[OccupantCategory] = ALL_OCCUPANT_CATEGORIES

    def validate(self) -> None:
        """Reject rules that cannot possibly be satisfied.

        Raises:
            InvalidRuleError: On negative residency, no categories, or
                role lists that contradict each other.
        """
        if self.minimum_residency_months < 0:
            raise InvalidRuleError("minimum residency cannot be negative")
        if not self.included_categories:
            raise InvalidRuleError("rule excludes all occupant categories")
        overlap = self.included_roles & self.excluded_roles
        if overlap:
            names = ", ".join(sorted(role.value for role in overlap))
            raise InvalidRuleError(f"roles both included and excluded: {names}")
        if self.excluded_roles >= frozenset(EligibilityRole):
            raise InvalidRuleError("rule excludes every role")

    def admits_role(self, role: EligibilityRole) -> bool:
        if role in self.excluded_roles:
            return False
        return not self.included_roles or role in self.included_roles

    def to_dict(self) -> dict[str, Any]:
        return {
            "minimum_residency_months": self.minimum_residency_months,
            "requires_verification": self.requires_verification,
            "included_roles": sorted(role.value for role in self.included_roles),
            "excluded_roles": sorted(role.value for role in self.excluded_roles),
            "included_categories": sorted(c.value for c in self.included_categories),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EligibilityRule:
        """Build a rule from untyped input.

        Raises:
            InvalidRuleError: If a role or category name is unknown.
        """
        categories = data.get("included_categories")
        return cls(
            minimum_residency_months=int(data.get("minimum_residency_months", 0)),
            requires_verification=bool(data.get("requires_verification", False)),
            included_roles=_parse_roles(data.get("included_roles", ())),
            excluded_roles=_parse_roles(data.get("excluded_roles", ())),
            included_categories=(
                ALL_OCCUPANT_CATEGORIES
                if categories is None
                else _parse_categories(categories)
            ),
        )


@dataclass(frozen=True, eq=True)
class RosterEntry:
    """One resident as reported by the roster provider."""

    resident_id: str
    role: EligibilityRole
    category: OccupantCategory
    residency_start: datetime
    is_verified: bool = False

    def residency_months(self, as_of: datetime) -> int:
        """Whole calendar months of residency as of a point in time."""
        start = ensure_utc(self.residency_start)
        end = ensure_utc(as_of)
        if end < start:
            return 0
        months = (end.year - start.year) * 12 + (end.month - start.month)
        if end.day < start.day:
            months -= 1
        return max(months, 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "resident_id": self.resident_id,
            "role": self.role.value,
            "category": self.category.value,
            "residency_start": iso(self.residency_start),
            "is_verified": self.is_verified,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RosterEntry:
        return cls(
            resident_id=data["resident_id"],
            role=EligibilityRole(data["role"]),
            category=OccupantCategory(data["category"]),
            residency_start=require_iso(data["residency_start"]),
            is_verified=bool(data.get("is_verified", False)),
        )


@dataclass(frozen=True)
class RosterSnapshot:
    """Read-only view of a society's residents at one instant."""

    society_id: str
    taken_at: datetime
    entries: tuple[RosterEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)
