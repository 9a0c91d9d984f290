"""Unit tests for eligibility evaluation against roster snapshots."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from society_governance.application.services.eligibility_service import EligibilityEvaluator
from society_governance.domain.errors import InvalidRuleError
from society_governance.domain.models.eligibility import (
    EligibilityRole,
    EligibilityRule,
    OccupantCategory,
    RosterSnapshot,
)
from tests.helpers import make_resident

TAKEN_AT = datetime(2026, 6, 15, tzinfo=timezone.utc)


@pytest.fixture
def roster() -> RosterSnapshot:
    return RosterSnapshot(
        society_id="society-1",
        taken_at=TAKEN_AT,
        entries=(
            make_resident("owner", residency_start=datetime(2025, 1, 1, tzinfo=timezone.utc)),
            make_resident(
                "new-tenant",
                category=OccupantCategory.TENANT,
                residency_start=datetime(2026, 5, 1, tzinfo=timezone.utc),
            ),
            make_resident("unverified", is_verified=False),
            make_resident("guard", role=EligibilityRole.STAFF),
        ),
    )


class TestResolveEligibility:
    def test_default_rule_admits_everyone(self, roster: RosterSnapshot) -> None:
        result = EligibilityEvaluator().resolve_eligibility(EligibilityRule(), roster)
        assert result == {"owner", "new-tenant", "unverified", "guard"}

    def test_minimum_residency(self, roster: RosterSnapshot) -> None:
        rule = EligibilityRule(minimum_residency_months=6)
        result = EligibilityEvaluator().resolve_eligibility(rule, roster)
        assert "new-tenant" not in result
        assert "owner" in result

    def test_verification_required(self, roster: RosterSnapshot) -> None:
        rule = EligibilityRule(requires_verification=True)
        assert "unverified" not in EligibilityEvaluator().resolve_eligibility(rule, roster)

    def test_role_and_category_filters(self, roster: RosterSnapshot) -> None:
        rule = EligibilityRule(
            excluded_roles=frozenset({EligibilityRole.STAFF}),
            included_categories=frozenset({OccupantCategory.OWNER}),
        )
        result = EligibilityEvaluator().resolve_eligibility(rule, roster)
        assert result == {"owner", "unverified"}

    def test_invalid_rule_raises(self, roster: RosterSnapshot) -> None:
        with pytest.raises(InvalidRuleError):
            EligibilityEvaluator().resolve_eligibility(
                EligibilityRule(minimum_residency_months=-3), roster
            )

    def test_empty_roster_gives_empty_set(self) -> None:
        snapshot = RosterSnapshot(society_id="society-1", taken_at=TAKEN_AT)
        assert EligibilityEvaluator().resolve_eligibility(EligibilityRule(), snapshot) == set()
