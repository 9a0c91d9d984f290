"""Eligibility evaluation.

Resolves an EligibilityRule against a roster snapshot into the concrete
set of voter ids. The evaluation is pure; the caller freezes its result
into the campaign at scheduling time and never recomputes it.
"""

from __future__ import annotations

from society_governance.domain.models.eligibility import (
    EligibilityRule,
    RosterEntry,
    RosterSnapshot,
)


class EligibilityEvaluator:
    """Filters a roster by residency, verification, role and category."""

    def resolve_eligibility(
        self,
        rule: EligibilityRule,
        roster: RosterSnapshot,
    ) -> frozenset[str]:
        """Return ids of every resident the rule admits.

        Residency is measured up to the moment the snapshot was taken.

        Raises:
            InvalidRuleError: If the rule is internally contradictory.
        """
        rule.validate()
        return frozenset(
            entry.resident_id
            for entry in roster.entries
            if self.admits(rule, entry, roster)
        )

    @staticmethod
    def admits(rule: EligibilityRule, entry: RosterEntry, roster: RosterSnapshot) -> bool:
        if entry.residency_months(roster.taken_at) < rule.minimum_residency_months:
            return False
        if rule.requires_verification and not entry.is_verified:
            return False
        if not rule.admits_role(entry.role):
            return False
        return entry.category in rule.included_categories
