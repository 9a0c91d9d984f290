"""Roster provider port.

This module defines the contract for fetching a society's residency
roster. The roster is consumed read-only when a campaign is scheduled.
"""

from __future__ import annotations

from typing import Protocol

from society_governance.domain.models.eligibility import RosterSnapshot


class RosterProviderProtocol(Protocol):
    """Protocol for residency roster lookups.

    Implementations may call a membership service, read a directory export,
    or serve fixtures in tests.
    """

    async def get_residency_roster(self, society_id: str) -> RosterSnapshot:
        """Return the current roster snapshot for a society.

        Args:
            society_id: Society whose residents are requested.

        Returns:
            A complete RosterSnapshot. Partial rosters must not be returned.

        Raises:
            RosterUnavailableError: If the roster cannot be produced.
        """
        ...
