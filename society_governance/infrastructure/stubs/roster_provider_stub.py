"""Roster provider stub.

Serves configured roster entries per society. Can be switched into a
failing mode to exercise the fail-closed scheduling path.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Callable, Optional

from society_governance.application.ports.roster_provider import RosterProviderProtocol
from society_governance.domain.errors.roster import RosterUnavailableError
from society_governance.domain.models.eligibility import RosterEntry, RosterSnapshot


class RosterProviderStub(RosterProviderProtocol):
    """In-memory roster provider for testing and development."""

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize with no residents.

        Args:
            clock: Source of snapshot timestamps. Defaults to UTC now.
        """
        self._rosters: dict[str, tuple[RosterEntry, ...]] = {}
        self._failing: set[str] = set()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.fetch_count: int = 0

    def set_roster(self, society_id: str, entries: Iterable[RosterEntry]) -> None:
        self._rosters[society_id] = tuple(entries)

    def add_resident(self, society_id: str, entry: RosterEntry) -> None:
        self._rosters[society_id] = self._rosters.get(society_id, ()) + (entry,)

    def set_unavailable(self, society_id: str, unavailable: bool = True) -> None:
        if unavailable:
            self._failing.add(society_id)
        else:
            self._failing.discard(society_id)

    async def get_residency_roster(self, society_id: str) -> RosterSnapshot:
        self.fetch_count += 1
        if society_id in self._failing:
            raise RosterUnavailableError(society_id, "roster service unreachable")
        return RosterSnapshot(
            society_id=society_id,
            taken_at=self._clock(),
            entries=self._rosters.get(society_id, ()),
        )
