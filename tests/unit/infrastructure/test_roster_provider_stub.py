"""Unit tests for RosterProviderStub."""

from __future__ import annotations

import pytest

from society_governance.domain.errors import RosterUnavailableError
from society_governance.infrastructure.stubs import FakeTimeAuthority, RosterProviderStub
from tests.helpers import SOCIETY_ID, make_resident


class TestRosterProviderStub:
    async def test_snapshot_uses_clock(self) -> None:
        clock = FakeTimeAuthority()
        provider = RosterProviderStub(clock=clock.utcnow)
        provider.add_resident(SOCIETY_ID, make_resident("r-1"))
        snapshot = await provider.get_residency_roster(SOCIETY_ID)
        assert snapshot.taken_at == clock.utcnow()
        assert [entry.resident_id for entry in snapshot.entries] == ["r-1"]

    async def test_unknown_society_has_empty_roster(self) -> None:
        snapshot = await RosterProviderStub().get_residency_roster("elsewhere")
        assert snapshot.entries == ()

    async def test_unavailable_society_raises(self) -> None:
        provider = RosterProviderStub()
        provider.set_unavailable(SOCIETY_ID)
        with pytest.raises(RosterUnavailableError):
            await provider.get_residency_roster(SOCIETY_ID)
        provider.set_unavailable(SOCIETY_ID, False)
        await provider.get_residency_roster(SOCIETY_ID)
        assert provider.fetch_count == 2
