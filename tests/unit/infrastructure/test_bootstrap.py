"""Unit tests for bootstrap wiring."""

from __future__ import annotations

from society_governance.bootstrap.governance import build_governance_coordinator
from society_governance.config.governance_config import TEST_GOVERNANCE_CONFIG
from society_governance.infrastructure.adapters.system_time import SystemTimeAuthority
from society_governance.infrastructure.stubs import FakeTimeAuthority


def test_builds_with_explicit_collaborators(store, roster, dispatcher, fake_time) -> None:
    coordinator = build_governance_coordinator(
        config=TEST_GOVERNANCE_CONFIG,
        store=store,
        roster_provider=roster,
        dispatcher=dispatcher,
        time_authority=fake_time,
    )
    assert coordinator.config is TEST_GOVERNANCE_CONFIG
    assert coordinator.time_authority is fake_time


def test_defaults_to_stubs_and_system_clock() -> None:
    coordinator = build_governance_coordinator(config=TEST_GOVERNANCE_CONFIG)
    assert isinstance(coordinator.time_authority, SystemTimeAuthority)


async def test_default_stubs_run_a_campaign() -> None:
    clock = FakeTimeAuthority()
    coordinator = build_governance_coordinator(
        config=TEST_GOVERNANCE_CONFIG, time_authority=clock
    )
    await coordinator.start()
    try:
        assert await coordinator.list_campaigns() == []
    finally:
        await coordinator.shutdown()
