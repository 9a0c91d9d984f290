"""
Pytest configuration and shared fixtures for governance tests.

Testing Standards:
- All async tests run under pytest-asyncio (auto mode enabled in pyproject.toml)
- Time is always a FakeTimeAuthority; tests move it explicitly
- Use AsyncMock for async function mocking
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

from collections.abc import AsyncIterator

import pytest

from society_governance.application.services.governance_coordinator import (
    GovernanceCoordinator,
)
from society_governance.config.governance_config import TEST_GOVERNANCE_CONFIG
from society_governance.infrastructure.stubs import (
    FakeTimeAuthority,
    GovernanceStoreStub,
    NotificationDispatcherStub,
    RosterProviderStub,
)
from tests.helpers import SOCIETY_ID, make_residents


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from society_governance import __version__

    return __version__


@pytest.fixture
def fake_time() -> FakeTimeAuthority:
    return FakeTimeAuthority()


@pytest.fixture
def store() -> GovernanceStoreStub:
    return GovernanceStoreStub()


@pytest.fixture
def dispatcher() -> NotificationDispatcherStub:
    return NotificationDispatcherStub()


@pytest.fixture
def roster(fake_time: FakeTimeAuthority) -> RosterProviderStub:
    """Roster with ten verified long-standing owners in the default society."""
    provider = RosterProviderStub(clock=fake_time.utcnow)
    provider.set_roster(SOCIETY_ID, make_residents(10))
    return provider


@pytest.fixture
async def coordinator(
    store: GovernanceStoreStub,
    roster: RosterProviderStub,
    dispatcher: NotificationDispatcherStub,
    fake_time: FakeTimeAuthority,
) -> AsyncIterator[GovernanceCoordinator]:
    engine = GovernanceCoordinator(
        store=store,
        roster_provider=roster,
        dispatcher=dispatcher,
        time_authority=fake_time,
        config=TEST_GOVERNANCE_CONFIG,
    )
    await engine.start()
    yield engine
    await engine.shutdown()
