"""Bootstrap wiring for the governance engine.

Loads configuration from the environment (and a ``.env`` file when one
is present) and composes a GovernanceCoordinator. Any adapter not passed
in falls back to the in-memory stub, which is what local development and
the test suite run against; the clock falls back to SystemTimeAuthority.
"""

from __future__ import annotations

from typing import Optional

import structlog
from dotenv import load_dotenv

from society_governance.application.ports.governance_store import GovernanceStoreProtocol
from society_governance.application.ports.notification_dispatcher import (
    NotificationDispatcherProtocol,
)
from society_governance.application.ports.roster_provider import RosterProviderProtocol
from society_governance.application.ports.time_authority import TimeAuthorityProtocol
from society_governance.application.services.governance_coordinator import (
    GovernanceCoordinator,
)
from society_governance.config.governance_config import GovernanceConfig
from society_governance.infrastructure.adapters.system_time import SystemTimeAuthority
from society_governance.infrastructure.stubs.governance_store_stub import GovernanceStoreStub
from society_governance.infrastructure.stubs.notification_dispatcher_stub import (
    NotificationDispatcherStub,
)
from society_governance.infrastructure.stubs.roster_provider_stub import RosterProviderStub

logger = structlog.get_logger()


def load_governance_config() -> GovernanceConfig:
    """Read GOVERNANCE_* settings, loading ``.env`` without overriding the process env."""
    load_dotenv(override=False)
    return GovernanceConfig.from_environment()


def build_governance_coordinator(
    config: Optional[GovernanceConfig] = None,
    store: Optional[GovernanceStoreProtocol] = None,
    roster_provider: Optional[RosterProviderProtocol] = None,
    dispatcher: Optional[NotificationDispatcherProtocol] = None,
    time_authority: Optional[TimeAuthorityProtocol] = None,
) -> GovernanceCoordinator:
    """Compose a coordinator, defaulting every missing collaborator.

    Args:
        config: Engine configuration; read from the environment when omitted.
        store: Persistence adapter.
        roster_provider: Residency roster source.
        dispatcher: Notification delivery adapter.
        time_authority: Clock and timer source.

    Returns:
        A coordinator that has not been started yet.
    """
    if config is None:
        config = load_governance_config()
    if time_authority is None:
        time_authority = SystemTimeAuthority()
    stubbed = [
        name
        for name, adapter in (
            ("store", store),
            ("roster_provider", roster_provider),
            ("dispatcher", dispatcher),
        )
        if adapter is None
    ]
    if stubbed:
        logger.warning(
            "governance_using_stub_adapters",
            adapters=stubbed,
            environment=config.environment,
        )

    if store is None:
        store = GovernanceStoreStub()
    if roster_provider is None:
        roster_provider = RosterProviderStub(clock=time_authority.utcnow)
    if dispatcher is None:
        dispatcher = NotificationDispatcherStub()

    return GovernanceCoordinator(
        store=store,
        roster_provider=roster_provider,
        dispatcher=dispatcher,
        time_authority=time_authority,
        config=config,
    )


__all__ = ["build_governance_coordinator", "load_governance_config"]
