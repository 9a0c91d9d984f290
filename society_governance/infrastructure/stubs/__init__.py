"""Infrastructure stubs for development and testing.

Available stubs:
- GovernanceStoreStub: In-memory record store with simulated outages
- RosterProviderStub: Configurable residency rosters with failure mode
- NotificationDispatcherStub: Records dispatches, can fail per target/method
- FakeTimeAuthority: Frozen clock with controllable timer wake-ups

WARNING: These stubs are NOT for production use.
"""

from society_governance.infrastructure.stubs.fake_time_authority import FakeTimeAuthority
from society_governance.infrastructure.stubs.governance_store_stub import (
    GovernanceStoreStub,
)
from society_governance.infrastructure.stubs.notification_dispatcher_stub import (
    DeliveryFailedError,
    DispatchedNotification,
    NotificationDispatcherStub,
)
from society_governance.infrastructure.stubs.roster_provider_stub import (
    RosterProviderStub,
)

__all__: list[str] = [
    "DeliveryFailedError",
    "DispatchedNotification",
    "FakeTimeAuthority",
    "GovernanceStoreStub",
    "NotificationDispatcherStub",
    "RosterProviderStub",
]
