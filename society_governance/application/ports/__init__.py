"""Application ports - Abstract interfaces for infrastructure adapters.

This module defines the contracts that infrastructure adapters must implement.
Ports enable dependency inversion and make the application layer testable.

Available ports:
- GovernanceStoreProtocol: Record persistence (key-value / document store)
- RosterProviderProtocol: Residency roster snapshots
- NotificationDispatcherProtocol: Fire-and-forget notification delivery
- TimeAuthorityProtocol: Current time and cancellable timer waits
"""

from society_governance.application.ports.governance_store import GovernanceStoreProtocol
from society_governance.application.ports.notification_dispatcher import (
    NotificationDispatcherProtocol,
)
from society_governance.application.ports.roster_provider import RosterProviderProtocol
from society_governance.application.ports.time_authority import TimeAuthorityProtocol

__all__: list[str] = [
    "GovernanceStoreProtocol",
    "NotificationDispatcherProtocol",
    "RosterProviderProtocol",
    "TimeAuthorityProtocol",
]
