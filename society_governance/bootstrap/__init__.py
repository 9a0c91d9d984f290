"""Bootstrap wiring for the governance service.

Builds the GovernanceCoordinator from configuration and adapters, and
configures logging. Only the API entry point and scripts import this
package.
"""

from society_governance.bootstrap.governance import build_governance_coordinator
from society_governance.bootstrap.logging import configure_structlog

__all__: list[str] = ["build_governance_coordinator", "configure_structlog"]
