"""API dependencies for dependency injection."""

from society_governance.api.dependencies.governance import (
    get_governance_coordinator,
    require_permission,
    set_governance_coordinator,
)

__all__: list[str] = [
    "get_governance_coordinator",
    "require_permission",
    "set_governance_coordinator",
]
