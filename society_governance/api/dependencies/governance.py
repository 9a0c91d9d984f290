"""Governance API dependencies.

FastAPI dependency injection for the governance coordinator and for
role-based permission checks. The caller's role arrives in the
X-Governance-Role header; authentication happens upstream, this layer
only enforces what the role may do.
"""

from typing import Awaitable, Callable

from fastapi import Depends, Header

from society_governance.application.services.governance_coordinator import (
    GovernanceCoordinator,
)
from society_governance.domain.models.permission import GovernanceAction, GovernanceRole

ROLE_HEADER = "X-Governance-Role"

# Singleton instance (initialized at startup)
_governance_coordinator: GovernanceCoordinator | None = None


def get_governance_coordinator() -> GovernanceCoordinator:
    """Get the governance coordinator singleton.

    Returns:
        GovernanceCoordinator singleton instance.

    Raises:
        RuntimeError: If the coordinator was not initialized (startup error).
    """
    if _governance_coordinator is None:
        raise RuntimeError(
            "GovernanceCoordinator not initialized. "
            "Call set_governance_coordinator() during startup."
        )
    return _governance_coordinator


def set_governance_coordinator(coordinator: GovernanceCoordinator | None) -> None:
    """Set the governance coordinator singleton.

    Called during application startup to inject the coordinator, and
    with None on shutdown. Also used in tests to inject a coordinator
    built over stubs.
    """
    global _governance_coordinator
    _governance_coordinator = coordinator


def require_permission(action: GovernanceAction) -> Callable[..., Awaitable[str]]:
    """Build a dependency that rejects callers whose role lacks ``action``.

    A request without the role header is treated as a plain resident.
    The dependency resolves to the caller's role name.
    """

    async def _check(
        x_governance_role: str = Header(
            default=GovernanceRole.RESIDENT.value, alias=ROLE_HEADER
        ),
        coordinator: GovernanceCoordinator = Depends(get_governance_coordinator),
    ) -> str:
        coordinator.authorize(x_governance_role, action)
        return x_governance_role

    return _check


__all__ = [
    "ROLE_HEADER",
    "get_governance_coordinator",
    "require_permission",
    "set_governance_coordinator",
]
