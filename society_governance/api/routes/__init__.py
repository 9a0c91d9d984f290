"""
API routes for the governance service.

Available routers:
- governance: Campaigns, emergencies, succession, policies, dashboard, audit
"""

from society_governance.api.routes.governance import (
    governance_error_handler,
    router as governance_router,
)

__all__: list[str] = ["governance_error_handler", "governance_router"]
