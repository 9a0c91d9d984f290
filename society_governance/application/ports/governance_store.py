"""Governance store port (persistence adapter).

This module defines the key-value / document store contract the engine
persists through. Each entity is a JSON-compatible record keyed by its id
inside a named collection. The engine defines no schema beyond that.

Collections used by the engine:
- campaigns: VotingCampaign records keyed by campaign id
- ballots/<campaign_id>: Ballot records keyed by voter identity (insert-only)
- alerts: EmergencyAlert records keyed by alert id
- succession_plans: SuccessionPlan records keyed by plan id
- policy_proposals: PolicyProposal records keyed by proposal id
- audit: AuditEntry records keyed by "<timestamp>#<sequence>" (insert-only)
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

CAMPAIGNS: str = "campaigns"
ALERTS: str = "alerts"
SUCCESSION_PLANS: str = "succession_plans"
POLICY_PROPOSALS: str = "policy_proposals"
AUDIT: str = "audit"


class GovernanceStoreProtocol(Protocol):
    """Protocol for record persistence.

    Methods:
        put: Create or overwrite a record
        insert: Create a record, failing if the key exists
        get: Read a record
        list: Read every record in a collection, ordered by key
    """

    async def put(self, collection: str, key: str, record: dict[str, Any]) -> None:
        """Create or overwrite a record.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
        """
        ...

    async def insert(self, collection: str, key: str, record: dict[str, Any]) -> None:
        """Create a record atomically, only if the key is absent.

        Raises:
            RecordExistsError: If the key already exists.
            StoreUnavailableError: If the store cannot be reached.
        """
        ...

    async def get(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        """Read a record, or None if absent.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
        """
        ...

    async def list(self, collection: str) -> list[dict[str, Any]]:
        """Read all records of a collection in ascending key order.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
        """
        ...
