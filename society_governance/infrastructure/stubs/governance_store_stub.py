"""In-memory governance store stub.

Implements GovernanceStoreProtocol with nested dicts. Each operation
completes without suspending, so insert-if-absent is atomic on a single
event loop.

The stub can simulate an outage: while unavailable every operation raises
StoreUnavailableError. Tests use this to drive the audit log's buffering
and retry path.
"""

from __future__ import annotations

import copy
from typing import Any, Optional

from society_governance.application.ports.governance_store import GovernanceStoreProtocol
from society_governance.domain.errors.store import (
    RecordExistsError,
    StoreUnavailableError,
)


class GovernanceStoreStub(GovernanceStoreProtocol):
    """In-memory store for testing and development.

    Records are deep-copied on the way in and out, so callers can never
    mutate stored state through a returned dict.
    """

    def __init__(self) -> None:
        """Initialize with empty storage."""
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._unavailable: set[str] = set()
        self.write_count: int = 0

    def clear(self) -> None:
        """Clear all stored data for test cleanup."""
        self._collections.clear()
        self._unavailable.clear()
        self.write_count = 0

    def set_unavailable(self, unavailable: bool = True, collection: Optional[str] = None) -> None:
        """Simulate an outage of the whole store or of one collection.

        Args:
            unavailable: True to fail operations, False to restore.
            collection: Limit the outage to one collection; None means all.
        """
        name = collection or "*"
        if unavailable:
            self._unavailable.add(name)
        else:
            self._unavailable.discard(name)

    def _check(self, operation: str, collection: str) -> None:
        if "*" in self._unavailable or collection in self._unavailable:
            raise StoreUnavailableError(f"{operation}:{collection}")

    def _bucket(self, collection: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    async def put(self, collection: str, key: str, record: dict[str, Any]) -> None:
        self._check("put", collection)
        self._bucket(collection)[key] = copy.deepcopy(record)
        self.write_count += 1

    async def insert(self, collection: str, key: str, record: dict[str, Any]) -> None:
        self._check("insert", collection)
        bucket = self._bucket(collection)
        if key in bucket:
            raise RecordExistsError(collection, key)
        bucket[key] = copy.deepcopy(record)
        self.write_count += 1

    async def get(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        self._check("get", collection)
        record = self._bucket(collection).get(key)
        return copy.deepcopy(record) if record is not None else None

    async def list(self, collection: str) -> list[dict[str, Any]]:
        self._check("list", collection)
        bucket = self._bucket(collection)
        return [copy.deepcopy(bucket[key]) for key in sorted(bucket)]

    def count(self, collection: str) -> int:
        """Number of records in a collection (test helper)."""
        return len(self._collections.get(collection, {}))
