"""Persistence adapter errors."""

from __future__ import annotations

from typing import Optional

from society_governance.domain.exceptions import GovernanceError, GovernanceErrorKind


class StoreUnavailableError(GovernanceError):
    """Raised by a governance store that cannot be reached.

    Attributes:
        operation: The store operation that failed.
    """

    kind = GovernanceErrorKind.STORE_UNAVAILABLE

    def __init__(self, operation: str, message: Optional[str] = None) -> None:
        msg = message or f"Governance store unavailable during {operation}"
        super().__init__(msg)
        self.operation = operation


class RecordExistsError(GovernanceError):
    """Raised when an insert-only write targets an existing key.

    Attributes:
        collection: Record collection name.
        key: The conflicting key.
    """

    kind = GovernanceErrorKind.RECORD_EXISTS

    def __init__(self, collection: str, key: str, message: Optional[str] = None) -> None:
        msg = message or f"Record already exists in {collection}: {key}"
        super().__init__(msg)
        self.collection = collection
        self.key = key
