"""Append-only audit log.

Every governance action lands here as an AuditEntry. ``append`` never
loses an entry: when the store is unavailable the entry is held in an
in-memory backlog, and a background task retries the backlog on a fixed
delay until the store accepts it. Later appends flush the backlog first
so stored order follows append order.

Entries are keyed by ``(timestamp, sequence_number)``; the sequence
number comes from a process-wide counter, so two entries with the same
timestamp still sort deterministically.
"""

from __future__ import annotations

import asyncio
import itertools
from collections import deque
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Optional

from society_governance.application.ports.governance_store import (
    AUDIT,
    GovernanceStoreProtocol,
)
from society_governance.application.ports.time_authority import TimeAuthorityProtocol
from society_governance.application.services.base import LoggingMixin
from society_governance.domain.errors.store import RecordExistsError, StoreUnavailableError
from society_governance.domain.models.audit import (
    AuditAction,
    AuditEntry,
    AuditFilter,
    ResourceType,
)


class AuditLog(LoggingMixin):
    """Append-only log of governance actions with a lossless write path."""

    def __init__(
        self,
        store: GovernanceStoreProtocol,
        time_authority: TimeAuthorityProtocol,
        retry_seconds: float = 5.0,
        buffer_limit: int = 10_000,
    ) -> None:
        """Initialize the audit log.

        Args:
            store: Persistence adapter; entries go to the ``audit`` collection.
            time_authority: Source of entry timestamps and retry delays.
            retry_seconds: Delay between backlog flush attempts.
            buffer_limit: Backlog size above which a warning is logged.
        """
        self._store = store
        self._time = time_authority
        self._retry_seconds = retry_seconds
        self._buffer_limit = buffer_limit
        self._sequence = itertools.count(1)
        self._pending: deque[AuditEntry] = deque()
        self._flush_lock = asyncio.Lock()
        self._retry_task: Optional[asyncio.Task[None]] = None
        self._init_logger()

    @property
    def pending_count(self) -> int:
        """Entries waiting for the store to come back."""
        return len(self._pending)

    def next_sequence(self) -> int:
        return next(self._sequence)

    async def record(
        self,
        actor_id: str,
        action: AuditAction,
        resource_type: ResourceType,
        resource_id: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> AuditEntry:
        """Build an entry stamped with the current time and append it."""
        entry = AuditEntry(
            timestamp=self._time.utcnow(),
            sequence_number=self.next_sequence(),
            actor_id=actor_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=dict(details or {}),
        )
        await self.append(entry)
        return entry

    async def append(self, entry: AuditEntry) -> None:
        """Append an entry. Never raises for store outages.

        Args:
            entry: The entry to persist.
        """
        if self._pending:
            await self.flush()
        if self._pending:
            self._buffer(entry)
            return
        try:
            await self._write(entry)
        except StoreUnavailableError:
            self._buffer(entry)

    async def flush(self) -> bool:
        """Write buffered entries in order until the backlog is empty.

        Returns:
            True if the backlog is empty afterwards.
        """
        async with self._flush_lock:
            while self._pending:
                try:
                    await self._write(self._pending[0])
                except StoreUnavailableError:
                    return False
                self._pending.popleft()
            return True

    async def query(self, audit_filter: Optional[AuditFilter] = None) -> list[AuditEntry]:
        """Return matching entries ordered by timestamp, then sequence.

        Buffered entries not yet persisted are included.

        Raises:
            StoreUnavailableError: If stored entries cannot be read.
        """
        audit_filter = audit_filter or AuditFilter()
        stored = [AuditEntry.from_dict(record) for record in await self._store.list(AUDIT)]
        seen = {(e.timestamp, e.sequence_number) for e in stored}
        entries = stored + [
            e for e in self._pending if (e.timestamp, e.sequence_number) not in seen
        ]
        return sorted(
            (e for e in entries if audit_filter.matches(e)),
            key=lambda e: (e.timestamp, e.sequence_number),
        )

    async def close(self) -> None:
        """Make a last flush attempt and stop the retry task."""
        await self.flush()
        task, self._retry_task = self._retry_task, None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        if self._pending:
            self._log_operation("close").error(
                "audit_backlog_unflushed", pending=len(self._pending)
            )

    async def _write(self, entry: AuditEntry) -> None:
        try:
            await self._store.insert(AUDIT, entry.record_key, entry.to_dict())
        except RecordExistsError:
            # Key collision with an entry from an earlier process; re-sequence.
            fresh = replace(entry, sequence_number=self.next_sequence())
            self._log_operation("append", resource_id=entry.resource_id).warning(
                "audit_key_collision",
                key=entry.record_key,
                new_key=fresh.record_key,
            )
            await self._store.insert(AUDIT, fresh.record_key, fresh.to_dict())

    def _buffer(self, entry: AuditEntry) -> None:
        self._pending.append(entry)
        log = self._log_operation(
            "append",
            action=entry.action.value,
            resource_id=entry.resource_id,
        )
        log.warning("audit_entry_buffered", pending=len(self._pending))
        if len(self._pending) > self._buffer_limit:
            log.error(
                "audit_backlog_over_limit",
                pending=len(self._pending),
                limit=self._buffer_limit,
            )
        self._ensure_retry()

    def _ensure_retry(self) -> None:
        if self._retry_task is None or self._retry_task.done():
            self._retry_task = asyncio.create_task(
                self._retry_loop(), name="audit-log-retry"
            )

    async def _retry_loop(self) -> None:
        log = self._log_operation("retry")
        while self._pending:
            await self._time.sleep(self._retry_seconds)
            if await self.flush():
                log.info("audit_backlog_flushed")
