"""Per-entity mutual exclusion.

Mutations of one campaign, alert, plan or proposal are serialized on an
asyncio.Lock keyed by entity kind and id. Different entities never share
a lock and proceed in parallel.

A lock lives only while some task holds or waits on it, so the registry
stays as small as the number of entities being mutated right now.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field


@dataclass
class _Slot:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class EntityLockRegistry:
    """Hands out one asyncio.Lock per entity key."""

    def __init__(self) -> None:
        self._slots: dict[str, _Slot] = {}

    @asynccontextmanager
    async def lock_for(self, kind: str, entity_id: str) -> AsyncIterator[None]:
        """Hold the entity's lock for the duration of the block."""
        key = f"{kind}:{entity_id}"
        slot = self._slots.get(key)
        if slot is None:
            slot = self._slots[key] = _Slot()
        slot.users += 1
        try:
            async with slot.lock:
                yield
        finally:
            slot.users -= 1
            if slot.users == 0:
                del self._slots[key]

    def is_locked(self, kind: str, entity_id: str) -> bool:
        slot = self._slots.get(f"{kind}:{entity_id}")
        return slot is not None and slot.lock.locked()

    def __len__(self) -> int:
        return len(self._slots)
