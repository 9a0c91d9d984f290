"""FakeTimeAuthority - Controllable time authority for deterministic tests.

Time never moves unless a test moves it. Coroutines that call ``sleep``
park on a future that resolves once ``advance`` or ``set_time`` carries
the clock past their deadline, so escalation timers can be driven
minute by minute without touching the wall clock.

Usage:
    >>> fake_time = FakeTimeAuthority(frozen_at=datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc))
    >>> scheduler = EscalationScheduler(..., time_authority=fake_time)
    >>> await scheduler.declare_emergency(spec)
    >>> fake_time.advance(minutes=10)
    >>> await settle()  # let woken timer tasks run

Advancing wakes only the sleepers that were already parked. A timer armed
by a woken task starts counting from the new time, so tests that cross
several levels advance one level at a time.
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from society_governance.application.ports.time_authority import TimeAuthorityProtocol

DEFAULT_FROZEN_AT = datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


@dataclass(order=True)
class _Sleeper:
    deadline: datetime
    order: int
    future: asyncio.Future[None] = field(compare=False)


class FakeTimeAuthority(TimeAuthorityProtocol):
    """Controllable time authority for deterministic tests.

    Attributes:
        _current_time: The controlled current time.
        _sleepers: Parked ``sleep`` calls, ordered by deadline.
    """

    def __init__(self, frozen_at: Optional[datetime] = None) -> None:
        self._current_time = frozen_at or DEFAULT_FROZEN_AT
        self._sleepers: list[_Sleeper] = []
        self._counter = itertools.count()

    def utcnow(self) -> datetime:
        return self._current_time

    async def sleep(self, seconds: float) -> None:
        if seconds <= 0:
            await asyncio.sleep(0)
            return
        loop = asyncio.get_running_loop()
        sleeper = _Sleeper(
            deadline=self._current_time + timedelta(seconds=seconds),
            order=next(self._counter),
            future=loop.create_future(),
        )
        self._sleepers.append(sleeper)
        self._sleepers.sort()
        try:
            await sleeper.future
        finally:
            if sleeper in self._sleepers:
                self._sleepers.remove(sleeper)

    def advance(
        self,
        delta: Optional[timedelta] = None,
        *,
        seconds: float = 0,
        minutes: float = 0,
    ) -> None:
        """Move time forward and wake every sleeper now due.

        Args:
            delta: Amount to advance as a timedelta.
            seconds: Additional seconds to advance.
            minutes: Additional minutes to advance.
        """
        step = (delta or timedelta()) + timedelta(seconds=seconds, minutes=minutes)
        if step < timedelta():
            raise ValueError("time cannot move backwards")
        self._current_time += step
        self._wake_due()

    def set_time(self, new_time: datetime) -> None:
        """Jump to an absolute time and wake every sleeper now due."""
        self._current_time = new_time
        self._wake_due()

    @property
    def pending_sleepers(self) -> int:
        return sum(1 for sleeper in self._sleepers if not sleeper.future.done())

    def next_deadline(self) -> Optional[datetime]:
        pending = [s.deadline for s in self._sleepers if not s.future.done()]
        return min(pending) if pending else None

    def _wake_due(self) -> None:
        for sleeper in list(self._sleepers):
            if sleeper.deadline <= self._current_time and not sleeper.future.done():
                sleeper.future.set_result(None)
