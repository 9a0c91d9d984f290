"""Time Authority Protocol - interface for timestamps and timer waits.

All services that need the current time or need to wait for a deadline
inject a TimeAuthorityProtocol implementation instead of calling
datetime.now() or asyncio.sleep() directly.

Benefits:
1. **Consistency**: All services get time from a single authority
2. **Testability**: Tests inject FakeTimeAuthority and advance time by hand
3. **Precision**: Escalation timers wait on the same clock timestamps come from
"""

from abc import ABC, abstractmethod
from datetime import datetime


class TimeAuthorityProtocol(ABC):
    """Abstract interface for time authority.

    Example usage:
        class MyService:
            def __init__(self, time_authority: TimeAuthorityProtocol) -> None:
                self._time = time_authority

            async def wait_for_deadline(self, seconds: float) -> None:
                await self._time.sleep(seconds)  # NOT asyncio.sleep()
    """

    @abstractmethod
    def utcnow(self) -> datetime:
        """Return current UTC time.

        Returns:
            Current timezone-aware datetime in UTC.
        """
        ...

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        """Suspend the calling task for a wall-clock duration.

        Must be cancellable: cancelling the awaiting task raises
        asyncio.CancelledError inside it promptly.

        Args:
            seconds: Duration to wait. Non-positive values yield once.
        """
        ...
