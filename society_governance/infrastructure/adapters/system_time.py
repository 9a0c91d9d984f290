"""Wall-clock time authority.

Timers run on the event loop, detached from any request or UI session,
so escalation keeps moving while nobody is connected.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from society_governance.application.ports.time_authority import TimeAuthorityProtocol


class SystemTimeAuthority(TimeAuthorityProtocol):
    """Production time authority backed by the system clock."""

    def utcnow(self) -> datetime:
        return datetime.now(timezone.utc)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(max(seconds, 0.0))
