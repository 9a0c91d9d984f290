"""Notification dispatcher port.

The escalation scheduler emits delivery requests through this port. Push,
SMS, call, email and WhatsApp delivery are out of scope for the engine;
an adapter owns them.

Delivery is fire-and-forget from the engine's point of view: failures are
logged and audited, but escalation never waits on or stops for them.
"""

from __future__ import annotations

from typing import Protocol

from society_governance.domain.models.emergency import ContactMethod


class NotificationDispatcherProtocol(Protocol):
    """Protocol for notification delivery."""

    async def dispatch(
        self,
        contact_method: ContactMethod,
        target: str,
        message: str,
    ) -> None:
        """Request delivery of a message.

        Args:
            contact_method: Channel to use.
            target: Recipient id on that channel.
            message: Message body.

        Raises:
            Exception: Any delivery failure. Callers treat all failures
                alike and never propagate them.
        """
        ...
