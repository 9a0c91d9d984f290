"""Notification dispatcher stub.

Records every dispatch request instead of delivering it. Individual
targets or methods can be made to fail so tests can prove escalation
never depends on delivery.
"""

from __future__ import annotations

from dataclasses import dataclass

from society_governance.application.ports.notification_dispatcher import (
    NotificationDispatcherProtocol,
)
from society_governance.domain.models.emergency import ContactMethod


class DeliveryFailedError(Exception):
    """Simulated delivery failure."""


@dataclass(frozen=True)
class DispatchedNotification:
    contact_method: ContactMethod
    target: str
    message: str


class NotificationDispatcherStub(NotificationDispatcherProtocol):
    """Recording dispatcher for testing and development."""

    def __init__(self) -> None:
        self.dispatched: list[DispatchedNotification] = []
        self._failing_targets: set[str] = set()
        self._failing_methods: set[ContactMethod] = set()
        self.fail_all: bool = False

    def clear(self) -> None:
        self.dispatched.clear()
        self._failing_targets.clear()
        self._failing_methods.clear()
        self.fail_all = False

    def fail_target(self, target: str) -> None:
        self._failing_targets.add(target)

    def fail_method(self, method: ContactMethod) -> None:
        self._failing_methods.add(method)

    def sent_to(self, target: str) -> list[DispatchedNotification]:
        return [n for n in self.dispatched if n.target == target]

    async def dispatch(
        self,
        contact_method: ContactMethod,
        target: str,
        message: str,
    ) -> None:
        if (
            self.fail_all
            or target in self._failing_targets
            or contact_method in self._failing_methods
        ):
            raise DeliveryFailedError(f"{contact_method.value} delivery to {target} failed")
        self.dispatched.append(DispatchedNotification(contact_method, target, message))
