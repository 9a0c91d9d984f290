"""Unit tests for NotificationDispatcherStub."""

from __future__ import annotations

import pytest

from society_governance.domain.models.emergency import ContactMethod
from society_governance.infrastructure.stubs import (
    DeliveryFailedError,
    NotificationDispatcherStub,
)


class TestNotificationDispatcherStub:
    async def test_records_dispatches(self) -> None:
        dispatcher = NotificationDispatcherStub()
        await dispatcher.dispatch(ContactMethod.SMS, "guard-1", "Leak")
        assert len(dispatcher.sent_to("guard-1")) == 1
        assert dispatcher.dispatched[0].contact_method is ContactMethod.SMS

    async def test_failing_method_only_affects_that_method(self) -> None:
        dispatcher = NotificationDispatcherStub()
        dispatcher.fail_method(ContactMethod.CALL)
        with pytest.raises(DeliveryFailedError):
            await dispatcher.dispatch(ContactMethod.CALL, "guard-1", "Leak")
        await dispatcher.dispatch(ContactMethod.PUSH, "guard-1", "Leak")
        assert len(dispatcher.dispatched) == 1

    async def test_fail_all(self) -> None:
        dispatcher = NotificationDispatcherStub()
        dispatcher.fail_all = True
        with pytest.raises(DeliveryFailedError):
            await dispatcher.dispatch(ContactMethod.PUSH, "anyone", "Leak")
        dispatcher.clear()
        await dispatcher.dispatch(ContactMethod.PUSH, "anyone", "Leak")
        assert dispatcher.sent_to("anyone")
