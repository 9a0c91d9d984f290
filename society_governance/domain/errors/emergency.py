"""Emergency alert and escalation domain errors.

These errors represent rejected operations on emergency alerts: unknown
alerts, malformed escalation chains, invalid acknowledgments and late
resolutions.
"""

from __future__ import annotations

from typing import Optional

from society_governance.domain.exceptions import GovernanceError, GovernanceErrorKind


class EmergencyError(GovernanceError):
    """Base error for emergency alert operations."""

    pass


class AlertNotFoundError(EmergencyError):
    """Raised when an alert id does not resolve to a stored alert.

    Attributes:
        alert_id: The id that was looked up.
    """

    kind = GovernanceErrorKind.ALERT_NOT_FOUND

    def __init__(self, alert_id: str, message: Optional[str] = None) -> None:
        msg = message or f"Emergency alert not found: {alert_id}"
        super().__init__(msg)
        self.alert_id = alert_id


class InvalidAlertError(EmergencyError):
    """Raised when an emergency declaration is malformed.

    Attributes:
        reason: What is wrong with the declaration.
    """

    kind = GovernanceErrorKind.INVALID_ALERT

    def __init__(self, reason: str, message: Optional[str] = None) -> None:
        msg = message or f"Invalid emergency declaration - {reason}"
        super().__init__(msg)
        self.reason = reason


class AlertAlreadyResolvedError(EmergencyError):
    """Raised when resolving or acknowledging an alert in a terminal state.

    Attributes:
        alert_id: The alert.
        status: Its terminal status value.
    """

    kind = GovernanceErrorKind.ALERT_ALREADY_RESOLVED

    def __init__(
        self, alert_id: str, status: str, message: Optional[str] = None
    ) -> None:
        msg = message or f"Emergency alert {alert_id} is already closed (status: {status})"
        super().__init__(msg)
        self.alert_id = alert_id
        self.status = status


class InvalidAcknowledgmentError(EmergencyError):
    """Raised when an acknowledgment does not match the active level.

    Attributes:
        alert_id: The alert.
        level: The level named in the acknowledgment.
        reason: Why the acknowledgment was rejected.
    """

    kind = GovernanceErrorKind.INVALID_ACKNOWLEDGMENT

    def __init__(
        self,
        alert_id: str,
        level: int,
        reason: str,
        message: Optional[str] = None,
    ) -> None:
        msg = message or f"Invalid acknowledgment of level {level} on alert {alert_id} - {reason}"
        super().__init__(msg)
        self.alert_id = alert_id
        self.level = level
        self.reason = reason
