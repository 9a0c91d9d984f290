"""Emergency escalation scheduler.

Drives each emergency alert through its escalation chain:

    declared -> level 1 active -> level 2 active -> ... -> level N active
                                                              |
                                                      closed_unresolved

with ``resolved`` reachable from any non-terminal state and
``acknowledged`` stopping auto-escalation until an explicit resolve.

Timers:
    Each active level owns one asyncio.Task that sleeps through the time
    authority until the level's deadline. There is at most one timer per
    alert. Acknowledgment and resolution cancel and await the timer before
    returning, so no escalation is observable after the caller has been
    told the operation completed. A timer that wakes re-checks, under the
    alert lock, that its level is still the current unacknowledged level;
    a stale wake-up does nothing.

Notifications:
    Each activated level emits one dispatch request per contact method.
    Dispatch outcomes are recorded on the alert. Failures are logged and
    audited but never delay or stop escalation.

When the last level times out the alert closes unresolved and every
registered exhaustion listener is awaited exactly once.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import uuid4

from society_governance.application.dtos.governance import EmergencySpecDTO
from society_governance.application.ports.governance_store import (
    ALERTS,
    GovernanceStoreProtocol,
)
from society_governance.application.ports.notification_dispatcher import (
    NotificationDispatcherProtocol,
)
from society_governance.application.ports.time_authority import TimeAuthorityProtocol
from society_governance.application.services.audit_log_service import AuditLog
from society_governance.application.services.base import LoggingMixin
from society_governance.application.services.entity_locks import EntityLockRegistry
from society_governance.domain.errors.emergency import AlertNotFoundError
from society_governance.domain.errors.store import StoreUnavailableError
from society_governance.domain.models.audit import (
    SYSTEM_ACTOR_ID,
    AuditAction,
    ResourceType,
)
from society_governance.domain.models.emergency import (
    Acknowledgment,
    AlertStatus,
    EmergencyAlert,
    EmergencyResponse,
    EscalationLevel,
    NotificationRecord,
    NotificationStatus,
    validate_chain,
)

ExhaustionListener = Callable[[EmergencyAlert], Awaitable[object]]

_LOCK_KIND = "alert"

# Upper bound on a single dispatch call; delivery never holds up escalation.
DISPATCH_TIMEOUT_SECONDS = 10.0

# Delay before a timer retries when the store could not be read.
TIMER_RETRY_SECONDS = 5.0


@dataclass
class _LevelTimer:
    level: int
    task: asyncio.Task[None]


class EscalationScheduler(LoggingMixin):
    """Owns emergency alerts and their escalation timers."""

    def __init__(
        self,
        store: GovernanceStoreProtocol,
        dispatcher: NotificationDispatcherProtocol,
        audit_log: AuditLog,
        time_authority: TimeAuthorityProtocol,
        locks: Optional[EntityLockRegistry] = None,
        default_level_timeout_minutes: int = 15,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._audit = audit_log
        self._time = time_authority
        self._locks = locks if locks is not None else EntityLockRegistry()
        self._default_timeout = default_level_timeout_minutes
        self._timers: dict[str, _LevelTimer] = {}
        self._listeners: list[ExhaustionListener] = []
        self._init_logger()

    def add_exhaustion_listener(self, listener: ExhaustionListener) -> None:
        """Register a coroutine called once per alert that closes unresolved."""
        self._listeners.append(listener)

    def has_active_timer(self, alert_id: str) -> bool:
        timer = self._timers.get(alert_id)
        return timer is not None and not timer.task.done()

    def active_timer_level(self, alert_id: str) -> Optional[int]:
        timer = self._timers.get(alert_id)
        if timer is None or timer.task.done():
            return None
        return timer.level

    @property
    def active_timer_count(self) -> int:
        return sum(1 for timer in self._timers.values() if not timer.task.done())

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_alert(self, alert_id: str) -> EmergencyAlert:
        """Load an alert.

        Raises:
            AlertNotFoundError: If no alert has this id.
        """
        record = await self._store.get(ALERTS, alert_id)
        if record is None:
            raise AlertNotFoundError(alert_id)
        return EmergencyAlert.from_dict(record)

    async def list_alerts(
        self,
        society_id: Optional[str] = None,
        status: Optional[AlertStatus] = None,
    ) -> list[EmergencyAlert]:
        alerts = [EmergencyAlert.from_dict(r) for r in await self._store.list(ALERTS)]
        return [
            a
            for a in alerts
            if (society_id is None or a.society_id == society_id)
            and (status is None or a.status is status)
        ]

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def declare_emergency(self, spec: EmergencySpecDTO) -> EmergencyAlert:
        """Declare an emergency and activate level 1 immediately.

        Raises:
            InvalidAlertError: If the escalation chain is malformed.
        """
        chain = tuple(
            EscalationLevel(
                level=position,
                responder_role=level.responder_role,
                responder_id=level.responder_id,
                contact_methods=tuple(level.contact_methods),
                timeout_minutes=(
                    level.timeout_minutes
                    if level.timeout_minutes is not None
                    else self._default_timeout
                ),
            )
            for position, level in enumerate(spec.escalation_chain, start=1)
        )
        validate_chain(chain)

        now = self._time.utcnow()
        alert = EmergencyAlert(
            alert_id=str(uuid4()),
            society_id=spec.society_id,
            title=spec.title,
            description=spec.description,
            severity=spec.severity,
            emergency_type=spec.emergency_type,
            status=AlertStatus.DECLARED,
            escalation_chain=chain,
            declared_by=spec.declared_by,
            declared_at=now,
            updated_at=now,
            location=spec.location,
            affected_areas=tuple(spec.affected_areas),
        )
        log = self._log_operation("declare_emergency", alert_id=alert.alert_id)

        async with self._locks.lock_for(_LOCK_KIND, alert.alert_id):
            # level 1 is active in the first stored version of the alert
            alert = alert.with_level_activated(now)
            await self._save(alert)
            await self._audit.record(
                spec.declared_by,
                AuditAction.EMERGENCY_DECLARED,
                ResourceType.ALERT,
                alert.alert_id,
                {
                    "society_id": alert.society_id,
                    "severity": alert.severity.value,
                    "emergency_type": alert.emergency_type.value,
                    "levels": len(chain),
                },
            )
            alert = await self._start_level(alert, now)

        log.info(
            "emergency_declared",
            severity=alert.severity.value,
            levels=len(chain),
        )
        return alert

    async def acknowledge_escalation(
        self,
        alert_id: str,
        level: int,
        acknowledged_by: str,
        response: EmergencyResponse = EmergencyResponse.ACKNOWLEDGED,
        eta_minutes: Optional[int] = None,
        notes: str = "",
    ) -> EmergencyAlert:
        """Acknowledge the active level.

        Any response other than CANNOT_RESPOND cancels the level's timer
        and moves the alert to ACKNOWLEDGED. CANNOT_RESPOND is recorded and
        escalation continues.

        Raises:
            AlertNotFoundError: Unknown alert.
            AlertAlreadyResolvedError: Alert is terminal.
            InvalidAcknowledgmentError: Level is not the active level or
                the alert is already acknowledged.
        """
        log = self._log_operation("acknowledge_escalation", alert_id=alert_id, level=level)
        async with self._locks.lock_for(_LOCK_KIND, alert_id):
            alert = await self.get_alert(alert_id)
            acknowledgment = Acknowledgment(
                alert_id=alert_id,
                level=level,
                acknowledged_by=acknowledged_by,
                acknowledged_at=self._time.utcnow(),
                response=response,
                eta_minutes=eta_minutes,
                notes=notes,
            )
            updated = alert.with_acknowledgment(acknowledgment)
            await self._save(updated)
            await self._audit.record(
                acknowledged_by,
                AuditAction.ESCALATION_ACKNOWLEDGED,
                ResourceType.ALERT,
                alert_id,
                {
                    "level": level,
                    "response": response.value,
                    "eta_minutes": eta_minutes,
                    "stops_escalation": response.stops_escalation(),
                },
            )
            if updated.status is AlertStatus.ACKNOWLEDGED:
                await self._cancel_timer(alert_id)

        log.info("escalation_acknowledged", response=response.value)
        return updated

    async def resolve_emergency(
        self,
        alert_id: str,
        notes: str,
        resolved_by: str,
    ) -> EmergencyAlert:
        """Resolve an alert from any non-terminal state.

        Raises:
            AlertNotFoundError: Unknown alert.
            AlertAlreadyResolvedError: Alert is already resolved or closed.
        """
        async with self._locks.lock_for(_LOCK_KIND, alert_id):
            alert = await self.get_alert(alert_id)
            resolved = alert.resolved(resolved_by, notes, self._time.utcnow())
            await self._save(resolved)
            await self._cancel_timer(alert_id)
            await self._audit.record(
                resolved_by,
                AuditAction.EMERGENCY_RESOLVED,
                ResourceType.ALERT,
                alert_id,
                {"previous_status": alert.status.value, "level": alert.current_level},
            )

        self._log_operation("resolve_emergency", alert_id=alert_id).info(
            "emergency_resolved", previous_status=alert.status.value
        )
        return resolved

    async def restore(self) -> int:
        """Re-arm timers for persisted alerts that are still escalating.

        Levels whose deadline already passed fire immediately.

        Returns:
            Number of alerts with a timer armed.
        """
        log = self._log_operation("restore")
        now = self._time.utcnow()
        armed = 0
        for alert in await self.list_alerts():
            if not alert.status.auto_escalates() or self.has_active_timer(alert.alert_id):
                continue
            async with self._locks.lock_for(_LOCK_KIND, alert.alert_id):
                if alert.active_level is None:
                    await self._activate_next_level(alert)
                else:
                    self._arm_timer(alert.alert_id, alert.active_level, now)
            armed += 1
        log.info("escalation_timers_restored", count=armed)
        return armed

    async def shutdown(self) -> None:
        """Cancel every pending escalation timer."""
        tasks = [timer.task for timer in self._timers.values()]
        self._timers.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._log_operation("shutdown").info("escalation_scheduler_stopped", cancelled=len(tasks))

    # ------------------------------------------------------------------
    # Escalation internals
    # ------------------------------------------------------------------

    async def _activate_next_level(self, alert: EmergencyAlert) -> EmergencyAlert:
        """Activate and persist the next level, then start it. Caller holds the lock."""
        now = self._time.utcnow()
        alert = alert.with_level_activated(now)
        await self._save(alert)
        return await self._start_level(alert, now)

    async def _start_level(self, alert: EmergencyAlert, now: datetime) -> EmergencyAlert:
        """Audit, arm the timer and dispatch for the level just activated."""
        level = alert.active_level
        assert level is not None
        await self._audit.record(
            SYSTEM_ACTOR_ID,
            AuditAction.LEVEL_ACTIVATED,
            ResourceType.ALERT,
            alert.alert_id,
            {
                "level": level.level,
                "responder_id": level.responder_id,
                "responder_role": level.responder_role,
                "timeout_minutes": level.timeout_minutes,
            },
        )
        self._arm_timer(alert.alert_id, level, now)
        self._log_operation("activate_level", alert_id=alert.alert_id).info(
            "escalation_level_activated",
            level=level.level,
            responder_id=level.responder_id,
        )
        return await self._notify_level(alert, level)

    def _arm_timer(self, alert_id: str, level: EscalationLevel, now: datetime) -> None:
        self._start_timer(alert_id, level.level, level.deadline() or now + level.timeout)

    def _start_timer(self, alert_id: str, level: int, deadline: datetime) -> None:
        previous = self._timers.get(alert_id)
        if (
            previous is not None
            and previous.task is not asyncio.current_task()
            and not previous.task.done()
        ):
            previous.task.cancel()
        task = asyncio.create_task(
            self._run_timer(alert_id, level, deadline),
            name=f"escalation:{alert_id}:level-{level}",
        )
        self._timers[alert_id] = _LevelTimer(level=level, task=task)

    async def _cancel_timer(self, alert_id: str) -> None:
        timer = self._timers.pop(alert_id, None)
        if timer is None or timer.task is asyncio.current_task() or timer.task.done():
            return
        timer.task.cancel()
        await asyncio.gather(timer.task, return_exceptions=True)

    async def _run_timer(self, alert_id: str, level: int, deadline: datetime) -> None:
        delay = (deadline - self._time.utcnow()).total_seconds()
        await self._time.sleep(max(delay, 0.0))
        log = self._log_operation("level_timeout", alert_id=alert_id, level=level)
        try:
            exhausted = await self._on_timeout(alert_id, level)
        except StoreUnavailableError:
            log.warning("escalation_timer_store_unavailable", retry_seconds=TIMER_RETRY_SECONDS)
            self._start_timer(
                alert_id, level, self._time.utcnow() + timedelta(seconds=TIMER_RETRY_SECONDS)
            )
            return
        except Exception:
            log.exception("escalation_timer_failed")
            raise
        if exhausted is not None:
            await self._notify_exhausted(exhausted)

    async def _on_timeout(self, alert_id: str, level: int) -> Optional[EmergencyAlert]:
        """Advance past a timed-out level.

        Returns:
            The alert if this timeout exhausted the chain, else None.
        """
        log = self._log_operation("level_timeout", alert_id=alert_id, level=level)
        async with self._locks.lock_for(_LOCK_KIND, alert_id):
            timer = self._timers.get(alert_id)
            if timer is not None and timer.task is asyncio.current_task():
                del self._timers[alert_id]

            alert = await self.get_alert(alert_id)
            if (
                not alert.status.auto_escalates()
                or alert.current_level != level
                or alert.level(level).is_acknowledged
            ):
                log.debug("stale_timer_ignored", status=alert.status.value)
                return None

            now = self._time.utcnow()
            alert = alert.with_level_timed_out(level, now)
            await self._save(alert)
            await self._audit.record(
                SYSTEM_ACTOR_ID,
                AuditAction.LEVEL_TIMED_OUT,
                ResourceType.ALERT,
                alert_id,
                {"level": level},
            )
            log.warning("escalation_level_timed_out")

            if alert.next_level is not None:
                await self._activate_next_level(alert)
                return None

            closed = alert.closed_unresolved(now)
            await self._save(closed)
            await self._audit.record(
                SYSTEM_ACTOR_ID,
                AuditAction.EMERGENCY_CLOSED_UNRESOLVED,
                ResourceType.ALERT,
                alert_id,
                {"levels": len(closed.escalation_chain)},
            )
            log.error("escalation_chain_exhausted", society_id=closed.society_id)
            return closed

    async def _notify_level(
        self, alert: EmergencyAlert, level: EscalationLevel
    ) -> EmergencyAlert:
        message = (
            f"[{alert.severity.value.upper()}] {alert.title} - "
            f"escalation level {level.level}, acknowledge within "
            f"{level.timeout_minutes} minutes"
        )
        log = self._log_operation("dispatch", alert_id=alert.alert_id, level=level.level)
        for method in level.contact_methods:
            attempted_at = self._time.utcnow()
            try:
                await asyncio.wait_for(
                    self._dispatcher.dispatch(method, level.responder_id, message),
                    timeout=DISPATCH_TIMEOUT_SECONDS,
                )
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                reason = str(exc) or type(exc).__name__
                log.warning(
                    "notification_dispatch_failed",
                    method=method.value,
                    target=level.responder_id,
                    error=reason,
                )
                record = NotificationRecord(
                    level=level.level,
                    target=level.responder_id,
                    method=method,
                    status=NotificationStatus.FAILED,
                    attempted_at=attempted_at,
                    failure_reason=reason,
                )
                await self._audit.record(
                    SYSTEM_ACTOR_ID,
                    AuditAction.NOTIFICATION_FAILED,
                    ResourceType.ALERT,
                    alert.alert_id,
                    {
                        "level": level.level,
                        "method": method.value,
                        "target": level.responder_id,
                        "reason": reason,
                    },
                )
            else:
                record = NotificationRecord(
                    level=level.level,
                    target=level.responder_id,
                    method=method,
                    status=NotificationStatus.SENT,
                    attempted_at=attempted_at,
                )
            alert = alert.with_notification(record)
        try:
            await self._save(alert)
        except StoreUnavailableError:
            log.warning("notification_log_not_saved")
        return alert

    async def _notify_exhausted(self, alert: EmergencyAlert) -> None:
        log = self._log_operation("notify_exhausted", alert_id=alert.alert_id)
        for listener in self._listeners:
            try:
                await listener(alert)
            except Exception:
                log.exception("exhaustion_listener_failed")

    async def _save(self, alert: EmergencyAlert) -> None:
        await self._store.put(ALERTS, alert.alert_id, alert.to_dict())
