"""Sink de eventos de segurança com alertas por limiar.

`log_event` é síncrono e nunca levanta exceção:
1. Anexa o evento ao ring buffer (capacidade fixa, descarta o mais antigo)
2. Emite log estruturado `security_event`
3. Avalia ALERT_RULES sobre o buffer (função pura)
4. Agenda o envio dos alertas disparados em background

Falhas internas do sink são registradas com stack trace e contabilizadas
em `dropped_events`; falhas de entrega de alerta são registradas e descartadas.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter, deque
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from app.domain.security_events import (
    ALERT_RULES,
    SecurityEvent,
    SecurityEventType,
    Severity,
    evaluate_alert_rules,
)
from app.infra.background_tasks import BackgroundTaskRegistry

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from app.domain.security_events import AlertRule, SecurityAlert
    from app.protocols.alert_sender import AlertSenderProtocol

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1000


def _utc_now() -> datetime:
    return datetime.now(UTC)


class SecurityEventSink:
    """Trilha de auditoria em memória com alertas.

    Args:
        alert_sender: Destino dos alertas (None = apenas log)
        capacity: Tamanho do ring buffer
        rules: Tabela de regras de alerta
        clock: Relógio UTC (injetável em testes)
    """

    def __init__(
        self,
        alert_sender: AlertSenderProtocol | None = None,
        capacity: int = DEFAULT_CAPACITY,
        rules: Iterable[AlertRule] = ALERT_RULES,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._alert_sender = alert_sender
        self._events: deque[SecurityEvent] = deque(maxlen=capacity)
        self._rules = tuple(rules)
        self._clock = clock or _utc_now
        self._alert_tasks = BackgroundTaskRegistry("security_alerts")
        self._dropped_events = 0
        self._alerts_triggered = 0

    @property
    def dropped_events(self) -> int:
        """Eventos perdidos por falha interna do sink."""
        return self._dropped_events

    @property
    def alerts_triggered(self) -> int:
        return self._alerts_triggered

    def log_event(
        self,
        event_type: SecurityEventType,
        severity: Severity,
        *,
        user_id: str | None = None,
        client_ip: str | None = None,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> SecurityEvent | None:
        """Registra evento de segurança.

        Returns:
            Evento registrado, ou None se o sink falhou internamente.
        """
        try:
            event = SecurityEvent(
                type=SecurityEventType(event_type),
                severity=Severity(severity),
                timestamp=self._clock(),
                user_id=user_id,
                client_ip=client_ip,
                path=path,
                details=dict(details or {}),
            )
            self._events.append(event)
            logger.info(
                "security_event",
                extra={
                    "event_type": event.type.value,
                    "severity": event.severity.value,
                    "user_id": event.user_id,
                    "client_ip": event.client_ip,
                    "path": event.path,
                    "details": event.details,
                },
            )
            alerts = evaluate_alert_rules(self._events, event, self._rules, now=event.timestamp)
            for alert in alerts:
                self._trigger_alert(alert)
        except Exception:
            self._dropped_events += 1
            logger.exception(
                "security_event_sink_failed",
                extra={
                    "event_type": str(event_type),
                    "dropped_events": self._dropped_events,
                },
            )
            return None
        return event

    def _trigger_alert(self, alert: SecurityAlert) -> None:
        self._alerts_triggered += 1
        logger.error(
            "security_alert_triggered",
            extra={
                "alert_triggered": True,
                "severity": alert.rule.severity.value,
                "event_type": alert.event.type.value,
                "threshold": alert.rule.threshold,
                "window_seconds": alert.rule.window_seconds,
                "matched_events": alert.matched_events,
                "user_id": alert.event.user_id,
                "client_ip": alert.event.client_ip,
            },
        )
        if self._alert_sender is None:
            return

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                "security_alert_not_dispatched",
                extra={"event_type": alert.event.type.value, "reason": "no_running_loop"},
            )
            return
        self._alert_tasks.spawn(self._deliver(alert))

    async def _deliver(self, alert: SecurityAlert) -> None:
        try:
            await self._alert_sender.send(alert)  # type: ignore[union-attr]
        except Exception:
            logger.exception(
                "security_alert_delivery_failed",
                extra={"event_type": alert.event.type.value},
            )

    async def drain_alerts(self, timeout_seconds: float = 10.0) -> int:
        """Aguarda envios pendentes (shutdown)."""
        return await self._alert_tasks.drain(timeout_seconds)

    def recent_events(self, limit: int = 50) -> list[SecurityEvent]:
        """Eventos mais recentes, do mais novo para o mais antigo."""
        if limit <= 0:
            return []
        return list(reversed(self._events))[:limit]

    def get_event_stats(self, time_window_seconds: int = 3600) -> dict[str, Any]:
        """Agrega eventos da janela por tipo e severidade."""
        period_end = self._clock()
        period_start = period_end - timedelta(seconds=time_window_seconds)
        in_window = [event for event in self._events if event.timestamp >= period_start]

        by_type = Counter(event.type.value for event in in_window)
        by_severity = Counter(event.severity.value for event in in_window)
        return {
            "total": len(in_window),
            "by_type": dict(by_type),
            "by_severity": dict(by_severity),
            "time_window": time_window_seconds,
            "period_start": period_start.isoformat(),
            "period_end": period_end.isoformat(),
            "alerts_triggered": self._alerts_triggered,
            "dropped_events": self._dropped_events,
        }
