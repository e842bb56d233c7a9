"""Modelos de domínio de eventos de segurança e regras de alerta.

A avaliação das regras é uma função pura da janela recente de eventos:
não faz I/O e não depende de relógio global (o `now` é parâmetro).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable


class SecurityEventType(StrEnum):
    # Autenticação
    LOGIN_SUCCESS = "auth.login.success"
    LOGIN_FAILURE = "auth.login.failure"
    CSRF_DETECTED = "auth.csrf.detected"
    TOKEN_THEFT_DETECTED = "auth.token_theft.detected"
    TOKEN_REFRESH_SUCCESS = "auth.token.refresh.success"
    TOKEN_REFRESH_FAILURE = "auth.token.refresh.failure"
    # Autorização
    UNAUTHORIZED_ACCESS = "authz.unauthorized.access"
    FORBIDDEN_RESOURCE = "authz.forbidden.resource"
    # Rate limiting e abuso
    RATE_LIMIT_EXCEEDED = "security.rate_limit.exceeded"
    SUSPICIOUS_ACTIVITY = "security.suspicious.activity"
    CORS_VIOLATION = "security.cors.violation"
    BRUTE_FORCE_DETECTED = "security.brute_force.detected"
    # Sistema
    WEBHOOK_AUTH_FAILURE = "system.webhook.auth.failure"
    WEBHOOK_IP_REJECTED = "system.webhook.ip.rejected"
    API_ERROR = "system.api.error"


class Severity(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True, slots=True)
class SecurityEvent:
    """Registro append-only de auditoria."""

    type: SecurityEventType
    severity: Severity
    timestamp: datetime
    user_id: str | None = None
    client_ip: str | None = None
    path: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "user_id": self.user_id,
            "client_ip": self.client_ip,
            "path": self.path,
            "details": self.details,
        }


@dataclass(frozen=True, slots=True)
class AlertRule:
    """Limiar de eventos de um tipo dentro de uma janela de tempo."""

    event_type: SecurityEventType
    threshold: int
    window_seconds: int
    severity: Severity
    group_by_user: bool = False
    group_by_ip: bool = False
    enabled: bool = True


@dataclass(frozen=True, slots=True)
class SecurityAlert:
    """Alerta disparado por uma regra."""

    rule: AlertRule
    event: SecurityEvent
    matched_events: int
    triggered_at: datetime

    def as_dict(self) -> dict[str, Any]:
        return {
            "rule": {
                "event_type": self.rule.event_type.value,
                "threshold": self.rule.threshold,
                "window_seconds": self.rule.window_seconds,
                "severity": self.rule.severity.value,
            },
            "triggering_event": self.event.as_dict(),
            "matched_events": self.matched_events,
            "timestamp": self.triggered_at.isoformat(),
        }


ALERT_RULES: tuple[AlertRule, ...] = (
    # Críticos: uma ocorrência basta
    AlertRule(SecurityEventType.CSRF_DETECTED, 1, 3600, Severity.CRITICAL),
    AlertRule(
        SecurityEventType.TOKEN_THEFT_DETECTED, 1, 3600, Severity.CRITICAL, group_by_user=True
    ),
    # Altos
    AlertRule(SecurityEventType.RATE_LIMIT_EXCEEDED, 10, 900, Severity.HIGH, group_by_ip=True),
    AlertRule(SecurityEventType.LOGIN_FAILURE, 5, 300, Severity.HIGH, group_by_user=True),
    AlertRule(
        SecurityEventType.UNAUTHORIZED_ACCESS, 3, 600, Severity.HIGH, group_by_user=True
    ),
    AlertRule(
        SecurityEventType.BRUTE_FORCE_DETECTED, 1, 3600, Severity.HIGH, group_by_ip=True
    ),
    # Médios
    AlertRule(SecurityEventType.CORS_VIOLATION, 20, 3600, Severity.MEDIUM, group_by_ip=True),
    AlertRule(SecurityEventType.WEBHOOK_AUTH_FAILURE, 5, 1800, Severity.MEDIUM),
    AlertRule(SecurityEventType.WEBHOOK_IP_REJECTED, 5, 1800, Severity.MEDIUM),
)


def _matches(candidate: SecurityEvent, event: SecurityEvent, rule: AlertRule) -> bool:
    if candidate.type != rule.event_type:
        return False
    if rule.group_by_user and candidate.user_id != event.user_id:
        return False
    return not (rule.group_by_ip and candidate.client_ip != event.client_ip)


def evaluate_alert_rules(
    recent_events: Iterable[SecurityEvent],
    event: SecurityEvent,
    rules: Iterable[AlertRule] = ALERT_RULES,
    now: datetime | None = None,
) -> list[SecurityAlert]:
    """Decide quais regras disparam para o evento recém-registrado.

    Args:
        recent_events: Janela recente, já incluindo `event`.
        event: Evento que acabou de ser registrado.
        rules: Tabela de regras.
        now: Instante de referência (default: agora em UTC).

    Returns:
        Alertas a disparar (lista vazia quando nenhum limiar é atingido).
    """
    reference = now or datetime.now(UTC)
    window = list(recent_events)
    alerts: list[SecurityAlert] = []

    for rule in rules:
        if not rule.enabled or rule.event_type != event.type:
            continue
        window_start = reference - timedelta(seconds=rule.window_seconds)
        matched = sum(
            1
            for candidate in window
            if candidate.timestamp >= window_start and _matches(candidate, event, rule)
        )
        if matched >= rule.threshold:
            alerts.append(
                SecurityAlert(
                    rule=rule,
                    event=event,
                    matched_events=matched,
                    triggered_at=reference,
                )
            )
    return alerts


__all__ = [
    "ALERT_RULES",
    "AlertRule",
    "SecurityAlert",
    "SecurityEvent",
    "SecurityEventType",
    "Severity",
    "evaluate_alert_rules",
]
