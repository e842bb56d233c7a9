"""Settings de alertas de segurança."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class AlertSettings:
    """Destinos de alerta e capacidade do buffer de eventos.

    Attributes:
        webhook_url: Webhook genérico que recebe o alerta em JSON
        email_webhook_url: Serviço HTTP que encaminha o alerta por email
        email_to: Destinatário do alerta por email
        slack_webhook_url: Incoming webhook do Slack
        event_buffer_size: Capacidade do ring buffer de eventos
        request_timeout_seconds: Timeout por envio de alerta
    """

    webhook_url: str = ""
    email_webhook_url: str = ""
    email_to: str = ""
    slack_webhook_url: str = ""
    event_buffer_size: int = 1000
    request_timeout_seconds: float = 5.0

    @property
    def has_destinations(self) -> bool:
        """True se ao menos um destino de alerta está configurado."""
        return bool(self.webhook_url or self.email_webhook_url or self.slack_webhook_url)

    def validate(self) -> list[str]:
        errors: list[str] = []
        if self.event_buffer_size <= 0:
            errors.append("SECURITY_EVENT_BUFFER_SIZE deve ser > 0")
        if self.email_webhook_url and not self.email_to:
            errors.append("ALERT_EMAIL_WEBHOOK requer ALERT_EMAIL_TO")
        return errors


def _load_alerts_from_env() -> AlertSettings:
    """Carrega AlertSettings de variáveis de ambiente."""
    return AlertSettings(
        webhook_url=os.getenv("ALERT_WEBHOOK_URL", ""),
        email_webhook_url=os.getenv("ALERT_EMAIL_WEBHOOK", ""),
        email_to=os.getenv("ALERT_EMAIL_TO", ""),
        slack_webhook_url=os.getenv("SLACK_WEBHOOK_URL", ""),
        event_buffer_size=int(os.getenv("SECURITY_EVENT_BUFFER_SIZE", "1000")),
        request_timeout_seconds=float(os.getenv("ALERT_REQUEST_TIMEOUT_SECONDS", "5.0")),
    )


@lru_cache(maxsize=1)
def get_alert_settings() -> AlertSettings:
    """Retorna instância cacheada de AlertSettings."""
    return _load_alerts_from_env()
