"""Envio de alertas de segurança via HTTP (webhook, email e Slack).

Cada destino configurado recebe o alerta de forma independente: falha em
um canal não impede os demais. Ao final, se algum canal falhou, levanta
AlertDeliveryError para quem agendou o envio registrar.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx

from app.protocols.alert_sender import AlertSenderProtocol

if TYPE_CHECKING:
    from app.domain.security_events import SecurityAlert
    from config.settings import AlertSettings

logger = logging.getLogger(__name__)

APP_NAME = "Peepers"

SLACK_SEVERITY_COLORS = {
    "CRITICAL": "danger",
    "HIGH": "warning",
    "MEDIUM": "#ffaa00",
    "LOW": "good",
}


class AlertDeliveryError(RuntimeError):
    """Um ou mais canais de alerta falharam."""

    def __init__(self, failed_channels: list[str]) -> None:
        super().__init__(f"Falha ao entregar alerta: {', '.join(failed_channels)}")
        self.failed_channels = failed_channels


class HttpAlertSender(AlertSenderProtocol):
    """Entrega alertas para os destinos de AlertSettings.

    Args:
        settings: Destinos e timeout
        environment: Ambiente incluído no payload
        transport: Transport httpx opcional (testes usam MockTransport)
    """

    def __init__(
        self,
        settings: AlertSettings,
        environment: str = "development",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._environment = environment
        self._transport = transport

    async def send(self, alert: SecurityAlert) -> None:
        deliveries: list[tuple[str, str, dict[str, Any]]] = []
        if self._settings.email_webhook_url:
            deliveries.append(
                ("email", self._settings.email_webhook_url, self._email_payload(alert))
            )
        if self._settings.webhook_url:
            deliveries.append(("webhook", self._settings.webhook_url, self._webhook_payload(alert)))
        if self._settings.slack_webhook_url:
            deliveries.append(
                ("slack", self._settings.slack_webhook_url, self._slack_payload(alert))
            )

        if not deliveries:
            logger.debug("security_alert_no_destination")
            return

        failed: list[str] = []
        async with httpx.AsyncClient(
            timeout=self._settings.request_timeout_seconds,
            transport=self._transport,
        ) as client:
            for channel, url, payload in deliveries:
                try:
                    response = await client.post(url, json=payload)
                    response.raise_for_status()
                except httpx.HTTPError as exc:
                    failed.append(channel)
                    logger.warning(
                        "security_alert_channel_failed",
                        extra={"channel": channel, "error_type": type(exc).__name__},
                    )
                    continue
                logger.info(
                    "security_alert_delivered",
                    extra={"channel": channel, "event_type": alert.event.type.value},
                )

        if failed:
            raise AlertDeliveryError(failed)

    def _webhook_payload(self, alert: SecurityAlert) -> dict[str, Any]:
        return {**alert.as_dict(), "environment": self._environment, "app": APP_NAME}

    def _email_payload(self, alert: SecurityAlert) -> dict[str, Any]:
        event = alert.event
        rule = alert.rule
        body = "\n".join(
            [
                "Security Alert Triggered",
                f"Type: {event.type.value}",
                f"Severity: {rule.severity.value}",
                f"Time: {alert.triggered_at.isoformat()}",
                f"User: {event.user_id or 'N/A'}",
                f"IP: {event.client_ip or 'N/A'}",
                f"Details: {json.dumps(event.details, indent=2, default=str)}",
                f"Threshold: {rule.threshold} events in {rule.window_seconds} seconds",
            ]
        )
        return {
            "to": self._settings.email_to,
            "subject": f"{APP_NAME} Security Alert - {rule.severity.value}",
            "body": body,
        }

    def _slack_payload(self, alert: SecurityAlert) -> dict[str, Any]:
        event = alert.event
        rule = alert.rule
        return {
            "text": f"{APP_NAME} Security Alert",
            "attachments": [
                {
                    "color": SLACK_SEVERITY_COLORS.get(rule.severity.value, "#cccccc"),
                    "fields": [
                        {"title": "Event Type", "value": event.type.value, "short": True},
                        {"title": "Severity", "value": rule.severity.value, "short": True},
                        {"title": "User ID", "value": event.user_id or "N/A", "short": True},
                        {"title": "Client IP", "value": event.client_ip or "N/A", "short": True},
                        {
                            "title": "Threshold",
                            "value": f"{rule.threshold} events in {rule.window_seconds}s",
                            "short": False,
                        },
                    ],
                    "ts": int(datetime.now(UTC).timestamp()),
                }
            ],
        }
