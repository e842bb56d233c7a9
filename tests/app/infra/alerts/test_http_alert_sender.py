"""Testes do HttpAlertSender com httpx.MockTransport."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import httpx
import pytest

from app.domain.security_events import (
    ALERT_RULES,
    SecurityAlert,
    SecurityEvent,
    SecurityEventType,
    Severity,
)
from app.infra.alerts import AlertDeliveryError, HttpAlertSender
from config.settings import AlertSettings

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _alert() -> SecurityAlert:
    rule = next(r for r in ALERT_RULES if r.event_type == SecurityEventType.CSRF_DETECTED)
    event = SecurityEvent(
        type=SecurityEventType.CSRF_DETECTED,
        severity=Severity.CRITICAL,
        timestamp=NOW,
        client_ip="203.0.113.7",
        details={"origin": "https://evil.example"},
    )
    return SecurityAlert(rule=rule, event=event, matched_events=1, triggered_at=NOW)


def _settings(**overrides: str) -> AlertSettings:
    values = {
        "webhook_url": "https://alerts.example.com/hook",
        "email_webhook_url": "https://mail.example.com/send",
        "email_to": "security@example.com",
        "slack_webhook_url": "https://hooks.slack.com/services/T/B/X",
    }
    values.update(overrides)
    return AlertSettings(**values)


@pytest.mark.asyncio
async def test_send_posts_to_every_channel() -> None:
    received: dict[str, dict] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        received[request.url.host] = json.loads(request.content)
        return httpx.Response(200)

    sender = HttpAlertSender(_settings(), "production", transport=httpx.MockTransport(handler))
    await sender.send(_alert())

    assert set(received) == {"alerts.example.com", "mail.example.com", "hooks.slack.com"}
    assert received["alerts.example.com"]["environment"] == "production"
    assert received["alerts.example.com"]["rule"]["event_type"] == "auth.csrf.detected"
    assert received["mail.example.com"]["to"] == "security@example.com"
    assert "CRITICAL" in received["mail.example.com"]["subject"]
    assert received["hooks.slack.com"]["attachments"][0]["color"] == "danger"


@pytest.mark.asyncio
async def test_failed_channel_does_not_block_others() -> None:
    """Falha no Slack não impede webhook e email; erro lista o canal."""
    delivered: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "hooks.slack.com":
            return httpx.Response(500)
        delivered.append(request.url.host)
        return httpx.Response(204)

    sender = HttpAlertSender(_settings(), transport=httpx.MockTransport(handler))

    with pytest.raises(AlertDeliveryError) as exc_info:
        await sender.send(_alert())

    assert exc_info.value.failed_channels == ["slack"]
    assert sorted(delivered) == ["alerts.example.com", "mail.example.com"]


@pytest.mark.asyncio
async def test_no_destinations_is_noop() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover
        raise AssertionError("nenhuma chamada esperada")

    sender = HttpAlertSender(AlertSettings(), transport=httpx.MockTransport(handler))

    await sender.send(_alert())
