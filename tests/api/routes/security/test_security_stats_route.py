"""Testes do endpoint de estatísticas de segurança."""

from __future__ import annotations

import pytest

from api.routes.security.router import security_stats
from app.domain.security_events import SecurityEventType, Severity
from tests.fakes.asgi_requests import build_request
from tests.fakes.service_container import make_container


@pytest.mark.asyncio
async def test_security_stats_aggregates_recent_events() -> None:
    container = make_container()
    container.security_events.log_event(
        SecurityEventType.WEBHOOK_AUTH_FAILURE, Severity.HIGH, client_ip="8.8.8.8"
    )
    container.security_events.log_event(
        SecurityEventType.RATE_LIMIT_EXCEEDED, Severity.MEDIUM, client_ip="8.8.8.8"
    )
    request = build_request(method="GET", path="/api/security/stats", container=container)

    payload = await security_stats(request, time_window=600)

    assert payload["success"] is True
    assert payload["data"]["total"] == 2
    assert payload["data"]["time_window"] == 600
    assert payload["data"]["by_severity"] == {"HIGH": 1, "MEDIUM": 1}


@pytest.mark.asyncio
async def test_security_stats_is_rate_limited_by_ip() -> None:
    container = make_container()
    request = build_request(
        method="GET",
        path="/api/security/stats",
        headers={"x-real-ip": "9.9.9.9"},
        container=container,
    )

    for _ in range(100):
        await security_stats(request, time_window=3600)
    response = await security_stats(request, time_window=3600)

    assert response.status_code == 429
    assert int(response.headers["Retry-After"]) > 0
