"""Testes dos endpoints de health e readiness."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from api.routes.health.router import health_check, readiness_check
from tests.fakes.asgi_requests import build_request
from tests.fakes.service_container import make_container
from utils.errors import CacheUnavailableError


def _payload(response) -> dict:
    return json.loads(response.body.decode("utf-8"))


def _container_with_cache(cache) -> SimpleNamespace:
    return SimpleNamespace(
        cache=cache,
        dispatcher=SimpleNamespace(background=SimpleNamespace(active_count=0)),
    )


@pytest.mark.asyncio
async def test_health_reports_service() -> None:
    response = await health_check()

    assert response.status == "healthy"
    assert response.service == "peepers-webhooks"


@pytest.mark.asyncio
async def test_readiness_returns_not_ready_without_container() -> None:
    request = build_request(method="GET", path="/ready", container=None)

    response = await readiness_check(request)
    payload = _payload(response)

    assert response.status_code == 503
    assert payload["status"] == "not_ready"
    assert payload["checks"]["cache"]["error"] == "not_configured"


@pytest.mark.asyncio
async def test_readiness_ready_with_memory_cache() -> None:
    request = build_request(method="GET", path="/ready", container=make_container())

    response = await readiness_check(request)
    payload = _payload(response)

    assert response.status_code == 200
    assert payload["status"] == "ready"
    assert payload["checks"]["cache"]["status"] == "ok"
    assert payload["background_tasks"] == 0


@pytest.mark.asyncio
async def test_readiness_fails_when_cache_errors() -> None:
    cache = MagicMock()
    cache.ping = AsyncMock(side_effect=CacheUnavailableError("redis down"))
    request = build_request(method="GET", path="/ready", container=_container_with_cache(cache))

    response = await readiness_check(request)
    payload = _payload(response)

    assert response.status_code == 503
    assert payload["checks"]["cache"]["error"] == "CacheUnavailableError"


@pytest.mark.asyncio
async def test_readiness_fails_when_ping_is_false() -> None:
    cache = MagicMock()
    cache.ping = AsyncMock(return_value=False)
    request = build_request(method="GET", path="/ready", container=_container_with_cache(cache))

    response = await readiness_check(request)

    assert response.status_code == 503
    assert _payload(response)["checks"]["cache"]["error"] == "ping_failed"

