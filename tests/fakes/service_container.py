"""Montagem do ServiceContainer para testes de rota."""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from app.bootstrap import RuntimeSettings, ServiceContainer, build_container
from app.infra.stores import MemoryCacheStore
from config.settings import (
    AlertSettings,
    BaseSettings,
    CacheSettings,
    MercadoLivreSettings,
    RateLimitSettings,
    RecoverySettings,
)
from tests.fakes.fake_marketplace_api import FakeMercadoLivreApi

WEBHOOK_SECRET = "test-webhook-secret"
APPLICATION_ID = "app123"


def make_runtime_settings(**mercadolivre_overrides: Any) -> RuntimeSettings:
    """Settings de desenvolvimento com secret e application_id definidos."""
    mercadolivre = replace(
        MercadoLivreSettings(client_id=APPLICATION_ID, webhook_secret=WEBHOOK_SECRET),
        **mercadolivre_overrides,
    )
    return RuntimeSettings(
        base=BaseSettings(environment="development"),
        cache=CacheSettings(backend="memory"),
        mercadolivre=mercadolivre,
        rate_limit=RateLimitSettings(),
        recovery=RecoverySettings(batch_delay_seconds=0),
        alerts=AlertSettings(),
    )


def make_container(
    *,
    cache: MemoryCacheStore | None = None,
    api: FakeMercadoLivreApi | None = None,
    **mercadolivre_overrides: Any,
) -> ServiceContainer:
    return build_container(
        make_runtime_settings(**mercadolivre_overrides),
        cache=cache if cache is not None else MemoryCacheStore(),
        api=api if api is not None else FakeMercadoLivreApi(),
    )
