"""Testes das políticas nomeadas de rate limit."""

from __future__ import annotations

import pytest

from app.infra.stores import MemoryCacheStore
from app.services.rate_limit_policies import RateLimitPolicies, is_marketplace_user_agent
from app.services.rate_limiter import SlidingWindowRateLimiter
from app.services.security_events import SecurityEventSink

ML_USER_AGENT = "MercadoLibre/1.0 (notifications)"


@pytest.fixture
def cache() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest.fixture
def sink() -> SecurityEventSink:
    return SecurityEventSink()


@pytest.fixture
def policies(cache: MemoryCacheStore, sink: SecurityEventSink) -> RateLimitPolicies:
    return RateLimitPolicies(SlidingWindowRateLimiter(cache), sink)


def test_is_marketplace_user_agent() -> None:
    assert is_marketplace_user_agent(ML_USER_AGENT)
    assert is_marketplace_user_agent("MercadoPago-Webhooks")
    assert not is_marketplace_user_agent("curl/8.0")
    assert not is_marketplace_user_agent(None)


@pytest.mark.asyncio
async def test_webhook_limit_depends_on_user_agent(policies: RateLimitPolicies) -> None:
    trusted = await policies.limit_webhook("54.88.218.97", ML_USER_AGENT)
    unknown = await policies.limit_webhook("54.88.218.97", "curl/8.0")

    assert trusted.remaining == 1999
    assert unknown.remaining == 99


@pytest.mark.asyncio
async def test_public_api_key_combines_endpoint_and_ip(
    policies: RateLimitPolicies,
    cache: MemoryCacheStore,
) -> None:
    await policies.limit_public_api("1.2.3.4", "recovery_missed_feeds")

    assert await cache.keys("rate_limit:public:*") == [
        "rate_limit:public:recovery_missed_feeds:1.2.3.4"
    ]


@pytest.mark.asyncio
async def test_login_most_restrictive_wins(policies: RateLimitPolicies) -> None:
    """Usuário (5/10min) esgota antes do IP (10/15min)."""
    results = [await policies.limit_login("1.2.3.4", "seller-1") for _ in range(6)]

    assert [r.allowed for r in results] == [True] * 5 + [False]
    assert results[0].remaining == 4


@pytest.mark.asyncio
async def test_login_ip_exhaustion_blocks_any_user(policies: RateLimitPolicies) -> None:
    for index in range(10):
        assert (await policies.limit_login("9.9.9.9", f"user-{index}")).allowed

    blocked = await policies.limit_login("9.9.9.9", "fresh-user")

    assert blocked.allowed is False


@pytest.mark.asyncio
async def test_denial_emits_security_event(
    policies: RateLimitPolicies,
    sink: SecurityEventSink,
) -> None:
    for _ in range(6):
        await policies.limit_login("1.2.3.4", "seller-1")

    events = sink.recent_events()
    assert len(events) == 1
    assert events[0].type.value == "security.rate_limit.exceeded"
    assert events[0].details["scope"] == "login_user"
    assert events[0].user_id == "seller-1"


@pytest.mark.asyncio
async def test_daily_and_app_ceilings_use_marketplace_keys(
    policies: RateLimitPolicies,
    cache: MemoryCacheStore,
) -> None:
    daily = await policies.limit_user_daily("123")
    hourly = await policies.limit_app_hourly()

    assert daily.remaining == 4999
    assert hourly.remaining == 999
    assert sorted(await cache.keys("ml_rate_limit:*")) == [
        "ml_rate_limit:app:global",
        "ml_rate_limit:user:123:daily",
    ]
