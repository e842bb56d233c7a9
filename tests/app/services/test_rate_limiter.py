"""Testes do SlidingWindowRateLimiter."""

from __future__ import annotations

import asyncio
import logging
import time
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.infra.stores import MemoryCacheStore
from app.services.rate_limiter import RateLimitConfig, SlidingWindowRateLimiter
from utils.errors import CacheUnavailableError

WINDOW_MS = 60_000


class MsClock:
    def __init__(self, now: int = 1_700_000_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock() -> MsClock:
    return MsClock()


@pytest.fixture
def cache() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest.fixture
def limiter(cache: MemoryCacheStore, clock: MsClock) -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(cache, clock_ms=clock)


class TestSlidingWindow:
    """Janela deslizante com max_requests=3, window=60s."""

    @pytest.mark.asyncio
    async def test_fourth_request_is_rejected_then_window_slides(
        self,
        limiter: SlidingWindowRateLimiter,
        clock: MsClock,
    ) -> None:
        config = RateLimitConfig(max_requests=3, window_ms=WINDOW_MS)
        first_at = clock.now

        results = []
        for _ in range(3):
            results.append(await limiter.check("1.2.3.4", config))
            clock.now += 1_000

        assert [r.allowed for r in results] == [True, True, True]
        assert [r.remaining for r in results] == [2, 1, 0]

        denied = await limiter.check("1.2.3.4", config)
        assert denied.allowed is False
        assert denied.remaining == 0
        assert denied.total_hits == 3
        assert denied.reset_time == first_at + WINDOW_MS
        assert denied.retry_after == 57

        clock.now = first_at + WINDOW_MS + 1
        again = await limiter.check("1.2.3.4", config)
        assert again.allowed is True
        assert again.total_hits == 3

    @pytest.mark.asyncio
    async def test_denied_request_is_not_recorded(
        self,
        limiter: SlidingWindowRateLimiter,
        cache: MemoryCacheStore,
    ) -> None:
        config = RateLimitConfig(max_requests=1, window_ms=WINDOW_MS, scope="user")

        await limiter.check("u1", config)
        await limiter.check("u1", config)
        await limiter.check("u1", config)

        assert len(await cache.get("rate_limit:user:u1")) == 1

    @pytest.mark.asyncio
    async def test_bucket_ttl_matches_window(
        self,
        limiter: SlidingWindowRateLimiter,
        cache: MemoryCacheStore,
    ) -> None:
        await limiter.check("ip", RateLimitConfig(max_requests=5, window_ms=90_500))

        ttl = cache.ttl("rate_limit:ip:ip")
        assert ttl is not None and 90 < ttl <= 91

    @pytest.mark.asyncio
    async def test_identifiers_are_isolated(self, limiter: SlidingWindowRateLimiter) -> None:
        config = RateLimitConfig(max_requests=1, window_ms=WINDOW_MS)

        assert (await limiter.check("a", config)).allowed
        assert (await limiter.check("b", config)).allowed
        assert not (await limiter.check("a", config)).allowed


class TestBypassAndCallbacks:
    @pytest.mark.asyncio
    async def test_whitelist_and_skip_if_bypass(self, cache: MemoryCacheStore) -> None:
        limiter = SlidingWindowRateLimiter(cache, whitelist=["10.0.0.1"])
        config = RateLimitConfig(
            max_requests=1,
            window_ms=WINDOW_MS,
            skip_if=lambda identifier: identifier.startswith("internal"),
        )

        for _ in range(3):
            assert (await limiter.check("10.0.0.1", config)).allowed
            assert (await limiter.check("internal-job", config)).allowed
        assert await cache.keys("rate_limit:*") == []

    @pytest.mark.asyncio
    async def test_disabled_limiter_allows_everything(self, cache: MemoryCacheStore) -> None:
        limiter = SlidingWindowRateLimiter(cache, enabled=False)
        config = RateLimitConfig(max_requests=0, window_ms=WINDOW_MS)

        assert (await limiter.check("x", config)).allowed

    @pytest.mark.asyncio
    async def test_on_limit_reached_called_on_every_denial(
        self,
        limiter: SlidingWindowRateLimiter,
    ) -> None:
        callback = MagicMock()
        config = RateLimitConfig(max_requests=1, window_ms=WINDOW_MS, on_limit_reached=callback)

        await limiter.check("ip", config)
        await limiter.check("ip", config)
        await limiter.check("ip", config)

        assert callback.call_count == 2
        identifier, result = callback.call_args[0]
        assert identifier == "ip"
        assert result.allowed is False

    @pytest.mark.asyncio
    async def test_callback_failure_does_not_change_decision(
        self,
        limiter: SlidingWindowRateLimiter,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        caplog.set_level(logging.INFO)
        config = RateLimitConfig(
            max_requests=0,
            window_ms=WINDOW_MS,
            on_limit_reached=MagicMock(side_effect=RuntimeError("sink down")),
        )

        result = await limiter.check("ip", config)

        assert result.allowed is False
        assert any(r.getMessage() == "rate_limit_callback_failed" for r in caplog.records)


class TestFailOpen:
    @pytest.mark.asyncio
    async def test_store_failure_allows_request(
        self,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Cache indisponível libera a requisição e registra a decisão."""
        caplog.set_level(logging.INFO)
        cache = MagicMock()
        cache.get = AsyncMock(side_effect=CacheUnavailableError("redis down"))
        limiter = SlidingWindowRateLimiter(cache)

        result = await limiter.check("1.2.3.4", RateLimitConfig(max_requests=1, window_ms=1000))

        assert result.allowed is True
        record = next(r for r in caplog.records if r.getMessage() == "rate_limit_store_unavailable")
        assert record.decision == "fail_open"

    @pytest.mark.asyncio
    async def test_slow_store_allows_request_within_store_timeout(
        self,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Cache lento não segura a requisição além do prazo do store."""
        caplog.set_level(logging.INFO)

        async def slow_get(key: str) -> None:
            await asyncio.sleep(1.0)

        cache = MagicMock()
        cache.get = AsyncMock(side_effect=slow_get)
        cache.set = AsyncMock()
        limiter = SlidingWindowRateLimiter(cache, store_timeout_seconds=0.02)

        started_at = time.perf_counter()
        result = await limiter.check("1.2.3.4", RateLimitConfig(max_requests=1, window_ms=1000))
        elapsed = time.perf_counter() - started_at

        assert result.allowed is True
        assert elapsed < 0.5
        cache.set.assert_not_called()
        record = next(r for r in caplog.records if r.getMessage() == "rate_limit_store_unavailable")
        assert record.error_type == "timeout"
        assert record.decision == "fail_open"
