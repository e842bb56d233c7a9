"""Testes do RedisCacheStore com mock."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.infra.stores import RedisCacheStore
from utils.errors import CacheUnavailableError


class TestRedisCacheStore:
    """Testes do RedisCacheStore."""

    @pytest.mark.asyncio
    async def test_set_serializes_json_with_ttl(self) -> None:
        redis = MagicMock()
        redis.set = AsyncMock(return_value=True)
        store = RedisCacheStore(redis)

        await store.set("rate_limit:ip:1.2.3.4", [1000, 2000], ttl_seconds=60)

        redis.set.assert_awaited_once_with("rate_limit:ip:1.2.3.4", "[1000, 2000]", ex=60)

    @pytest.mark.asyncio
    async def test_get_decodes_bytes(self) -> None:
        redis = MagicMock()
        redis.get = AsyncMock(return_value=json.dumps({"status": "completed"}).encode())
        store = RedisCacheStore(redis)

        assert await store.get("processed_feed:abc") == {"status": "completed"}

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self) -> None:
        redis = MagicMock()
        redis.get = AsyncMock(return_value=None)

        assert await RedisCacheStore(redis).get("order:404") is None

    @pytest.mark.asyncio
    async def test_keys_uses_scan_iter(self) -> None:
        async def _scan_iter(match: str, count: int):
            assert match == "processed_feed:*"
            for key in (b"processed_feed:a", b"processed_feed:b"):
                yield key

        redis = MagicMock()
        redis.scan_iter = _scan_iter

        keys = await RedisCacheStore(redis).keys("processed_feed:*")

        assert keys == ["processed_feed:a", "processed_feed:b"]

    @pytest.mark.asyncio
    async def test_delete_without_keys_skips_redis(self) -> None:
        redis = MagicMock()
        redis.delete = AsyncMock()

        assert await RedisCacheStore(redis).delete() == 0
        redis.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_connection_failure_raises_cache_unavailable(self) -> None:
        """Falha de conexão vira CacheUnavailableError."""
        redis = MagicMock()
        redis.get = AsyncMock(side_effect=ConnectionError("boom"))
        store = RedisCacheStore(redis)

        with pytest.raises(CacheUnavailableError, match="Falha ao ler chave"):
            await store.get("user:123")
