"""Redis Cache Store — cache compartilhado com Redis (Upstash compatível).

Valores são gravados em JSON; toda escrita é sobrescrita (last-write-wins)
com TTL via SET EX. Não há transações nem locks.

Contrato de Keys:
    Keys são IDs opacos com namespace (ex.: "processed_feed:{id}").
    Keys são logadas parcialmente em DEBUG.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from app.protocols.cache_store import AsyncCacheStoreProtocol
from utils.errors import CacheUnavailableError

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)

SCAN_BATCH_SIZE = 200


def _mask_key(key: str) -> str:
    return key[:24] + "..." if len(key) > 24 else key


class RedisCacheStore(AsyncCacheStoreProtocol):
    """Cache assíncrono sobre redis.asyncio.

    Args:
        async_redis_client: Cliente Redis assíncrono (decode_responses=False)
    """

    def __init__(self, async_redis_client: AsyncRedis) -> None:
        self._redis = async_redis_client

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self._redis.get(key)
        except Exception as exc:
            raise CacheUnavailableError("Falha ao ler chave no Redis") from exc

        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("cache_value_not_json", extra={"key": _mask_key(key)})
            return raw

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        payload = json.dumps(value, default=str)
        try:
            await self._redis.set(key, payload, ex=ttl_seconds or None)
        except Exception as exc:
            raise CacheUnavailableError("Falha ao gravar chave no Redis") from exc
        logger.debug("cache_set", extra={"key": _mask_key(key), "ttl": ttl_seconds})

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return int(await self._redis.delete(*keys))
        except Exception as exc:
            raise CacheUnavailableError("Falha ao remover chaves no Redis") from exc

    async def keys(self, pattern: str) -> list[str]:
        found: list[str] = []
        try:
            async for raw_key in self._redis.scan_iter(match=pattern, count=SCAN_BATCH_SIZE):
                found.append(raw_key.decode("utf-8") if isinstance(raw_key, bytes) else raw_key)
        except Exception as exc:
            raise CacheUnavailableError("Falha ao listar chaves no Redis") from exc
        return found

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except Exception as exc:
            raise CacheUnavailableError("Falha no ping do Redis") from exc
