"""Cache em memória — apenas para desenvolvimento e testes.

ATENÇÃO: Não usar em staging/production. Sem persistência entre reinícios
e sem compartilhamento entre processos.
"""

from __future__ import annotations

import fnmatch
import json
import time
from typing import TYPE_CHECKING, Any

from app.protocols.cache_store import AsyncCacheStoreProtocol

if TYPE_CHECKING:
    from collections.abc import Callable


class MemoryCacheStore(AsyncCacheStoreProtocol):
    """Cache key-value em memória com expiração por TTL.

    Valores são guardados serializados em JSON para reproduzir a
    semântica de cópia do backend Redis.

    Args:
        clock: Relógio em segundos (injetável em testes).
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._store: dict[str, tuple[str, float | None]] = {}  # key -> (json, expires_at)
        self._clock = clock or time.time

    def _live_entry(self, key: str) -> tuple[str, float | None] | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._store[key]
            return None
        return entry

    async def get(self, key: str) -> Any | None:
        entry = self._live_entry(key)
        if entry is None:
            return None
        return json.loads(entry[0])

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        self._store[key] = (json.dumps(value, default=str), expires_at)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._live_entry(key) is not None:
                del self._store[key]
                removed += 1
        return removed

    async def keys(self, pattern: str) -> list[str]:
        return [
            key
            for key in list(self._store)
            if fnmatch.fnmatchcase(key, pattern) and self._live_entry(key) is not None
        ]

    async def ping(self) -> bool:
        return True

    def ttl(self, key: str) -> float | None:
        """Segundos restantes até expirar (None = sem TTL ou ausente)."""
        entry = self._live_entry(key)
        if entry is None or entry[1] is None:
            return None
        return entry[1] - self._clock()
