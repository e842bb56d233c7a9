"""Stores — implementações concretas do cache compartilhado.

Módulos disponíveis:
    - redis_cache_store: Cache usando Redis
    - memory_cache_store: Cache em memória para desenvolvimento/testes
"""

from __future__ import annotations

from app.infra.stores.memory_cache_store import MemoryCacheStore
from app.infra.stores.redis_cache_store import RedisCacheStore

__all__ = [
    # Memory (dev/test)
    "MemoryCacheStore",
    # Redis
    "RedisCacheStore",
]
