"""Protocolo do cache compartilhado (key-value com TTL).

Interface leve (ABC) dependida por Application. Valores são
serializáveis em JSON; nenhuma operação transacional é assumida.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class AsyncCacheStoreProtocol(ABC):
    """Contrato assíncrono do cache.

    Métodos canônicos:
    - get(key) -> valor decodificado ou None
    - set(key, value, ttl_seconds) -> grava (sobrescreve) com TTL opcional
    - delete(*keys) -> quantidade removida
    - keys(pattern) -> chaves que casam com o glob
    - ping() -> True se o backend responde

    Falhas de backend são levantadas como CacheUnavailableError.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Lê valor da chave.

        Args:
            key: Chave completa (ex: "processed_feed:abc")

        Returns:
            Valor decodificado ou None se ausente/expirado.
        """

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Grava valor, sobrescrevendo o anterior.

        Args:
            key: Chave completa
            value: Valor serializável em JSON
            ttl_seconds: Expiração em segundos (None = sem expiração)
        """

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Remove chaves e retorna quantas existiam."""

    @abstractmethod
    async def keys(self, pattern: str) -> list[str]:
        """Lista chaves que casam com o padrão glob (ex: "processed_feed:*")."""

    @abstractmethod
    async def ping(self) -> bool:
        """Verifica disponibilidade do backend."""
