"""Settings do cache compartilhado.

O cache guarda buckets de rate limit, markers de processamento,
credenciais por tenant e o estado das entidades sincronizadas.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Literal

from config.settings.base.core import parse_environment

if TYPE_CHECKING:
    from config.settings.base.core import BaseSettings

CacheBackend = Literal["memory", "redis"]


@dataclass(frozen=True)
class CacheSettings:
    """Configurações do cache.

    Attributes:
        backend: Backend do cache (memory|redis)
        operation_timeout_seconds: Timeout de socket por operação
    """

    backend: CacheBackend = "memory"
    operation_timeout_seconds: float = 5.0

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida configurações de cache.

        Args:
            base: BaseSettings para verificar ambiente.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.backend not in ("memory", "redis"):
            errors.append(f"CACHE_BACKEND inválido: {self.backend}")

        if self.backend == "memory" and not base.is_development:
            errors.append(
                "CACHE_BACKEND=memory proibido em staging/production. Use Redis."
            )

        if self.backend == "redis" and not base.redis_url:
            errors.append("CACHE_BACKEND=redis requer REDIS_URL configurado")

        if self.operation_timeout_seconds <= 0:
            errors.append("CACHE_OPERATION_TIMEOUT_SECONDS deve ser > 0")

        return errors


def _load_cache_from_env() -> CacheSettings:
    """Carrega CacheSettings de variáveis de ambiente."""
    environment = parse_environment(os.getenv("ENVIRONMENT", "development"))
    default_backend = "memory" if environment == "development" else "redis"
    backend_str = os.getenv("CACHE_BACKEND", default_backend).lower()
    backend: CacheBackend = backend_str if backend_str in ("memory", "redis") else "memory"
    return CacheSettings(
        backend=backend,
        operation_timeout_seconds=float(os.getenv("CACHE_OPERATION_TIMEOUT_SECONDS", "5.0")),
    )


@lru_cache(maxsize=1)
def get_cache_settings() -> CacheSettings:
    """Retorna instância cacheada de CacheSettings."""
    return _load_cache_from_env()
