"""Settings de rate limiting."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from config.settings.base.core import parse_bool, parse_csv


@dataclass(frozen=True)
class RateLimitSettings:
    """Configurações de rate limiting.

    Attributes:
        enabled: Desliga todas as políticas quando False
        whitelist: Identificadores (IPs, user ids) nunca limitados
        store_timeout_ms: Prazo da ida e volta ao cache por verificação
    """

    enabled: bool = True
    whitelist: tuple[str, ...] = ()
    store_timeout_ms: int = 50

    def validate(self) -> list[str]:
        errors: list[str] = []
        if any(" " in item for item in self.whitelist):
            errors.append("RATE_LIMIT_WHITELIST contém entrada com espaço")
        if self.store_timeout_ms <= 0:
            errors.append("RATE_LIMIT_STORE_TIMEOUT_MS deve ser positivo")
        return errors


def _load_rate_limit_from_env() -> RateLimitSettings:
    """Carrega RateLimitSettings de variáveis de ambiente."""
    return RateLimitSettings(
        enabled=parse_bool(os.getenv("RATE_LIMIT_ENABLED"), default=True),
        whitelist=parse_csv(os.getenv("RATE_LIMIT_WHITELIST")),
        store_timeout_ms=int(os.getenv("RATE_LIMIT_STORE_TIMEOUT_MS", "50")),
    )


@lru_cache(maxsize=1)
def get_rate_limit_settings() -> RateLimitSettings:
    """Retorna instância cacheada de RateLimitSettings."""
    return _load_rate_limit_from_env()
