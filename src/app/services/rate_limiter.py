"""Rate limiter de janela deslizante sobre o cache compartilhado.

Cada chave guarda a lista ordenada de timestamps (epoch ms) das
requisições aceitas dentro da janela. A cada verificação:

1. Carrega a lista e descarta timestamps <= now - window_ms
2. Se o total atingiu max_requests: nega, calcula reset_time a partir do
   timestamp mais antigo e NÃO registra a requisição atual
3. Senão: registra `now` e grava a lista com TTL = janela

Falhas ou lentidão do cache liberam a requisição (fail-open): bloquear entregas
legítimas do webhook leva o marketplace a desativar a integração.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from utils.errors import InfrastructureError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from app.protocols.cache_store import AsyncCacheStoreProtocol

logger = logging.getLogger(__name__)

RATE_LIMIT_PREFIX = "rate_limit:"
DEFAULT_STORE_TIMEOUT_SECONDS = 0.05


@dataclass(frozen=True, slots=True)
class RateLimitResult:
    """Resultado de uma verificação.

    Attributes:
        allowed: Requisição liberada
        remaining: Requisições restantes na janela
        reset_time: Epoch ms em que a janela libera nova requisição
        total_hits: Requisições contabilizadas na janela
        retry_after: Segundos até nova tentativa (apenas quando negada)
    """

    allowed: bool
    remaining: int
    reset_time: int
    total_hits: int
    retry_after: int | None = None


@dataclass(frozen=True)
class RateLimitConfig:
    """Política aplicada a um identificador.

    Attributes:
        max_requests: Máximo de requisições na janela
        window_ms: Tamanho da janela em milissegundos
        scope: Escopo usado na chave padrão (ip, user, endpoint, webhook, login)
        key_generator: Gera a chave do bucket a partir do identificador
        skip_if: Libera sem contabilizar quando retorna True
        on_limit_reached: Callback disparado a cada negação
    """

    max_requests: int
    window_ms: int
    scope: str = "ip"
    key_generator: Callable[[str], str] | None = None
    skip_if: Callable[[str], bool] | None = None
    on_limit_reached: Callable[[str, RateLimitResult], None] | None = None

    def key_for(self, identifier: str) -> str:
        if self.key_generator is not None:
            return self.key_generator(identifier)
        return f"{RATE_LIMIT_PREFIX}{self.scope}:{identifier}"


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def _coerce_timestamps(raw: Any) -> list[int]:
    if not isinstance(raw, list):
        return []
    timestamps: list[int] = []
    for value in raw:
        if isinstance(value, bool):
            continue
        if isinstance(value, int | float):
            timestamps.append(int(value))
    return timestamps


class SlidingWindowRateLimiter:
    """Throttle de janela deslizante.

    Args:
        cache: Cache compartilhado onde vivem os buckets
        clock_ms: Relógio em epoch ms (injetável em testes)
        whitelist: Identificadores nunca limitados
        enabled: Quando False, toda verificação é liberada
        store_timeout_seconds: Prazo da ida e volta ao cache; estourado,
            a requisição é liberada
    """

    def __init__(
        self,
        cache: AsyncCacheStoreProtocol,
        clock_ms: Callable[[], int] | None = None,
        whitelist: Iterable[str] = (),
        enabled: bool = True,
        store_timeout_seconds: float = DEFAULT_STORE_TIMEOUT_SECONDS,
    ) -> None:
        self._cache = cache
        self._clock_ms = clock_ms or _epoch_ms
        self._whitelist = frozenset(whitelist)
        self._enabled = enabled
        self._store_timeout_seconds = store_timeout_seconds

    def is_whitelisted(self, identifier: str) -> bool:
        return identifier in self._whitelist

    async def check(self, identifier: str, config: RateLimitConfig) -> RateLimitResult:
        """Verifica e contabiliza uma requisição.

        Args:
            identifier: IP, user id, endpoint+IP, etc.
            config: Política aplicada.

        Returns:
            RateLimitResult com a decisão.
        """
        now = self._clock_ms()
        if (
            not self._enabled
            or self.is_whitelisted(identifier)
            or (config.skip_if is not None and config.skip_if(identifier))
        ):
            return RateLimitResult(
                allowed=True,
                remaining=config.max_requests,
                reset_time=now + config.window_ms,
                total_hits=0,
            )

        key = config.key_for(identifier)
        try:
            timestamps = await asyncio.wait_for(
                self._load_window(key, now, config),
                timeout=self._store_timeout_seconds,
            )
        except TimeoutError:
            return self._fail_open(now, config, "timeout")
        except InfrastructureError as exc:
            return self._fail_open(now, config, type(exc).__name__)

        if len(timestamps) >= config.max_requests:
            denied = self._denied(timestamps, now, config)
            logger.warning(
                "rate_limit_exceeded",
                extra={
                    "scope": config.scope,
                    "total_hits": denied.total_hits,
                    "retry_after": denied.retry_after,
                },
            )
            self._notify_limit_reached(identifier, denied, config)
            return denied

        timestamps.append(now)
        return RateLimitResult(
            allowed=True,
            remaining=config.max_requests - len(timestamps),
            reset_time=timestamps[0] + config.window_ms,
            total_hits=len(timestamps),
        )

    async def _load_window(self, key: str, now: int, config: RateLimitConfig) -> list[int]:
        """Lê o bucket podado e grava `now` quando ainda há espaço na janela."""
        stored = await self._cache.get(key)
        window_start = now - config.window_ms
        timestamps = sorted(ts for ts in _coerce_timestamps(stored) if ts > window_start)
        if len(timestamps) < config.max_requests:
            await self._cache.set(
                key,
                [*timestamps, now],
                ttl_seconds=max(1, math.ceil(config.window_ms / 1000)),
            )
        return timestamps

    def _fail_open(self, now: int, config: RateLimitConfig, error_type: str) -> RateLimitResult:
        logger.warning(
            "rate_limit_store_unavailable",
            extra={
                "scope": config.scope,
                "error_type": error_type,
                "decision": "fail_open",
            },
        )
        return RateLimitResult(
            allowed=True,
            remaining=config.max_requests,
            reset_time=now + config.window_ms,
            total_hits=0,
        )

    @staticmethod
    def _denied(timestamps: list[int], now: int, config: RateLimitConfig) -> RateLimitResult:
        # Mantém no máximo max_requests entradas (config pode ter encolhido)
        retained = timestamps[-config.max_requests :] if config.max_requests > 0 else []
        oldest = retained[0] if retained else now
        reset_time = oldest + config.window_ms
        return RateLimitResult(
            allowed=False,
            remaining=0,
            reset_time=reset_time,
            total_hits=len(timestamps),
            retry_after=max(1, math.ceil((reset_time - now) / 1000)),
        )

    @staticmethod
    def _notify_limit_reached(
        identifier: str,
        result: RateLimitResult,
        config: RateLimitConfig,
    ) -> None:
        if config.on_limit_reached is None:
            return
        try:
            config.on_limit_reached(identifier, result)
        except Exception:
            logger.exception("rate_limit_callback_failed", extra={"scope": config.scope})
