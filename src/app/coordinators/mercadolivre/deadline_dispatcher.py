"""Dispatcher com prazo rígido para o processamento do webhook.

O marketplace desativa a integração quando as respostas passam de 500ms
com frequência. O processamento real (cache + API) não tem limite
superior, então ele corre contra um timer de `deadline - buffer`:

- Processamento termina antes: a resposta carrega o resultado (sucesso ou
  erro interno, sempre status 200)
- Prazo já consumido antes do despacho: responde
  direto com o corpo de timeout, sem dar à task a chance de rodar
- Timer vence: responde `{received: true, timeout: true}` e a task segue
  em background (abandonada, nunca cancelada) até concluir

A durabilidade não vem daqui e sim da recuperação de missed feeds.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from app.infra.background_tasks import BackgroundTaskRegistry
from app.observability import get_correlation_id
from config.logging import log_deadline_exceeded

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine

logger = logging.getLogger(__name__)

DEFAULT_DEADLINE_MS = 500
DEFAULT_SAFETY_BUFFER_MS = 25


@dataclass(frozen=True, slots=True)
class DispatchOutcome:
    """Corpo da resposta e como ela foi decidida."""

    body: dict[str, Any]
    timed_out: bool
    elapsed_ms: float

    @property
    def succeeded(self) -> bool:
        return bool(self.body.get("success")) and not self.timed_out


def internal_error_body(processing_time_ms: float) -> dict[str, Any]:
    """Corpo 200 para erro interno (o marketplace nunca vê 5xx)."""
    return {
        "received": True,
        "success": False,
        "error": "internal_error",
        "processing_time_ms": round(processing_time_ms, 2),
    }


class DeadlineDispatcher:
    """Corre o processamento contra o prazo restante da requisição.

    Args:
        deadline_ms: Prazo rígido imposto pelo marketplace
        safety_buffer_ms: Margem subtraída do prazo
        background: Registro das tasks abandonadas (drenado no shutdown)
        clock: Relógio monotônico em segundos
    """

    def __init__(
        self,
        deadline_ms: int = DEFAULT_DEADLINE_MS,
        safety_buffer_ms: int = DEFAULT_SAFETY_BUFFER_MS,
        background: BackgroundTaskRegistry | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        if not 0 <= safety_buffer_ms < deadline_ms:
            raise ValueError("safety_buffer_ms deve estar entre 0 e deadline_ms")
        self._deadline_ms = deadline_ms
        self._safety_buffer_ms = safety_buffer_ms
        self._background = background or BackgroundTaskRegistry("webhook_processing")
        self._clock = clock

    @property
    def effective_deadline_ms(self) -> int:
        return self._deadline_ms - self._safety_buffer_ms

    @property
    def background(self) -> BackgroundTaskRegistry:
        return self._background

    async def dispatch(
        self,
        work: Callable[[], Coroutine[Any, Any, dict[str, Any]]],
        *,
        topic: str | None = None,
        started_at: float | None = None,
    ) -> DispatchOutcome:
        """Executa `work` dentro do prazo restante.

        Args:
            work: Fábrica da coroutine de processamento; retorna o corpo
                da resposta em caso de sucesso.
            topic: Tópico (apenas para logs).
            started_at: Instante (clock) em que a requisição chegou; o tempo
                já gasto com rate limit, autenticação e parse sai do prazo.

        Returns:
            DispatchOutcome. Nunca levanta exceção de processamento.
        """
        start = self._clock() if started_at is None else started_at
        budget_seconds = max(
            0.0,
            self.effective_deadline_ms / 1000 - (self._clock() - start),
        )

        try:
            task = asyncio.create_task(work())
        except Exception:
            elapsed_ms = (self._clock() - start) * 1000
            logger.exception("webhook_dispatch_start_failed", extra={"topic": topic})
            return DispatchOutcome(internal_error_body(elapsed_ms), False, elapsed_ms)

        if budget_seconds <= 0:
            # Prazo consumido antes do processamento: a resposta não espera a task
            return self._abandon(task, topic, (self._clock() - start) * 1000)

        try:
            done, _ = await asyncio.wait({task}, timeout=budget_seconds)
        except asyncio.CancelledError:
            # Requisição cancelada (cliente desconectou): a task segue sozinha
            self._background.adopt(task, correlation_id=get_correlation_id(), topic=topic)
            raise

        elapsed_ms = (self._clock() - start) * 1000
        if task not in done:
            return self._abandon(task, topic, elapsed_ms)

        if task.cancelled():
            logger.warning("webhook_processing_cancelled", extra={"topic": topic})
            return DispatchOutcome(internal_error_body(elapsed_ms), False, elapsed_ms)

        exc = task.exception()
        if exc is not None:
            logger.error(
                "webhook_processing_error",
                extra={"topic": topic, "error_type": type(exc).__name__},
                exc_info=exc,
            )
            return DispatchOutcome(internal_error_body(elapsed_ms), False, elapsed_ms)

        body = {
            "received": True,
            **task.result(),
            "processing_time_ms": round(elapsed_ms, 2),
        }
        return DispatchOutcome(body, False, elapsed_ms)

    def _abandon(
        self,
        task: asyncio.Task[dict[str, Any]],
        topic: str | None,
        elapsed_ms: float,
    ) -> DispatchOutcome:
        self._background.adopt(task, correlation_id=get_correlation_id(), topic=topic)
        log_deadline_exceeded(
            logger,
            "webhook_dispatcher",
            self.effective_deadline_ms,
            elapsed_ms,
            topic,
        )
        body = {
            "received": True,
            "timeout": True,
            "processing_time_ms": round(elapsed_ms, 2),
        }
        return DispatchOutcome(body, True, elapsed_ms)
