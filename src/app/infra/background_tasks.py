"""Registro de tasks assíncronas que sobrevivem à resposta HTTP.

Dois usos:
- Processamento de webhook abandonado pelo dispatcher após o prazo
  (a task segue rodando e não é cancelada)
- Envio de alertas de segurança fora do caminho da requisição

No shutdown, `drain` aguarda as pendentes e cancela o que restar.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Coroutine

logger = logging.getLogger(__name__)


class BackgroundTaskRegistry:
    """Mantém referência forte às tasks até concluírem.

    Args:
        name: Rótulo usado nos logs (ex: "webhook", "security_alerts")
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._active: set[asyncio.Task[Any]] = set()

    @property
    def active_count(self) -> int:
        return len(self._active)

    def spawn(
        self,
        coroutine: Coroutine[Any, Any, Any],
        *,
        correlation_id: str = "",
    ) -> asyncio.Task[Any]:
        """Cria task a partir da coroutine e a registra."""
        task = asyncio.create_task(coroutine)
        self.adopt(task, correlation_id=correlation_id)
        return task

    def adopt(
        self,
        task: asyncio.Task[Any],
        *,
        correlation_id: str = "",
        topic: str | None = None,
    ) -> int:
        """Registra task já em execução. Retorna quantas estão ativas."""
        self._active.add(task)
        task.add_done_callback(self._on_task_done)
        logger.info(
            "background_task_adopted",
            extra={
                "registry": self._name,
                "correlation_id": correlation_id or None,
                "topic": topic,
                "active_tasks": len(self._active),
            },
        )
        return len(self._active)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._active.discard(task)
        with contextlib.suppress(asyncio.CancelledError):
            exc = task.exception()
            if exc is not None:
                logger.error(
                    "background_task_failed",
                    extra={
                        "registry": self._name,
                        "error_type": type(exc).__name__,
                        "active_tasks": len(self._active),
                    },
                )

    async def drain(self, timeout_seconds: float = 30.0) -> int:
        """Aguarda tasks pendentes durante shutdown.

        Returns:
            Quantidade de tasks canceladas por estourar o timeout.
        """
        if not self._active:
            return 0

        pending_now = list(self._active)
        logger.info(
            "background_tasks_shutdown_wait",
            extra={
                "registry": self._name,
                "pending_tasks": len(pending_now),
                "timeout_seconds": timeout_seconds,
            },
        )
        _, pending = await asyncio.wait(pending_now, timeout=timeout_seconds)
        if not pending:
            return 0

        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        logger.warning(
            "background_tasks_shutdown_cancelled",
            extra={"registry": self._name, "cancelled_tasks": len(pending)},
        )
        return len(pending)
