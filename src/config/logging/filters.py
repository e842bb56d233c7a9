"""Filters de logging para injeção de contexto e mascaramento.

Campos injetados:
- correlation_id: ID de rastreamento da requisição
- service: Nome do serviço (ex: peepers_webhooks)

Campos mascarados: credenciais que eventualmente cheguem via `extra`
(access_token, refresh_token, secrets e assinaturas de webhook).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

SENSITIVE_FIELDS = frozenset(
    {
        "access_token",
        "refresh_token",
        "token",
        "client_secret",
        "webhook_secret",
        "signature",
        "authorization",
    }
)

REDACTED = "***"


class CorrelationIdFilter(logging.Filter):
    """Injeta correlation_id e service em cada record de log.

    Se correlation_id já foi passado via `extra`, o valor é preservado.
    """

    def __init__(
        self,
        service_name: str,
        correlation_id_getter: Callable[[], str] | None = None,
    ) -> None:
        super().__init__()
        self._service_name = service_name
        self._get_correlation_id = correlation_id_getter or (lambda: "")

    def filter(self, record: logging.LogRecord) -> bool:
        existing = getattr(record, "correlation_id", None)
        record.correlation_id = existing if existing else self._get_correlation_id()
        record.service = self._service_name
        for field_name in SENSITIVE_FIELDS:
            if getattr(record, field_name, None):
                setattr(record, field_name, REDACTED)
        return True
