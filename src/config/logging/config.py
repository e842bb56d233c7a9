"""Configuração centralizada de logging.

Funções para configurar logging estruturado JSON com:
- Campos obrigatórios (correlation_id, service, level, logger, message)
- Nível configurável por ambiente (LOG_LEVEL)

Uso:
    from config.logging import configure_logging, get_logger

    configure_logging(level="INFO", service_name="peepers_webhooks")

    logger = get_logger(__name__)
    logger.info("recovery_completed", extra={"processed": 12})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from config.logging.filters import CorrelationIdFilter
from config.logging.formatters import create_json_formatter

if TYPE_CHECKING:
    from collections.abc import Callable

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

DEFAULT_SERVICE_NAME = "peepers_webhooks"


def configure_logging(
    level: str = "INFO",
    service_name: str = DEFAULT_SERVICE_NAME,
    correlation_id_getter: Callable[[], str] | None = None,
) -> None:
    """Configura logging JSON estruturado para o serviço.

    Deve ser chamada uma vez na inicialização do serviço (app/bootstrap/).

    Args:
        level: Nível de log (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        service_name: Nome do serviço para identificação nos logs.
        correlation_id_getter: Função opcional que retorna o correlation_id
            do contexto atual (ex: de ContextVar).

    Raises:
        ValueError: Se o nível de log for inválido.
    """
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Nível de log inválido: {level}. "
            f"Válidos: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )

    formatter = create_json_formatter()

    handler = logging.StreamHandler()
    handler.setLevel(level_upper)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter(service_name, correlation_id_getter))

    root = logging.getLogger()
    root.setLevel(level_upper)
    # Substituir handlers existentes para evitar duplicação
    root.handlers = [handler]


def get_logger(name: str) -> logging.Logger:
    """Retorna logger para o módulo especificado.

    O filter injeta automaticamente service e correlation_id.
    """
    return logging.getLogger(name)


def log_deadline_exceeded(
    logger: logging.Logger,
    component: str,
    deadline_ms: int,
    elapsed_ms: float,
    topic: str | None = None,
) -> None:
    """Log observável de resposta emitida por estouro de prazo.

    O processamento continua em background; este log registra apenas
    que a resposta saiu antes do término.

    Args:
        logger: Logger instance.
        component: Nome do componente (ex: "webhook_dispatcher").
        deadline_ms: Prazo efetivo aplicado (já descontado o buffer).
        elapsed_ms: Tempo decorrido desde o recebimento da requisição.
        topic: Tópico da notificação, quando conhecido.

    Exemplo:
        log_deadline_exceeded(logger, "webhook_dispatcher", 475, 476.2, "items")
    """
    extra: dict[str, object] = {
        "deadline_exceeded": True,
        "component": component,
        "deadline_ms": deadline_ms,
        "elapsed_ms": round(elapsed_ms, 2),
    }
    if topic:
        extra["topic"] = topic

    logger.warning(
        "Deadline exceeded for %s",
        component,
        extra=extra,
    )
