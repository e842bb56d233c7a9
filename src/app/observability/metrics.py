"""Registro de métricas via structured logging.

As métricas são registradas como logs estruturados e agregadas depois
pela plataforma de logs (ex: consultas por `metric_type`).

Métricas suportadas:
- Latência: tempo de execução por componente/operação
- Webhook: desfecho de cada notificação recebida (status HTTP, timeout)
- Recovery: resumo de cada execução de recuperação de missed feeds
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def record_latency(
    component: str,
    operation: str,
    latency_ms: float,
    correlation_id: str | None = None,
) -> None:
    """Registra latência de operação.

    Args:
        component: Nome do componente (ex: "topic_processor")
        operation: Nome da operação (ex: "item")
        latency_ms: Latência em milissegundos
        correlation_id: ID de correlação para rastreamento
    """
    extra: dict[str, object] = {
        "metric_type": "latency",
        "component": component,
        "operation": operation,
        "latency_ms": round(latency_ms, 2),
    }
    if correlation_id:
        extra["correlation_id"] = correlation_id
    logger.info("metric_latency", extra=extra)


def record_webhook_outcome(
    outcome: str,
    status_code: int,
    processing_time_ms: float,
    topic: str | None = None,
    timed_out: bool = False,
) -> None:
    """Registra desfecho de uma requisição de webhook.

    Args:
        outcome: Rótulo do desfecho (ex: "processed", "unauthorized", "timeout")
        status_code: Status HTTP devolvido ao marketplace
        processing_time_ms: Tempo total da requisição
        topic: Tópico, quando o payload chegou a ser validado
        timed_out: True se a resposta saiu pelo prazo
    """
    logger.info(
        "metric_webhook_outcome",
        extra={
            "metric_type": "webhook_outcome",
            "outcome": outcome,
            "status_code": status_code,
            "processing_time_ms": round(processing_time_ms, 2),
            "topic": topic,
            "timed_out": timed_out,
        },
    )


def record_recovery_run(
    tenant_id: str,
    processed: int,
    failed: int,
    skipped: int,
    duration_ms: int,
    dry_run: bool = False,
) -> None:
    """Registra resumo de uma execução de recuperação."""
    logger.info(
        "metric_recovery_run",
        extra={
            "metric_type": "recovery_run",
            "tenant_id": tenant_id,
            "processed": processed,
            "failed": failed,
            "skipped": skipped,
            "duration_ms": duration_ms,
            "dry_run": dry_run,
        },
    )
