"""Caso de uso: processar uma notificação com garantia de idempotência.

Compartilhado pelo webhook (push) e pela recuperação de missed feeds (pull):
ambos passam pelo mesmo marker, então uma notificação entregue pelos dois
caminhos só produz efeitos uma vez.

Fluxo:
1. Marker `completed` existente -> "skipped" (processor não é chamado)
2. Grava marker `processing` com attempts incrementado
3. Executa TopicProcessor
4. Grava `completed` ou `failed`
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from app.services.processed_markers import ProcessedMarkerStore
    from app.services.topic_processor import TopicProcessor

logger = logging.getLogger(__name__)

ProcessingOutcome = Literal["completed", "failed", "skipped"]


class ProcessNotificationUseCase:
    """Executa o TopicProcessor protegido pelo ProcessedMarkerStore."""

    def __init__(
        self,
        markers: ProcessedMarkerStore,
        processor: TopicProcessor,
    ) -> None:
        self._markers = markers
        self._processor = processor

    async def execute(
        self,
        *,
        notification_id: str,
        topic: str,
        resource: str,
        tenant_id: str,
        source: str,
    ) -> ProcessingOutcome:
        """Processa a notificação uma única vez.

        Falhas do processor são capturadas e registradas no marker `failed`.
        Falhas ao ler/gravar o marker propagam (CacheUnavailableError).

        Returns:
            "completed", "failed" ou "skipped" (já concluída antes).
        """
        previous = await self._markers.get(notification_id)
        if previous is not None and previous.is_completed:
            logger.info(
                "notification_already_processed",
                extra={"notification_id": notification_id, "topic": topic, "source": source},
            )
            return "skipped"

        attempts = (previous.attempts if previous is not None else 0) + 1
        await self._markers.mark_processing(
            notification_id,
            topic=topic,
            resource=resource,
            attempts=attempts,
            source=source,
        )

        try:
            await self._processor.process(topic, resource, tenant_id=tenant_id, source=source)
        except Exception as exc:
            logger.warning(
                "notification_processing_failed",
                extra={
                    "notification_id": notification_id,
                    "topic": topic,
                    "source": source,
                    "attempts": attempts,
                    "error_type": type(exc).__name__,
                },
            )
            await self._markers.mark_failed(
                notification_id,
                topic=topic,
                resource=resource,
                attempts=attempts,
                source=source,
                error=type(exc).__name__,
            )
            return "failed"

        await self._markers.mark_completed(
            notification_id,
            topic=topic,
            resource=resource,
            attempts=attempts,
            source=source,
        )
        logger.info(
            "notification_processed",
            extra={"notification_id": notification_id, "topic": topic, "source": source},
        )
        return "completed"
