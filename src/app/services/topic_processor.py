"""Processamento de notificações por tópico.

Cada handler busca o estado atual da entidade na API do marketplace,
sobrescreve a chave canônica no cache e invalida agregados que a
entidade afeta. Reexecutar a mesma notificação resulta no mesmo estado
final (sobrescrita, nunca incremento), o que torna seguro o processamento
que termina depois da resposta HTTP.
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.domain.topic_events import (
    ItemEvent,
    MessageEvent,
    OrderEvent,
    QuestionEvent,
    UnrecognizedEvent,
    to_topic_event,
)
from app.observability.metrics import record_latency

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.domain.topic_events import TopicEvent
    from app.protocols.cache_store import AsyncCacheStoreProtocol
    from app.protocols.marketplace_client import MercadoLivreApiProtocol
    from app.services.tenant_credentials import TenantCredentialsResolver

logger = logging.getLogger(__name__)

ORDER_TTL_SECONDS = 3600
PRODUCT_TTL_SECONDS = 21600  # 6h
QUESTION_TTL_SECONDS = 3600
MESSAGE_TTL_SECONDS = 3600

# Listagens agregadas invalidadas quando um anúncio muda
PRODUCT_AGGREGATE_KEYS = ("products:all", "products:active")


class TopicProcessor:
    """Despacha a notificação para o handler do tópico.

    Args:
        cache: Cache compartilhado
        api: Cliente da API do Mercado Livre
        credentials: Resolução de token por tenant
        clock: Relógio UTC (injetável em testes)
    """

    def __init__(
        self,
        cache: AsyncCacheStoreProtocol,
        api: MercadoLivreApiProtocol,
        credentials: TenantCredentialsResolver,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._cache = cache
        self._api = api
        self._credentials = credentials
        self._clock = clock or (lambda: datetime.now(UTC))

    async def process(
        self,
        topic: str,
        resource: str,
        *,
        tenant_id: str,
        source: str = "webhook",
    ) -> TopicEvent:
        """Processa uma notificação.

        Args:
            topic: Tópico da notificação
            resource: Recurso afetado (ex: "/items/MLB123")
            tenant_id: Tenant dono das credenciais
            source: Origem gravada junto ao estado (webhook|missed_feed_recovery)

        Returns:
            Evento tipado que foi processado (ou ignorado).

        Raises:
            CredentialsUnavailableError: Tenant sem token válido.
            MarketplaceApiError: Falha ao consultar a API.
            CacheUnavailableError: Falha ao gravar no cache.
        """
        event = to_topic_event(topic, resource)
        if isinstance(event, UnrecognizedEvent):
            logger.info(
                "topic_ignored",
                extra={"topic": event.topic, "reason": event.reason},
            )
            return event

        started_at = time.perf_counter()
        credentials = await self._credentials.resolve(tenant_id)
        token = credentials.access_token

        if isinstance(event, OrderEvent):
            await self._handle_order(event, token, source)
        elif isinstance(event, ItemEvent):
            await self._handle_item(event, token, source)
        elif isinstance(event, QuestionEvent):
            await self._handle_question(event, token, source)
        elif isinstance(event, MessageEvent):
            await self._handle_message(event, token, source)

        record_latency(
            "topic_processor",
            event.kind,
            (time.perf_counter() - started_at) * 1000,
        )
        return event

    def _stamp(self, data: dict[str, Any], source: str) -> dict[str, Any]:
        return {**data, "last_updated": self._clock().isoformat(), "source": source}

    async def _handle_order(self, event: OrderEvent, token: str, source: str) -> None:
        order = await self._api.get_order(event.order_id, token)
        await self._cache.set(
            f"order:{event.order_id}",
            self._stamp(order, source),
            ttl_seconds=ORDER_TTL_SECONDS,
        )
        logger.info(
            "order_refreshed",
            extra={"order_id": event.order_id, "order_status": order.get("status")},
        )

    async def _handle_item(self, event: ItemEvent, token: str, source: str) -> None:
        item = await self._api.get_item(event.item_id, token)
        await self._cache.set(
            f"product:{event.item_id}",
            self._stamp(item, source),
            ttl_seconds=PRODUCT_TTL_SECONDS,
        )
        await self._cache.delete(*PRODUCT_AGGREGATE_KEYS)
        logger.info(
            "item_refreshed",
            extra={"item_id": event.item_id, "item_status": item.get("status")},
        )

    async def _handle_question(self, event: QuestionEvent, token: str, source: str) -> None:
        question = await self._api.get_question(event.question_id, token)
        await self._cache.set(
            f"question:{event.question_id}",
            self._stamp(question, source),
            ttl_seconds=QUESTION_TTL_SECONDS,
        )
        item_id = question.get("item_id")
        if item_id:
            await self._cache.delete(f"questions:{item_id}")
        logger.info(
            "question_refreshed",
            extra={
                "question_id": event.question_id,
                "question_status": question.get("status"),
            },
        )

    async def _handle_message(self, event: MessageEvent, token: str, source: str) -> None:
        message = await self._api.get_message(event.message_id, token)
        await self._cache.set(
            f"message:{event.message_id}",
            self._stamp(message, source),
            ttl_seconds=MESSAGE_TTL_SECONDS,
        )
        logger.info("message_refreshed", extra={"message_id": event.message_id})
