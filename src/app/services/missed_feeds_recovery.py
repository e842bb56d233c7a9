"""Recuperação de notificações perdidas (missed feeds).

Reconcilia o que o webhook não confirmou a tempo: pagina a API de missed
feeds da aplicação, filtra por tópico e idade, e reprocessa cada feed pelo
mesmo caso de uso do webhook (idempotente via ProcessedMarker).

Páginas são processadas em sequência; falhas individuais são contadas e
nunca interrompem o laço. Um limite de páginas por execução protege contra
paginação que nunca termina.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Literal

from pydantic import ValidationError

from app.domain.notifications import MissedFeed, RecoveryResult
from app.observability.metrics import record_recovery_run
from app.services.processed_markers import MARKER_PREFIX
from utils.errors import InfrastructureError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from app.protocols.cache_store import AsyncCacheStoreProtocol
    from app.protocols.marketplace_client import MercadoLivreApiProtocol
    from app.services.processed_markers import ProcessedMarkerStore
    from app.services.tenant_credentials import TenantCredentialsResolver
    from app.use_cases.mercadolivre import ProcessNotificationUseCase
    from config.settings import RecoverySettings

logger = logging.getLogger(__name__)

RECOVERY_SOURCE = "missed_feed_recovery"
SUMMARY_PREFIX = "missed_feeds_recovery:"
STATS_MARKER_SAMPLE = 100

FeedOutcome = Literal["processed", "failed", "skipped"]


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


class MissedFeedsRecoveryService:
    """Executa a reconciliação de missed feeds por tenant.

    Args:
        cache: Cache compartilhado (resumos e markers)
        api: Cliente da API do Mercado Livre
        credentials: Resolução de token por tenant
        use_case: Processamento idempotente compartilhado com o webhook
        markers: Store de markers (leitura no dry run)
        settings: Tamanho de página, pausa, limite de páginas e TTLs
        application_id: ID da aplicação cujos feeds são consultados
        sleep: Pausa entre páginas (injetável em testes)
        clock: Relógio UTC (injetável em testes)
    """

    def __init__(
        self,
        *,
        cache: AsyncCacheStoreProtocol,
        api: MercadoLivreApiProtocol,
        credentials: TenantCredentialsResolver,
        use_case: ProcessNotificationUseCase,
        markers: ProcessedMarkerStore,
        settings: RecoverySettings,
        application_id: str,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._cache = cache
        self._api = api
        self._credentials = credentials
        self._use_case = use_case
        self._markers = markers
        self._settings = settings
        self._application_id = application_id
        self._sleep = sleep
        self._clock = clock or (lambda: datetime.now(UTC))

    async def recover_all_missed_feeds(
        self,
        tenant_id: str,
        topics: Sequence[str] | None = None,
        max_age_hours: int | None = None,
        dry_run: bool = False,
    ) -> RecoveryResult:
        """Recupera todos os feeds perdidos do tenant.

        Args:
            tenant_id: Tenant dono das credenciais
            topics: Allowlist de tópicos (None = todos)
            max_age_hours: Descarta feeds enviados antes de agora - N horas
            dry_run: Conta o que seria processado sem executar handlers
                nem gravar markers

        Returns:
            RecoveryResult com contadores e duração.

        Raises:
            CredentialsUnavailableError: Tenant sem token válido.
            MarketplaceApiError: Falha ao buscar uma página.
        """
        started_at = time.perf_counter()
        credentials = await self._credentials.resolve(tenant_id)
        topic_filter = frozenset(topics) if topics else None
        api_topic = topics[0] if topics and len(topics) == 1 else None
        cutoff = (
            self._clock() - timedelta(hours=max_age_hours) if max_age_hours else None
        )
        batch_size = self._settings.batch_size

        logger.info(
            "recovery_started",
            extra={
                "tenant_id": tenant_id,
                "topics": sorted(topic_filter) if topic_filter else None,
                "max_age_hours": max_age_hours,
                "dry_run": dry_run,
            },
        )

        counters: dict[FeedOutcome, int] = {"processed": 0, "failed": 0, "skipped": 0}
        offset = 0
        for batch_number in range(1, self._settings.max_batches + 1):
            page = await self._api.get_missed_feeds(
                self._application_id,
                credentials.access_token,
                limit=batch_size,
                offset=offset,
                topic=api_topic,
            )
            if not page.feeds:
                break

            logger.info(
                "recovery_batch_fetched",
                extra={
                    "tenant_id": tenant_id,
                    "batch": batch_number,
                    "batch_size": len(page.feeds),
                    "offset": offset,
                    "total": page.paging.total,
                },
            )
            for raw_feed in page.feeds:
                outcome = await self._recover_feed(
                    raw_feed,
                    tenant_id=tenant_id,
                    topic_filter=topic_filter,
                    cutoff=cutoff,
                    dry_run=dry_run,
                )
                counters[outcome] += 1

            offset += batch_size
            if page.paging.total is not None and offset >= page.paging.total:
                break
            await self._sleep(self._settings.batch_delay_seconds)
        else:
            logger.warning(
                "recovery_batch_limit_reached",
                extra={
                    "tenant_id": tenant_id,
                    "max_batches": self._settings.max_batches,
                    "offset": offset,
                },
            )

        result = RecoveryResult(
            processed=counters["processed"],
            failed=counters["failed"],
            skipped=counters["skipped"],
            total=sum(counters.values()),
            duration_ms=int((time.perf_counter() - started_at) * 1000),
        )
        logger.info("recovery_completed", extra={"tenant_id": tenant_id, **result.as_dict()})
        record_recovery_run(
            tenant_id,
            result.processed,
            result.failed,
            result.skipped,
            result.duration_ms,
            dry_run=dry_run,
        )
        await self._persist_summary(tenant_id, result)
        return result

    async def _recover_feed(
        self,
        raw_feed: dict[str, Any],
        *,
        tenant_id: str,
        topic_filter: frozenset[str] | None,
        cutoff: datetime | None,
        dry_run: bool,
    ) -> FeedOutcome:
        try:
            feed = MissedFeed.model_validate(raw_feed)
        except ValidationError as exc:
            logger.warning(
                "recovery_feed_invalid",
                extra={
                    "tenant_id": tenant_id,
                    "topic": raw_feed.get("topic") if isinstance(raw_feed, dict) else None,
                    "error_count": exc.error_count(),
                },
            )
            return "skipped"

        if topic_filter is not None and feed.topic not in topic_filter:
            return "skipped"
        if cutoff is not None and _as_utc(feed.sent) <= cutoff:
            return "skipped"

        notification_id = feed.notification_id
        try:
            if dry_run:
                marker = await self._markers.get(notification_id)
                if marker is not None and marker.is_completed:
                    return "skipped"
                logger.info(
                    "recovery_dry_run_feed",
                    extra={"notification_id": notification_id, "topic": feed.topic},
                )
                return "processed"

            outcome = await self._use_case.execute(
                notification_id=notification_id,
                topic=feed.topic,
                resource=feed.resource,
                tenant_id=tenant_id,
                source=RECOVERY_SOURCE,
            )
        except Exception as exc:
            logger.warning(
                "recovery_feed_failed",
                extra={
                    "notification_id": notification_id,
                    "topic": feed.topic,
                    "error_type": type(exc).__name__,
                },
            )
            return "failed"

        if outcome == "completed":
            return "processed"
        return outcome

    async def _persist_summary(self, tenant_id: str, result: RecoveryResult) -> None:
        epoch_ms = int(self._clock().timestamp() * 1000)
        try:
            await self._cache.set(
                f"{SUMMARY_PREFIX}{tenant_id}:{epoch_ms}",
                result.as_dict(),
                ttl_seconds=self._settings.summary_ttl_seconds,
            )
        except InfrastructureError as exc:
            logger.warning(
                "recovery_summary_not_persisted",
                extra={"tenant_id": tenant_id, "error_type": type(exc).__name__},
            )

    async def get_recovery_stats(self, tenant_id: str) -> dict[str, Any]:
        """Último resumo do tenant e contagem amostral de markers.

        Raises:
            CacheUnavailableError: Falha ao consultar o cache.
        """
        summary_keys = await self._cache.keys(f"{SUMMARY_PREFIX}{tenant_id}:*")
        last_recovery = None
        if summary_keys:
            latest_key = max(summary_keys, key=_summary_epoch)
            last_recovery = await self._cache.get(latest_key)

        marker_keys = sorted(await self._cache.keys(f"{MARKER_PREFIX}*"))[:STATS_MARKER_SAMPLE]
        completed = failed = 0
        for key in marker_keys:
            marker = await self._cache.get(key)
            status = marker.get("status") if isinstance(marker, dict) else None
            if status == "completed":
                completed += 1
            elif status == "failed":
                failed += 1

        return {
            "tenant_id": tenant_id,
            "last_recovery": last_recovery,
            "total_processed": completed,
            "total_failed": failed,
            "sampled_markers": len(marker_keys),
        }


def _summary_epoch(key: str) -> int:
    suffix = key.rsplit(":", 1)[-1]
    return int(suffix) if suffix.isdigit() else 0
