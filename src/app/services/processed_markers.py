"""Store de markers de processamento (idempotência).

Chave `processed_feed:{notification_id}`. Transições por tentativa:
    (ausente | failed) -> processing -> completed | failed

Um marker `completed` curto-circuita novas entregas do mesmo ID até
expirar (24h). Marker `failed` expira antes (1h) e permite nova tentativa.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import ValidationError

from app.domain.markers import MarkerStatus, ProcessedMarker

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.protocols.cache_store import AsyncCacheStoreProtocol
    from config.settings import RecoverySettings

logger = logging.getLogger(__name__)

MARKER_PREFIX = "processed_feed:"


def marker_key(notification_id: str) -> str:
    return f"{MARKER_PREFIX}{notification_id}"


class ProcessedMarkerStore:
    """Leitura e escrita de ProcessedMarker no cache.

    Args:
        cache: Cache compartilhado
        settings: TTLs por status
        clock: Relógio UTC (injetável em testes)
    """

    def __init__(
        self,
        cache: AsyncCacheStoreProtocol,
        settings: RecoverySettings,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._cache = cache
        self._settings = settings
        self._clock = clock or (lambda: datetime.now(UTC))

    async def get(self, notification_id: str) -> ProcessedMarker | None:
        raw = await self._cache.get(marker_key(notification_id))
        if raw is None:
            return None
        try:
            return ProcessedMarker.model_validate(raw)
        except ValidationError:
            logger.warning(
                "processed_marker_invalid",
                extra={"notification_id": notification_id},
            )
            return None

    async def mark_processing(
        self,
        notification_id: str,
        *,
        topic: str,
        resource: str,
        attempts: int,
        source: str,
    ) -> ProcessedMarker:
        return await self._write(
            notification_id,
            "processing",
            topic=topic,
            resource=resource,
            attempts=attempts,
            source=source,
            ttl_seconds=self._settings.processing_marker_ttl_seconds,
        )

    async def mark_completed(
        self,
        notification_id: str,
        *,
        topic: str,
        resource: str,
        attempts: int,
        source: str,
    ) -> ProcessedMarker:
        return await self._write(
            notification_id,
            "completed",
            topic=topic,
            resource=resource,
            attempts=attempts,
            source=source,
            ttl_seconds=self._settings.processed_marker_ttl_seconds,
        )

    async def mark_failed(
        self,
        notification_id: str,
        *,
        topic: str,
        resource: str,
        attempts: int,
        source: str,
        error: str,
    ) -> ProcessedMarker:
        return await self._write(
            notification_id,
            "failed",
            topic=topic,
            resource=resource,
            attempts=attempts,
            source=source,
            ttl_seconds=self._settings.failed_marker_ttl_seconds,
            error=error,
        )

    async def _write(
        self,
        notification_id: str,
        status: MarkerStatus,
        *,
        topic: str,
        resource: str,
        attempts: int,
        source: str,
        ttl_seconds: int,
        error: str | None = None,
    ) -> ProcessedMarker:
        marker = ProcessedMarker(
            status=status,
            processed_at=self._clock(),
            topic=topic,
            resource=resource,
            attempts=attempts,
            source=source,
            error=error,
        )
        await self._cache.set(
            marker_key(notification_id),
            marker.model_dump(mode="json", exclude_none=True),
            ttl_seconds=ttl_seconds,
        )
        return marker
