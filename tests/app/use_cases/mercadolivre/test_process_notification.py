"""Testes do ProcessNotificationUseCase (idempotência via marker)."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from app.infra.stores import MemoryCacheStore
from app.services.processed_markers import ProcessedMarkerStore
from app.services.tenant_credentials import TenantCredentialsResolver
from app.services.topic_processor import TopicProcessor
from app.use_cases.mercadolivre import ProcessNotificationUseCase
from config.settings import RecoverySettings
from tests.fakes.fake_marketplace_api import FakeMercadoLivreApi
from utils.errors import CacheUnavailableError


@pytest.fixture
def api() -> FakeMercadoLivreApi:
    return FakeMercadoLivreApi(items={"123": {"id": "123", "status": "active"}})


@pytest.fixture
def markers(seeded_cache: MemoryCacheStore) -> ProcessedMarkerStore:
    return ProcessedMarkerStore(seeded_cache, RecoverySettings())


@pytest.fixture
def use_case(
    seeded_cache: MemoryCacheStore,
    api: FakeMercadoLivreApi,
    markers: ProcessedMarkerStore,
) -> ProcessNotificationUseCase:
    processor = TopicProcessor(seeded_cache, api, TenantCredentialsResolver(seeded_cache))
    return ProcessNotificationUseCase(markers, processor)


async def _run(use_case: ProcessNotificationUseCase, resource: str = "/items/123", **kwargs):
    params = {
        "notification_id": "n-1",
        "topic": "items",
        "resource": resource,
        "tenant_id": "123",
        "source": "webhook",
    }
    params.update(kwargs)
    return await use_case.execute(**params)


@pytest.mark.asyncio
async def test_second_delivery_is_skipped(
    use_case: ProcessNotificationUseCase,
    api: FakeMercadoLivreApi,
    markers: ProcessedMarkerStore,
) -> None:
    """Mesma notificação pelo webhook e pela recuperação produz efeito uma vez."""
    assert await _run(use_case) == "completed"
    assert await _run(use_case, source="missed_feed_recovery") == "skipped"

    assert api.calls == [("item", "123")]
    marker = await markers.get("n-1")
    assert marker is not None
    assert marker.status == "completed"
    assert marker.attempts == 1
    assert marker.source == "webhook"


@pytest.mark.asyncio
async def test_failure_is_recorded_and_retry_increments_attempts(
    use_case: ProcessNotificationUseCase,
    api: FakeMercadoLivreApi,
    markers: ProcessedMarkerStore,
) -> None:
    assert await _run(use_case, resource="/items/MISSING") == "failed"
    failed = await markers.get("n-1")
    assert failed is not None
    assert failed.status == "failed"
    assert failed.error == "MarketplaceApiError"

    api.items["MISSING"] = {"id": "MISSING"}
    assert await _run(use_case, resource="/items/MISSING") == "completed"

    completed = await markers.get("n-1")
    assert completed is not None
    assert completed.attempts == 2


@pytest.mark.asyncio
async def test_unrecognized_topic_completes_without_api_calls(
    use_case: ProcessNotificationUseCase,
    api: FakeMercadoLivreApi,
) -> None:
    outcome = await _run(use_case, topic="shipments", resource="/shipments/1")

    assert outcome == "completed"
    assert api.calls == []


@pytest.mark.asyncio
async def test_marker_store_failure_propagates() -> None:
    markers = AsyncMock(spec=ProcessedMarkerStore)
    markers.get.side_effect = CacheUnavailableError("redis down")
    processor = AsyncMock(spec=TopicProcessor)

    with pytest.raises(CacheUnavailableError):
        await _run(ProcessNotificationUseCase(markers, processor))

    processor.process.assert_not_awaited()
