"""Testes do MissedFeedsRecoveryService."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import pytest

from app.infra.stores import MemoryCacheStore
from app.services.missed_feeds_recovery import MissedFeedsRecoveryService
from app.services.processed_markers import ProcessedMarkerStore
from app.services.tenant_credentials import TenantCredentialsResolver
from app.services.topic_processor import TopicProcessor
from app.use_cases.mercadolivre import ProcessNotificationUseCase
from config.settings import RecoverySettings
from tests.fakes.fake_marketplace_api import FakeMercadoLivreApi
from tests.fakes.notification_payloads import make_notification_payload
from utils.errors import CredentialsUnavailableError

NOW = datetime(2026, 6, 1, 15, 0, tzinfo=UTC)


def _feed(feed_id: str, item_id: str, *, hours_ago: float = 1, topic: str = "items") -> dict:
    return make_notification_payload(
        _id=feed_id,
        topic=topic,
        resource=f"/{topic}/{item_id}",
        sent=NOW - timedelta(hours=hours_ago),
    )


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


def _build_service(
    cache: MemoryCacheStore,
    api: FakeMercadoLivreApi,
    sleep: SleepRecorder,
    settings: RecoverySettings | None = None,
) -> MissedFeedsRecoveryService:
    settings = settings or RecoverySettings(batch_size=2, batch_delay_seconds=0.25)
    credentials = TenantCredentialsResolver(cache)
    markers = ProcessedMarkerStore(cache, settings)
    use_case = ProcessNotificationUseCase(
        markers,
        TopicProcessor(cache, api, credentials),
    )
    return MissedFeedsRecoveryService(
        cache=cache,
        api=api,
        credentials=credentials,
        use_case=use_case,
        markers=markers,
        settings=settings,
        application_id="app123",
        sleep=sleep,
        clock=lambda: NOW,
    )


class TestRecoveryRun:
    @pytest.mark.asyncio
    async def test_paginates_and_processes_every_feed(
        self,
        seeded_cache: MemoryCacheStore,
        sleep: SleepRecorder,
    ) -> None:
        api = FakeMercadoLivreApi(
            items={str(i): {"id": str(i)} for i in range(5)},
            feeds=[_feed(f"f{i}", str(i)) for i in range(5)],
        )
        service = _build_service(seeded_cache, api, sleep)

        result = await service.recover_all_missed_feeds("123")

        assert (result.processed, result.failed, result.skipped, result.total) == (5, 0, 0, 5)
        assert [request["offset"] for request in api.page_requests] == [0, 2, 4]
        assert all(request["app_id"] == "app123" for request in api.page_requests)
        assert sleep.delays == [0.25, 0.25]
        assert await seeded_cache.get("product:4") is not None

    @pytest.mark.asyncio
    async def test_second_run_skips_already_processed_feeds(
        self,
        seeded_cache: MemoryCacheStore,
        sleep: SleepRecorder,
    ) -> None:
        api = FakeMercadoLivreApi(
            items={"1": {"id": "1"}, "2": {"id": "2"}},
            feeds=[_feed("f1", "1"), _feed("f2", "2")],
        )
        service = _build_service(seeded_cache, api, sleep)

        first = await service.recover_all_missed_feeds("123")
        second = await service.recover_all_missed_feeds("123")

        assert first.processed == 2
        assert (second.processed, second.skipped) == (0, 2)
        assert api.calls == [("item", "1"), ("item", "2")]

    @pytest.mark.asyncio
    async def test_topic_and_age_filters_skip_feeds(
        self,
        seeded_cache: MemoryCacheStore,
        sleep: SleepRecorder,
    ) -> None:
        api = FakeMercadoLivreApi(
            items={"1": {"id": "1"}, "old": {"id": "old"}},
            orders={"9": {"id": 9}},
            feeds=[
                _feed("f1", "1"),
                _feed("f2", "old", hours_ago=30),
                _feed("f3", "9", topic="orders_v2"),
            ],
        )
        service = _build_service(
            seeded_cache, api, sleep, RecoverySettings(batch_size=10, batch_delay_seconds=0)
        )

        result = await service.recover_all_missed_feeds(
            "123", topics=["items", "questions"], max_age_hours=24
        )

        assert (result.processed, result.skipped) == (1, 2)
        assert api.calls == [("item", "1")]
        assert api.page_requests[0]["topic"] is None

    @pytest.mark.asyncio
    async def test_single_topic_is_forwarded_to_api(
        self,
        seeded_cache: MemoryCacheStore,
        sleep: SleepRecorder,
    ) -> None:
        api = FakeMercadoLivreApi(
            orders={"9": {"id": 9}},
            feeds=[_feed("f1", "1"), _feed("f3", "9", topic="orders_v2")],
        )
        service = _build_service(seeded_cache, api, sleep)

        result = await service.recover_all_missed_feeds("123", topics=["orders_v2"])

        assert result.processed == 1
        assert api.page_requests[0]["topic"] == "orders_v2"

    @pytest.mark.asyncio
    async def test_failures_are_counted_and_do_not_stop_the_run(
        self,
        seeded_cache: MemoryCacheStore,
        sleep: SleepRecorder,
    ) -> None:
        api = FakeMercadoLivreApi(
            items={"ok": {"id": "ok"}},
            feeds=[_feed("f1", "missing"), _feed("f2", "ok"), {"topic": "items"}],
        )
        service = _build_service(
            seeded_cache, api, sleep, RecoverySettings(batch_size=10, batch_delay_seconds=0)
        )

        result = await service.recover_all_missed_feeds("123")

        assert (result.processed, result.failed, result.skipped) == (1, 1, 1)

    @pytest.mark.asyncio
    async def test_feed_without_received_is_processed(
        self,
        seeded_cache: MemoryCacheStore,
        sleep: SleepRecorder,
    ) -> None:
        feed = _feed("f1", "123")
        del feed["received"]
        api = FakeMercadoLivreApi(items={"123": {"id": "123"}}, feeds=[feed])
        service = _build_service(seeded_cache, api, sleep)

        result = await service.recover_all_missed_feeds("123")

        assert (result.processed, result.failed, result.skipped) == (1, 0, 0)
        assert (await seeded_cache.get("product:123"))["id"] == "123"
        assert (await seeded_cache.get("processed_feed:f1"))["status"] == "completed"

    @pytest.mark.asyncio
    async def test_dry_run_reads_markers_but_writes_nothing(
        self,
        seeded_cache: MemoryCacheStore,
        sleep: SleepRecorder,
    ) -> None:
        api = FakeMercadoLivreApi(
            items={"1": {"id": "1"}, "2": {"id": "2"}},
            feeds=[_feed("f1", "1"), _feed("f2", "2")],
        )
        service = _build_service(seeded_cache, api, sleep)
        await seeded_cache.set(
            "processed_feed:f1",
            {"status": "completed", "processed_at": NOW.isoformat()},
        )

        result = await service.recover_all_missed_feeds("123", dry_run=True)

        assert (result.processed, result.skipped) == (1, 1)
        assert api.calls == []
        assert await seeded_cache.keys("processed_feed:*") == ["processed_feed:f1"]
        assert await seeded_cache.get("product:2") is None

    @pytest.mark.asyncio
    async def test_pages_until_empty_when_total_is_not_reported(
        self,
        seeded_cache: MemoryCacheStore,
        sleep: SleepRecorder,
    ) -> None:
        api = FakeMercadoLivreApi(
            items={str(i): {"id": str(i)} for i in range(4)},
            feeds=[_feed(f"f{i}", str(i)) for i in range(4)],
            report_total=False,
        )
        service = _build_service(seeded_cache, api, sleep)

        result = await service.recover_all_missed_feeds("123")

        assert (result.processed, result.failed, result.skipped) == (4, 0, 0)
        assert [r["offset"] for r in api.page_requests] == [0, 2, 4]
        assert sleep.delays == [0.25, 0.25]

    @pytest.mark.asyncio
    async def test_batch_limit_stops_endless_pagination(
        self,
        seeded_cache: MemoryCacheStore,
        sleep: SleepRecorder,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        caplog.set_level(logging.INFO)
        api = FakeMercadoLivreApi(
            items={"1": {"id": "1"}, "2": {"id": "2"}},
            feeds=[_feed("f1", "1"), _feed("f2", "2")],
            total_override=1_000,
        )
        settings = RecoverySettings(batch_size=2, batch_delay_seconds=0, max_batches=3)
        service = _build_service(seeded_cache, api, sleep, settings)

        result = await service.recover_all_missed_feeds("123")

        assert len(api.page_requests) == 3
        assert (result.processed, result.skipped) == (2, 4)
        assert any(r.getMessage() == "recovery_batch_limit_reached" for r in caplog.records)

    @pytest.mark.asyncio
    async def test_missing_credentials_abort_before_fetching(
        self,
        memory_cache: MemoryCacheStore,
        sleep: SleepRecorder,
    ) -> None:
        api = FakeMercadoLivreApi(feeds=[_feed("f1", "1")])
        service = _build_service(memory_cache, api, sleep)

        with pytest.raises(CredentialsUnavailableError):
            await service.recover_all_missed_feeds("123")

        assert api.page_requests == []


class TestRecoveryStats:
    @pytest.mark.asyncio
    async def test_summary_is_persisted_and_reported(
        self,
        seeded_cache: MemoryCacheStore,
        sleep: SleepRecorder,
    ) -> None:
        api = FakeMercadoLivreApi(items={"1": {"id": "1"}}, feeds=[_feed("f1", "1"), _feed("f2", "x")])
        service = _build_service(seeded_cache, api, sleep)

        result = await service.recover_all_missed_feeds("123")
        summary_key = f"missed_feeds_recovery:123:{int(NOW.timestamp() * 1000)}"
        stats = await service.get_recovery_stats("123")

        assert await seeded_cache.keys("missed_feeds_recovery:123:*") == [summary_key]
        assert 3599 < seeded_cache.ttl(summary_key) <= 3600
        assert stats["last_recovery"] == result.as_dict()
        assert stats["total_processed"] == 1
        assert stats["total_failed"] == 1
        assert stats["sampled_markers"] == 2

    @pytest.mark.asyncio
    async def test_stats_without_runs(self, memory_cache: MemoryCacheStore, sleep) -> None:
        service = _build_service(memory_cache, FakeMercadoLivreApi(), sleep)

        stats = await service.get_recovery_stats("123")

        assert stats == {
            "tenant_id": "123",
            "last_recovery": None,
            "total_processed": 0,
            "total_failed": 0,
            "sampled_markers": 0,
        }
