"""Testes do MemoryCacheStore."""

from __future__ import annotations

import pytest

from app.infra.stores import MemoryCacheStore


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> MemoryCacheStore:
    return MemoryCacheStore(clock=clock)


@pytest.mark.asyncio
async def test_set_and_get_returns_copy(store: MemoryCacheStore) -> None:
    value = {"status": "active", "tags": ["a"]}
    await store.set("product:MLB1", value)
    value["tags"].append("b")

    assert await store.get("product:MLB1") == {"status": "active", "tags": ["a"]}


@pytest.mark.asyncio
async def test_entry_expires_after_ttl(store: MemoryCacheStore, clock: FakeClock) -> None:
    await store.set("order:1", {"id": 1}, ttl_seconds=60)
    assert store.ttl("order:1") == 60

    clock.now += 59
    assert await store.get("order:1") == {"id": 1}

    clock.now += 1
    assert await store.get("order:1") is None
    assert await store.keys("order:*") == []


@pytest.mark.asyncio
async def test_delete_counts_only_live_keys(store: MemoryCacheStore) -> None:
    await store.set("products:all", [1])
    await store.set("products:active", [1])

    assert await store.delete("products:all", "products:active", "products:missing") == 2
    assert await store.get("products:all") is None


@pytest.mark.asyncio
async def test_keys_matches_glob_pattern(store: MemoryCacheStore) -> None:
    await store.set("processed_feed:a", {})
    await store.set("processed_feed:b", {})
    await store.set("order:1", {})

    assert sorted(await store.keys("processed_feed:*")) == ["processed_feed:a", "processed_feed:b"]
    assert await store.ping() is True
