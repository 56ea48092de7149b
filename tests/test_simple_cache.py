"""Unit tests for the in-memory SimpleTTLCache."""

import threading
import time
from typing import Any

import pytest

from app.utils.simple_cache import SimpleTTLCache, cached_query


class FakeTime:
    """Deterministic clock used to test expiration logic."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeTime:
    return FakeTime()


def test_set_and_get_updates_hit_miss_counters(clock: FakeTime) -> None:
    cache = SimpleTTLCache(default_ttl=10, clock=clock)

    assert cache.get("missing") is None

    cache.set("key", {"data": [1, 2]})

    assert cache.get("key") == {"data": [1, 2]}

    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["entries"] == 1


def test_expired_entry_is_evicted_on_read(clock: FakeTime) -> None:
    cache = SimpleTTLCache(default_ttl=5, clock=clock)
    cache.set("key", {"data": True})

    clock.advance(5)
    assert cache.get("key") == {"data": True}

    clock.advance(0.5)
    assert cache.get("key") is None
    assert cache.stats()["evictions"] == 1
    assert "key" not in cache.keys()


def test_per_entry_ttl_overrides_default(clock: FakeTime) -> None:
    cache = SimpleTTLCache(default_ttl=300, clock=clock)
    cache.set("short", "a", ttl_seconds=1)
    cache.set("long", "b")

    clock.advance(2)

    assert cache.get("short") is None
    assert cache.get("long") == "b"


def test_set_replaces_existing_entry_and_restarts_ttl(clock: FakeTime) -> None:
    cache = SimpleTTLCache(default_ttl=10, clock=clock)
    cache.set("key", "first")
    clock.advance(8)
    cache.set("key", "second")
    clock.advance(8)

    assert cache.get("key") == "second"


def test_has_and_delete(clock: FakeTime) -> None:
    cache = SimpleTTLCache(default_ttl=10, clock=clock)
    cache.set("key", 1)

    assert cache.has("key") is True
    cache.delete("key")
    assert cache.has("key") is False
    cache.delete("never-there")


def test_invalidate_prefix_removes_only_matching_keys(clock: FakeTime) -> None:
    cache = SimpleTTLCache(default_ttl=60, clock=clock)
    cache.set("collaborators:public:1:10", "p1")
    cache.set("collaborators:public:2:10", "p2")
    cache.set("innovators:public:1:10", "i1")
    cache.set("admin:stats", "s")

    removed = cache.invalidate_prefix("collaborators:")

    assert removed == 2
    assert sorted(cache.keys()) == ["admin:stats", "innovators:public:1:10"]


def test_invalidate_prefix_with_no_match_returns_zero(clock: FakeTime) -> None:
    cache = SimpleTTLCache(default_ttl=60, clock=clock)
    cache.set("a", 1)

    assert cache.invalidate_prefix("zzz") == 0
    assert cache.keys() == ["a"]


def test_sweep_evicts_expired_entries_without_reads(clock: FakeTime) -> None:
    cache = SimpleTTLCache(default_ttl=60, clock=clock)
    cache.set("old", 1, ttl_seconds=1)
    cache.set("fresh", 2)

    clock.advance(10)
    evicted = cache.sweep()

    assert evicted == 1
    assert cache.keys() == ["fresh"]
    assert cache.stats()["evictions"] == 1


def test_clear_resets_entries_and_counters(clock: FakeTime) -> None:
    cache = SimpleTTLCache(default_ttl=60, clock=clock)
    cache.set("a", 1)
    cache.get("a")
    cache.get("b")

    cache.clear()

    stats = cache.stats()
    assert stats["entries"] == 0
    assert stats["hits"] == 0
    assert stats["misses"] == 0


def test_start_and_destroy_manage_sweeper_thread() -> None:
    cache = SimpleTTLCache(default_ttl=60, sweep_interval=0.05)
    cache.start()
    cache.start()
    assert cache.stats()["sweeper_running"] is True

    cache.set("a", 1)
    cache.destroy()

    stats = cache.stats()
    assert stats["sweeper_running"] is False
    assert stats["entries"] == 0

    cache.destroy()


def test_background_sweeper_evicts_expired_entries() -> None:
    cache = SimpleTTLCache(default_ttl=60, sweep_interval=0.01)
    cache.set("short", 1, ttl_seconds=0.01)
    cache.start()
    try:
        for _ in range(200):
            if not cache.keys():
                break
            time.sleep(0.01)
        assert cache.keys() == []
    finally:
        cache.destroy()


def test_invalid_sweep_interval() -> None:
    with pytest.raises(ValueError):
        SimpleTTLCache(sweep_interval=0)


def test_thread_safety_under_concurrent_access(clock: FakeTime) -> None:
    cache = SimpleTTLCache(default_ttl=100, clock=clock)

    def writer(start: int) -> None:
        for i in range(start, start + 50):
            cache.set(f"key-{i}", {"value": i})

    def reader(start: int) -> None:
        for i in range(start, start + 50):
            cache.get(f"key-{i}")

    threads = [threading.Thread(target=writer, args=(i * 50,)) for i in range(4)]
    threads += [threading.Thread(target=reader, args=(i * 50,)) for i in range(4)]

    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert cache.stats()["entries"] == 200


class TestCachedQuery:
    def test_calls_producer_once_while_entry_is_fresh(self, clock: FakeTime) -> None:
        cache = SimpleTTLCache(default_ttl=60, clock=clock)
        calls: list[int] = []

        def producer() -> dict[str, Any]:
            calls.append(1)
            return {"data": len(calls)}

        assert cached_query(cache, "k", producer) == {"data": 1}
        assert cached_query(cache, "k", producer) == {"data": 1}
        assert len(calls) == 1

    def test_recomputes_after_expiry(self, clock: FakeTime) -> None:
        cache = SimpleTTLCache(default_ttl=60, clock=clock)
        calls: list[int] = []

        def producer() -> int:
            calls.append(1)
            return len(calls)

        cached_query(cache, "k", producer, ttl_seconds=5)
        clock.advance(6)

        assert cached_query(cache, "k", producer, ttl_seconds=5) == 2

    def test_producer_error_is_not_cached(self, clock: FakeTime) -> None:
        cache = SimpleTTLCache(default_ttl=60, clock=clock)

        def failing() -> int:
            raise RuntimeError("db down")

        with pytest.raises(RuntimeError):
            cached_query(cache, "k", failing)

        assert cache.keys() == []
