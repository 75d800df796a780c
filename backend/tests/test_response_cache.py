from __future__ import annotations

from datetime import timedelta

from innoshop.pipeline.cache import InMemoryResponseCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_entries_expire_after_their_own_ttl():
    clock = FakeClock()
    cache = InMemoryResponseCache(timer=clock)
    cache.set("short", "a", timedelta(seconds=10))
    cache.set("long", "b", timedelta(minutes=5))

    clock.now += 9
    assert cache.get("short") == "a"

    clock.now += 2
    assert cache.get("short") is None
    assert cache.get("long") == "b"

    clock.now += 300
    assert cache.get("long", "missing") == "missing"


def test_cached_none_is_distinguishable_from_a_miss():
    cache = InMemoryResponseCache()
    marker = object()
    cache.set("k", None, timedelta(minutes=1))
    assert cache.get("k", marker) is None
    assert cache.get("other", marker) is marker


def test_last_write_wins_and_delete_clears_one_key():
    cache = InMemoryResponseCache()
    cache.set("k", 1, timedelta(minutes=1))
    cache.set("k", 2, timedelta(minutes=1))
    cache.set("j", 3, timedelta(minutes=1))
    assert cache.get("k") == 2

    cache.delete("k")
    cache.delete("never-set")
    assert cache.get("k") is None
    assert len(cache) == 1

    cache.clear()
    assert len(cache) == 0


def test_least_recently_used_entry_is_evicted_at_capacity():
    cache = InMemoryResponseCache(maxsize=2)
    cache.set("a", 1, timedelta(minutes=1))
    cache.set("b", 2, timedelta(minutes=1))
    assert cache.get("a") == 1
    cache.set("c", 3, timedelta(minutes=1))

    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert cache.get("c") == 3
