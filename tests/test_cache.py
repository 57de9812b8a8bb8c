import pytest

from stackr_app.search.cache import SearchCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_get_returns_stored_value_until_ttl():
    clock = FakeClock()
    cache = SearchCache(ttl=60, max_size=10, clock=clock)

    cache.set("k", "value")
    clock.now += 60
    assert cache.get("k") == "value"

    clock.now += 1
    assert cache.get("k") is None
    assert len(cache) == 0


def test_lru_eviction_at_capacity():
    cache = SearchCache(ttl=60, max_size=2, clock=FakeClock())

    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")  # "b" is now least recently used
    cache.set("c", 3)

    assert cache.get("a") == 1
    assert cache.get("b") is None
    assert cache.get("c") == 3
    assert cache.stats()["evictions"] == 1


def test_stats_and_clear():
    cache = SearchCache(ttl=60, max_size=5, clock=FakeClock())
    cache.set("a", 1)
    cache.get("a")
    cache.get("missing")

    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["hit_rate"] == 50.0
    assert stats["size"] == 1

    cache.clear()
    assert cache.stats()["size"] == 0
    assert cache.stats()["hits"] == 0


def test_evict_expired():
    clock = FakeClock()
    cache = SearchCache(ttl=10, max_size=5, clock=clock)
    cache.set("old", 1)
    clock.now += 8
    cache.set("new", 2)
    clock.now += 5

    assert cache.evict_expired() == 1
    assert cache.get("new") == 2


def test_make_key_normalizes_query_and_orders_categories():
    key = SearchCache.make_key("  The   Matrix ", ["movie", "tv"], (20, "en"))

    assert key == SearchCache.make_key("the matrix", ["tv", "movie"], (20, "en"))
    assert key != SearchCache.make_key("the matrix", ["movie"], (20, "en"))
    assert key != SearchCache.make_key("the matrix", ["movie", "tv"], (10, "en"))


def test_rejects_zero_capacity():
    with pytest.raises(ValueError):
        SearchCache(max_size=0)


def test_make_key_keeps_punctuation():
    assert SearchCache.make_key("C++", ["book"]) != SearchCache.make_key("C#", ["book"])
    assert SearchCache.make_key("!!", ["book"]) != SearchCache.make_key("??", ["book"])
    assert SearchCache.make_key("Matrix!", ["movie"]) != SearchCache.make_key("matrix", ["movie"])
