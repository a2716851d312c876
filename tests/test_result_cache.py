import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from result_cache import CACHE_TABLES, ResultCache
from universe_errors import MathUniverseError


def test_put_is_write_once():
    cache = ResultCache()
    assert cache.put("primality", 7, True) is True
    assert cache.put("primality", 7, False) is True
    assert cache.get("primality", 7) is True


def test_get_counts_hits_and_misses():
    cache = ResultCache()
    assert cache.get("patterns", 3) is None
    assert cache.get("patterns", 3, "missing") == "missing"
    cache.put("patterns", 3, "p3")
    assert cache.get("patterns", 3) == "p3"
    stats = cache.stats()
    assert stats.hits == 1
    assert stats.misses == 2
    assert stats.sizes["patterns"] == 1
    assert set(stats.sizes) == set(CACHE_TABLES)


def test_get_or_compute_only_computes_once():
    cache = ResultCache()
    calls = []

    def compute():
        calls.append(1)
        return 42

    assert cache.get_or_compute("resonances", 9, compute) == 42
    assert cache.get_or_compute("resonances", 9, compute) == 42
    assert len(calls) == 1


def test_disabled_cache_never_stores():
    cache = ResultCache(enabled=False)
    calls = []
    for _ in range(3):
        cache.get_or_compute("factorizations", 77, lambda: calls.append(1) or "r")
    assert len(calls) == 3
    assert cache.get("factorizations", 77) is None
    assert cache.stats().sizes["factorizations"] == 0
    assert cache.stats().as_dict()["enabled"] is False


def test_clear_resets_everything():
    cache = ResultCache()
    cache.put("primality", 2, True)
    cache.get("primality", 2)
    cache.clear()
    stats = cache.stats()
    assert stats.hits == 0 and stats.misses == 0
    assert all(size == 0 for size in stats.sizes.values())


def test_unknown_table_is_rejected():
    with pytest.raises(MathUniverseError):
        ResultCache().get("nope", 1)


def test_concurrent_writers_agree_on_first_value():
    cache = ResultCache()
    barrier = threading.Barrier(8)

    def writer(i):
        barrier.wait()
        return cache.get_or_compute("factorizations", 1001, lambda: ("value", i))

    with ThreadPoolExecutor(max_workers=8) as pool:
        seen = list(pool.map(writer, range(8)))
    assert len({id(v) for v in seen}) == 1
    assert cache.get("factorizations", 1001) is seen[0]
