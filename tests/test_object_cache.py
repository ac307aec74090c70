"""Tests for the per-connection list cache."""

import threading
from unittest.mock import Mock

import pytest

from jss_client.exceptions import InvalidDataError
from jss_client.object_cache import ObjectCache
from jss_client.resources import Category, Computer, Department

CATEGORIES = {
    "categories": [
        {"id": 1, "name": "Apps"},
        {"id": 2, "name": "Utilities"},
    ]
}
DEPARTMENTS = {"departments": [{"id": 7, "name": "IT"}]}
COMPUTERS = {
    "computers": [
        {"id": 10, "name": "mac-1", "serial_number": "C02A"},
        {"id": 11, "name": "mac-2"},
    ]
}


@pytest.fixture
def fetch():
    payloads = {"categories": CATEGORIES, "departments": DEPARTMENTS, "computers": COMPUTERS}
    return Mock(side_effect=lambda rsrc: payloads[rsrc])


@pytest.fixture
def cache(fetch):
    return ObjectCache(fetch)


class TestObjectCacheList:
    """List caching and refresh."""

    def test_list_fetches_once(self, cache, fetch):
        first = cache.list(Category)
        second = cache.list(Category)
        assert first == CATEGORIES["categories"]
        assert second is first
        fetch.assert_called_once_with("categories")

    def test_refresh_fetches_again(self, cache, fetch):
        cache.list(Category)
        cache.list(Category, refresh=True)
        assert fetch.call_count == 2

    def test_types_are_independent(self, cache, fetch):
        cache.list(Category)
        cache.list(Department)
        cache.flush(Category)
        assert Category not in cache
        assert Department in cache

    def test_ids_and_names_in_server_order(self, cache):
        assert cache.ids_of(Category) == [1, 2]
        assert cache.names_of(Category) == ["Apps", "Utilities"]

    def test_missing_list_key(self):
        cache = ObjectCache(Mock(return_value={"something_else": []}))
        with pytest.raises(InvalidDataError, match="categories"):
            cache.list(Category)

    def test_failed_fetch_caches_nothing(self):
        cache = ObjectCache(Mock(side_effect=RuntimeError("boom")))
        with pytest.raises(RuntimeError):
            cache.list(Category)
        assert Category not in cache


class TestObjectCacheMaps:
    """Derived id -> field maps."""

    def test_map_missing_field_is_none(self, cache):
        assert cache.map(Computer, "serial_number") == {10: "C02A", 11: None}

    def test_map_is_cached(self, cache):
        first = cache.map(Computer, "serial_number")
        assert cache.map(Computer, "serial_number") is first
        assert ObjectCache.map_key(Computer, "serial_number") in cache.keys()

    def test_refresh_drops_maps(self, cache, fetch):
        cache.map(Computer, "serial_number")
        cache.map(Computer, "name")
        cache.list(Computer, refresh=True)
        assert cache.keys() == ["computers"]

    def test_flush_type_drops_maps(self, cache):
        cache.map(Computer, "name")
        cache.list(Category)
        cache.flush("computers")
        assert cache.keys() == ["categories"]

    def test_flush_everything(self, cache):
        cache.list(Category)
        cache.map(Computer, "name")
        cache.flush()
        assert len(cache) == 0


class TestObjectCacheConcurrency:
    def test_concurrent_readers_fetch_once(self):
        started = threading.Event()

        def slow_fetch(rsrc):
            started.wait(timeout=1)
            return CATEGORIES

        fetch = Mock(side_effect=slow_fetch)
        cache = ObjectCache(fetch)
        results = []
        threads = [
            threading.Thread(target=lambda: results.append(cache.list(Category)))
            for _ in range(5)
        ]
        for thread in threads:
            thread.start()
        started.set()
        for thread in threads:
            thread.join()

        assert fetch.call_count == 1
        assert len(results) == 5
        assert all(result is results[0] for result in results)
