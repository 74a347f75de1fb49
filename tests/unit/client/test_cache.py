"""Tests for the client cache."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from tfe_client_core import ClientCache


class TestGetOrCreate:
    @pytest.mark.unit
    def test_miss_then_hit(self, cache):
        client = object()

        assert cache.get("key") is None
        assert cache.get_or_create("key", lambda: client) is client
        assert cache.get_or_create("key", lambda: object()) is client
        assert cache.get("key") is client

    @pytest.mark.unit
    def test_different_keys_different_clients(self, cache):
        first = cache.get_or_create("a", object)
        second = cache.get_or_create("b", object)

        assert first is not second
        assert len(cache) == 2

    @pytest.mark.unit
    def test_failed_factory_stores_nothing(self, cache):
        def failing():
            raise RuntimeError("construction failed")

        with pytest.raises(RuntimeError):
            cache.get_or_create("key", failing)

        assert "key" not in cache
        assert len(cache) == 0

        client = cache.get_or_create("key", object)
        assert cache.get("key") is client

    @pytest.mark.unit
    def test_key_locks_are_released(self, cache):
        """Test that no per-key lock outlives its construction, failed or not."""

        def failing():
            raise RuntimeError("construction failed")

        with pytest.raises(RuntimeError):
            cache.get_or_create("failed", failing)
        cache.get_or_create("built", object)

        assert cache._key_locks == {}
        assert cache._key_users == {}

    @pytest.mark.unit
    def test_clear(self, cache):
        cache.get_or_create("key", object)

        cache.clear()

        assert len(cache) == 0
        assert "key" not in cache


class TestConcurrency:
    """At most one construction per key under concurrent access."""

    @pytest.mark.unit
    def test_single_construction_per_key(self):
        cache: ClientCache[object] = ClientCache()
        calls = []
        calls_lock = threading.Lock()

        def factory():
            with calls_lock:
                calls.append(1)
            time.sleep(0.05)
            return object()

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda _: cache.get_or_create("key", factory), range(32)))

        assert len(calls) == 1
        assert all(result is results[0] for result in results)

    @pytest.mark.unit
    def test_clear_during_construction_keeps_single_flight(self):
        cache: ClientCache[object] = ClientCache()
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow_factory():
            calls.append(1)
            started.set()
            release.wait(timeout=5)
            return object()

        with ThreadPoolExecutor(max_workers=2) as pool:
            first = pool.submit(cache.get_or_create, "key", slow_factory)
            assert started.wait(timeout=5)

            cache.clear()
            second = pool.submit(cache.get_or_create, "key", slow_factory)
            time.sleep(0.05)
            release.set()

            assert first.result(timeout=5) is second.result(timeout=5)

        assert len(calls) == 1
        assert cache._key_locks == {}

    @pytest.mark.unit
    def test_other_keys_are_not_blocked(self):
        cache: ClientCache[object] = ClientCache()
        slow_started = threading.Event()
        release_slow = threading.Event()

        def slow_factory():
            slow_started.set()
            release_slow.wait(timeout=5)
            return object()

        with ThreadPoolExecutor(max_workers=2) as pool:
            slow = pool.submit(cache.get_or_create, "slow", slow_factory)
            assert slow_started.wait(timeout=5)

            fast = cache.get_or_create("fast", object)

            assert "fast" in cache
            assert "slow" not in cache
            release_slow.set()
            assert slow.result(timeout=5) is not fast
