"""Tests of the object caches.

Covers the three retention policies, per-key construction locking under
concurrent callers, failure handling and disposal.
"""

import gc
import threading
import time

import pytest

from carto_core.cache import (
    CacheConstructionError,
    CacheLockTimeoutError,
    DefaultObjectCache,
    FactoryError,
    FactoryUnavailableError,
    NullObjectCache,
    WeakObjectCache,
    cache_from_config,
    create_cache,
    to_key,
)
from carto_core.config import CacheConfig


class Entry:
    """Weakly referenceable cache value."""

    def __init__(self, name):
        self.name = name


# ============================================================================
# KEYS AND CONSTRUCTION
# ============================================================================

class TestToKey:
    """Authority qualified keys."""

    def test_qualified(self):
        """Codes are prefixed by the authority."""
        assert to_key("EPSG", 4326) == "EPSG:4326"

    def test_case_and_spaces(self):
        """The authority is upper-cased, spaces stripped."""
        assert to_key(" epsg ", " 3395 ") == "EPSG:3395"

    def test_not_qualified_twice(self):
        """A code already carrying the authority keeps a single prefix."""
        assert to_key("EPSG", "epsg:3395") == "EPSG:3395"

    def test_other_authority_kept(self):
        """A prefix naming another authority is part of the code."""
        assert to_key("EPSG", "ESRI:102100") == "EPSG:ESRI:102100"


class TestCreateCache:
    """Policy selection."""

    @pytest.mark.parametrize("policy, cls", [
        ("weak", WeakObjectCache),
        ("all", DefaultObjectCache),
        ("none", NullObjectCache),
        (" WEAK ", WeakObjectCache),
    ])
    def test_policies(self, policy, cls):
        """Each policy maps to its cache class."""
        assert type(create_cache(policy)) is cls

    def test_unknown_policy(self):
        """Unknown policies raise ValueError."""
        with pytest.raises(ValueError):
            create_cache("soft")

    def test_capacity(self):
        """Capacity is passed to the weak cache."""
        cache = create_cache("weak", 7)
        assert cache.capacity == 7

    def test_from_config(self):
        """A CacheConfig selects policy, capacity and timeout."""
        cache = cache_from_config(CacheConfig(policy="weak", capacity=3, lock_timeout=2.0))
        assert isinstance(cache, WeakObjectCache)
        assert cache.capacity == 3
        assert cache.lock_timeout == 2.0

    def test_negative_capacity(self):
        """Negative capacity is rejected."""
        with pytest.raises(ValueError):
            WeakObjectCache(-1)


# ============================================================================
# WEAK POLICY
# ============================================================================

class TestWeakObjectCache:
    """Strong LRU with weak overflow."""

    def test_get_and_put(self):
        """Stored values come back."""
        cache = WeakObjectCache(2)
        value = Entry("a")
        cache.put("a", value)

        assert cache.get("a") is value
        assert cache.get("missing") is None
        assert "a" in cache
        assert len(cache) == 1

    def test_put_none_rejected(self):
        """None means "absent" and cannot be stored."""
        with pytest.raises(ValueError):
            WeakObjectCache(2).put("a", None)

    def test_demotion_to_weak(self):
        """Beyond capacity the least recently used entry becomes weak."""
        cache = WeakObjectCache(2)
        a, b, c = Entry("a"), Entry("b"), Entry("c")
        cache.put("a", a)
        cache.put("b", b)
        cache.put("c", c)

        stats = cache.get_stats()
        assert stats['strong'] == 2
        assert stats['weak'] == 1
        assert stats['demotions'] == 1
        # Still reachable while the caller holds it
        assert cache.peek("a") is a

    def test_weak_entry_collected(self):
        """A demoted entry disappears once nothing else references it."""
        cache = WeakObjectCache(1)
        cache.put("a", Entry("a"))
        cache.put("b", Entry("b"))
        gc.collect()

        assert cache.get("a") is None
        assert cache.get("b").name == "b"
        assert len(cache) == 1

    def test_get_refreshes_order(self):
        """get() marks an entry as recently used."""
        cache = WeakObjectCache(2)
        a, b, c = Entry("a"), Entry("b"), Entry("c")
        cache.put("a", a)
        cache.put("b", b)
        cache.get("a")
        del b
        cache.put("c", c)
        gc.collect()

        assert cache.peek("a") is a
        assert cache.peek("b") is None

    def test_peek_keeps_order(self):
        """peek() does not change recency."""
        cache = WeakObjectCache(2)
        a, b, c = Entry("a"), Entry("b"), Entry("c")
        cache.put("a", a)
        cache.put("b", b)
        cache.peek("a")
        del a
        cache.put("c", c)
        gc.collect()

        assert cache.peek("a") is None
        assert cache.peek("b") is b

    def test_live_weak_entry_promoted(self):
        """Reading a live weak entry makes it strong again."""
        cache = WeakObjectCache(1)
        a = Entry("a")
        cache.put("a", a)
        cache.put("b", Entry("b"))

        assert cache.get("a") is a
        del a
        gc.collect()

        # "a" is strong again, "b" was demoted and collected
        assert cache.peek("a").name == "a"
        assert cache.peek("b") is None

    def test_unreferenceable_kept_strong(self):
        """Values without weak reference support are never demoted."""
        cache = WeakObjectCache(1)
        cache.put("a", 1)
        cache.put("b", 2)

        assert cache.peek("a") == 1
        assert cache.peek("b") == 2
        stats = cache.get_stats()
        assert stats['strong'] == 2
        assert stats['demotions'] == 0

    def test_unreferenceable_skipped_for_demotion(self):
        """Demotion passes over an unreferenceable entry to the next one."""
        cache = WeakObjectCache(2)
        b = Entry("b")
        cache.put("a", ("tuple", "value"))
        cache.put("b", b)
        cache.put("c", Entry("c"))

        stats = cache.get_stats()
        assert stats['strong'] == 2
        assert stats['weak'] == 1
        # "a" stayed strong, "b" was demoted in its place
        assert cache.peek("a") == ("tuple", "value")
        del b
        gc.collect()
        assert cache.peek("b") is None

    def test_frozenset_demoted(self):
        """Multi-result sets support weak references and demote normally."""
        cache = WeakObjectCache(1)
        codes = frozenset({"3395", "4088"})
        cache.put("codes", codes)
        cache.put("other", Entry("other"))

        assert cache.get_stats()['weak'] == 1
        assert cache.peek("codes") is codes

    def test_zero_capacity(self):
        """With no strong slots every entry is weak."""
        cache = WeakObjectCache(0)
        a = Entry("a")
        cache.put("a", a)

        assert cache.peek("a") is a
        assert cache.get_stats()['strong'] == 0

    def test_clear(self):
        """clear() empties the cache."""
        cache = WeakObjectCache(2)
        cache.put("a", Entry("a"))
        cache.clear()
        assert len(cache) == 0


# ============================================================================
# OTHER POLICIES
# ============================================================================

class TestOtherPolicies:
    """"all" and "none" policies."""

    def test_all_keeps_everything(self):
        """The default cache never evicts."""
        cache = DefaultObjectCache()
        for i in range(200):
            cache.put(i, Entry(i))
        gc.collect()

        assert len(cache) == 200
        assert cache.get(0).name == 0

    def test_none_stores_nothing(self):
        """The null cache always misses."""
        cache = NullObjectCache()
        cache.put("a", Entry("a"))
        assert cache.get("a") is None
        assert len(cache) == 0

    def test_none_runs_generator_every_time(self):
        """get_or_create() builds a new value on every call."""
        cache = NullObjectCache()
        calls = []

        def generator(key):
            calls.append(key)
            return Entry(key)

        first = cache.get_or_create("a", generator)
        second = cache.get_or_create("a", generator)

        assert first is not second
        assert calls == ["a", "a"]


# ============================================================================
# GET OR CREATE
# ============================================================================

class TestGetOrCreate:
    """Construction protocol."""

    def test_built_once(self):
        """Later calls reuse the stored value."""
        cache = WeakObjectCache(4)
        calls = []

        def generator(key):
            calls.append(key)
            return Entry(key)

        first = cache.get_or_create("a", generator)
        assert cache.get_or_create("a", generator) is first
        assert calls == ["a"]

        stats = cache.get_stats()
        assert stats['constructions'] == 1
        assert stats['hits'] == 1
        assert stats['locked_keys'] == 0

    def test_failure_wrapped_and_not_cached(self):
        """Generator errors are wrapped; the next call tries again."""
        cache = WeakObjectCache(4)
        attempts = []

        def generator(key):
            attempts.append(key)
            if len(attempts) == 1:
                raise RuntimeError("boom")
            return Entry(key)

        with pytest.raises(CacheConstructionError) as exc_info:
            cache.get_or_create("a", generator)
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert cache.peek("a") is None

        assert cache.get_or_create("a", generator).name == "a"
        assert cache.get_stats()['failures'] == 1
        assert cache.get_stats()['locked_keys'] == 0

    def test_factory_error_not_wrapped(self):
        """FactoryError subclasses propagate unchanged."""
        cache = WeakObjectCache(4)

        class MissingCode(FactoryError):
            pass

        def generator(key):
            raise MissingCode(key)

        with pytest.raises(MissingCode):
            cache.get_or_create("a", generator)

    def test_none_result(self):
        """A generator returning None is a construction error."""
        with pytest.raises(CacheConstructionError):
            WeakObjectCache(4).get_or_create("a", lambda key: None)

    def test_single_construction_under_contention(self):
        """K concurrent callers of one key run the generator once."""
        cache = WeakObjectCache(4)
        workers = 8
        barrier = threading.Barrier(workers)
        calls = []
        calls_lock = threading.Lock()
        results = [None] * workers

        def generator(key):
            with calls_lock:
                calls.append(key)
            time.sleep(0.05)
            return Entry(key)

        def worker(index):
            barrier.wait()
            results[index] = cache.get_or_create("shared", generator)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert calls == ["shared"]
        assert all(result is results[0] for result in results)
        assert results[0] is not None
        assert cache.get_stats()['locked_keys'] == 0

    def test_different_keys_not_serialised(self):
        """Construction of one key does not block another key."""
        cache = WeakObjectCache(4)
        b_started = threading.Event()
        seen = {}

        def generator(key):
            if key == "a":
                # Only returns once "b" was built concurrently
                seen['b_ran'] = b_started.wait(timeout=5)
            else:
                b_started.set()
            return Entry(key)

        thread = threading.Thread(target=lambda: cache.get_or_create("a", generator))
        thread.start()
        cache.get_or_create("b", generator)
        thread.join(timeout=10)

        assert seen['b_ran'] is True
        assert cache.peek("a") is not None

    def test_lookup_not_blocked_by_construction(self):
        """Reads of other keys proceed while a generator runs."""
        cache = WeakObjectCache(4)
        ready = Entry("ready")
        cache.put("ready", ready)
        in_generator = threading.Event()
        release = threading.Event()

        def generator(key):
            in_generator.set()
            release.wait(timeout=5)
            return Entry(key)

        thread = threading.Thread(target=lambda: cache.get_or_create("slow", generator))
        thread.start()
        assert in_generator.wait(timeout=5)

        assert cache.get("ready") is ready
        release.set()
        thread.join(timeout=10)


# ============================================================================
# PER-KEY LOCKS
# ============================================================================

class TestKeyLocks:
    """write_lock / write_unlock."""

    def test_reentrant(self):
        """The same thread may lock a key twice."""
        cache = WeakObjectCache(4)
        cache.write_lock("a")
        cache.write_lock("a")
        cache.write_unlock("a")
        cache.write_unlock("a")
        assert cache.get_stats()['locked_keys'] == 0

    def test_unlock_without_lock(self):
        """Unlocking a key that was never locked is an error."""
        with pytest.raises(RuntimeError):
            WeakObjectCache(4).write_unlock("a")

    def test_timeout(self):
        """Waiting longer than the timeout raises CacheLockTimeoutError."""
        cache = WeakObjectCache(4)
        locked = threading.Event()
        release = threading.Event()

        def holder():
            cache.write_lock("a")
            locked.set()
            release.wait(timeout=5)
            cache.write_unlock("a")

        thread = threading.Thread(target=holder)
        thread.start()
        assert locked.wait(timeout=5)

        with pytest.raises(CacheLockTimeoutError):
            cache.write_lock("a", timeout=0.05)

        release.set()
        thread.join(timeout=10)
        assert cache.get_stats()['locked_keys'] == 0

    def test_default_timeout(self):
        """lock_timeout applies to get_or_create()."""
        cache = WeakObjectCache(4, lock_timeout=0.05)
        locked = threading.Event()
        release = threading.Event()

        def holder():
            cache.write_lock("a")
            locked.set()
            release.wait(timeout=5)
            cache.write_unlock("a")

        thread = threading.Thread(target=holder)
        thread.start()
        assert locked.wait(timeout=5)

        with pytest.raises(CacheLockTimeoutError):
            cache.get_or_create("a", lambda key: Entry(key))

        release.set()
        thread.join(timeout=10)

    def test_context_manager(self):
        """locked() pairs lock and unlock."""
        cache = WeakObjectCache(4)
        with cache.locked("a"):
            assert cache.get_stats()['locked_keys'] == 1
        assert cache.get_stats()['locked_keys'] == 0


# ============================================================================
# DISPOSAL
# ============================================================================

class TestDispose:
    """Disposed caches refuse work."""

    @pytest.mark.parametrize("operation", [
        lambda cache: cache.get("a"),
        lambda cache: cache.peek("a"),
        lambda cache: cache.put("a", Entry("a")),
        lambda cache: cache.clear(),
        lambda cache: cache.write_lock("a"),
        lambda cache: cache.get_or_create("a", lambda key: Entry(key)),
        lambda cache: len(cache),
        lambda cache: "a" in cache,
    ])
    def test_operations_fail(self, operation):
        """Every operation raises FactoryUnavailableError."""
        cache = WeakObjectCache(4)
        cache.put("a", Entry("a"))
        cache.dispose()

        with pytest.raises(FactoryUnavailableError):
            operation(cache)

    def test_dispose_twice(self):
        """A second dispose() is harmless."""
        cache = DefaultObjectCache()
        cache.dispose()
        cache.dispose()
        assert cache.disposed
        assert cache.get_stats()['disposed'] is True
