"""
Thread-safe object caches for authority factories.

Objects built from authority codes are costly to construct, so each
factory keeps them in an ObjectCache. Lookups take a short lock on the
entry map only; construction of a missing entry is serialised per key,
so two threads asking for different codes never wait on each other and
two threads asking for the same code build it once.

Policies:
- "weak": the most recently used entries are held strongly up to a
  capacity, older ones are demoted to weak references and survive
  only while something else uses them
- "all": every entry is held strongly, without bound
- "none": nothing is stored; every request runs the generator
"""

from abc import ABC, abstractmethod
from collections import OrderedDict
from contextlib import contextmanager
from typing import Any, Callable, Dict, Hashable, Iterator, Optional
import logging
import threading
import weakref

from ..config import (
    CACHE_POLICY_WEAK, CACHE_POLICY_ALL, CACHE_POLICY_NONE, CACHE_POLICIES,
    DEFAULT_CACHE_POLICY, DEFAULT_CACHE_CAPACITY,
    CacheConfig,
)

logger = logging.getLogger(__name__)


class FactoryError(Exception):
    """Base class of authority factory and cache failures."""
    pass


class CacheConstructionError(FactoryError):
    """Raised when the generator of a missing cache entry fails."""
    pass


class FactoryUnavailableError(FactoryError):
    """Raised when a disposed cache or factory is used."""
    pass


class CacheLockTimeoutError(FactoryError):
    """Raised when a per-key lock cannot be acquired in time."""
    pass


def to_key(authority: str, code: Any) -> str:
    """
    Build the cache key of an authority code.

    A code already qualified by the same authority ("EPSG:4326") is
    not qualified twice.

    Args:
        authority: Authority name, e.g. "EPSG"
        code: Code within the authority

    Returns:
        Key of the form "AUTHORITY:code"
    """
    authority = authority.strip().upper()
    code = str(code).strip()
    prefix, sep, rest = code.partition(':')
    if sep and prefix.strip().upper() == authority:
        code = rest.strip()
    return f"{authority}:{code}"


class _KeyLock:
    """Reentrant lock of one key plus the number of threads using it."""

    __slots__ = ('lock', 'users')

    def __init__(self):
        self.lock = threading.RLock()
        self.users = 0


class ObjectCache(ABC):
    """
    Base class of object caches.

    Subclasses implement storage only (_lookup, _store, ...), always
    called with the entry map lock held. Locking, disposal, statistics
    and the get_or_create protocol live here.

    Attributes:
        lock_timeout: Default seconds to wait for a per-key lock (None: forever)
    """

    # Policy name reported by get_stats()
    policy = ""

    def __init__(self, lock_timeout: Optional[float] = None):
        self.lock_timeout = lock_timeout

        # Guards the entries; never held while a generator runs
        self._lock = threading.Lock()
        # Guards the per-key lock table
        self._key_locks_guard = threading.Lock()
        self._key_locks: Dict[Hashable, _KeyLock] = {}

        self._disposed = False
        self._hits = 0
        self._misses = 0
        self._constructions = 0
        self._failures = 0

    # -------------------------------------------------------------------------
    # Storage (subclasses)
    # -------------------------------------------------------------------------

    @abstractmethod
    def _lookup(self, key: Hashable, touch: bool) -> Optional[Any]:
        """Return the value of key or None; touch updates recency."""
        pass

    @abstractmethod
    def _store(self, key: Hashable, value: Any) -> None:
        pass

    @abstractmethod
    def _discard_all(self) -> None:
        pass

    @abstractmethod
    def _count(self) -> int:
        pass

    def _storage_stats(self) -> Dict[str, int]:
        return {}

    # -------------------------------------------------------------------------
    # Entry access
    # -------------------------------------------------------------------------

    def get(self, key: Hashable) -> Optional[Any]:
        """
        Return the cached value of key, or None.

        Marks the entry as recently used.

        Raises:
            FactoryUnavailableError: If the cache was disposed
        """
        with self._lock:
            self._check_available()
            value = self._lookup(key, touch=True)
            if value is None:
                self._misses += 1
            else:
                self._hits += 1
            return value

    def peek(self, key: Hashable) -> Optional[Any]:
        """Return the cached value of key, or None, without changing recency."""
        with self._lock:
            self._check_available()
            return self._lookup(key, touch=False)

    def put(self, key: Hashable, value: Any) -> None:
        """
        Store value under key, replacing any previous entry.

        Raises:
            ValueError: If value is None
            FactoryUnavailableError: If the cache was disposed
        """
        if value is None:
            raise ValueError("Cannot cache None")
        with self._lock:
            self._check_available()
            self._store(key, value)

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._check_available()
            self._discard_all()

    def dispose(self) -> None:
        """
        Release every entry and make the cache unusable.

        Later calls raise FactoryUnavailableError; calling dispose()
        again does nothing.
        """
        with self._lock:
            if self._disposed:
                return
            self._discard_all()
            self._disposed = True
        logger.debug(f"{type(self).__name__} disposed")

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _check_available(self) -> None:
        if self._disposed:
            raise FactoryUnavailableError(f"{type(self).__name__} has been disposed")

    def __len__(self) -> int:
        with self._lock:
            self._check_available()
            return self._count()

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            self._check_available()
            return self._lookup(key, touch=False) is not None

    # -------------------------------------------------------------------------
    # Per-key locks
    # -------------------------------------------------------------------------

    def write_lock(self, key: Hashable, timeout: Optional[float] = None) -> None:
        """
        Acquire the construction lock of key.

        The lock is reentrant. Every write_lock() must be paired with a
        write_unlock() from the same thread.

        Args:
            key: Cache key
            timeout: Seconds to wait (default: lock_timeout)

        Raises:
            CacheLockTimeoutError: If the lock was not acquired in time
            FactoryUnavailableError: If the cache was disposed
        """
        self._check_available()

        with self._key_locks_guard:
            entry = self._key_locks.get(key)
            if entry is None:
                entry = _KeyLock()
                self._key_locks[key] = entry
            entry.users += 1

        if timeout is None:
            timeout = self.lock_timeout

        if timeout is None:
            acquired = entry.lock.acquire()
        else:
            acquired = entry.lock.acquire(timeout=timeout)

        if not acquired:
            self._release_key_lock(key, entry)
            raise CacheLockTimeoutError(f"Timed out after {timeout}s waiting for {key!r}")

    def write_unlock(self, key: Hashable) -> None:
        """
        Release the construction lock of key.

        Raises:
            RuntimeError: If the calling thread does not hold the lock
        """
        with self._key_locks_guard:
            entry = self._key_locks.get(key)
        if entry is None:
            raise RuntimeError(f"write_unlock() without write_lock() for {key!r}")

        entry.lock.release()
        self._release_key_lock(key, entry)

    def _release_key_lock(self, key: Hashable, entry: _KeyLock) -> None:
        with self._key_locks_guard:
            entry.users -= 1
            if entry.users == 0:
                del self._key_locks[key]

    @contextmanager
    def locked(self, key: Hashable, timeout: Optional[float] = None) -> Iterator[None]:
        """Context manager around write_lock() / write_unlock()."""
        self.write_lock(key, timeout)
        try:
            yield
        finally:
            self.write_unlock(key)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    def get_or_create(self, key: Hashable, generator: Callable[[Hashable], Any]) -> Any:
        """
        Return the value of key, building it with generator(key) if missing.

        At most one thread runs the generator for a given key at a time;
        threads arriving meanwhile wait and then find the stored value.
        A failed construction stores nothing, so the next request tries again.

        Args:
            key: Cache key
            generator: Builds the value from the key

        Returns:
            Cached or newly built value

        Raises:
            CacheConstructionError: If the generator fails or returns None
                (FactoryError subclasses are propagated unchanged)
            CacheLockTimeoutError: If the per-key lock timed out
            FactoryUnavailableError: If the cache was disposed
        """
        value = self.get(key)
        if value is not None:
            return value

        with self.locked(key):
            # Another thread may have finished while we waited
            value = self.peek(key)
            if value is not None:
                return value

            try:
                value = generator(key)
            except FactoryError:
                self._record_failure()
                raise
            except Exception as e:
                self._record_failure()
                logger.warning(f"Construction of {key!r} failed: {e}")
                raise CacheConstructionError(f"Cannot create {key!r}: {e}") from e

            if value is None:
                self._record_failure()
                raise CacheConstructionError(f"Generator returned None for {key!r}")

            self.put(key, value)
            with self._lock:
                self._constructions += 1
            logger.debug(f"Constructed {key!r}")
            return value

    def _record_failure(self) -> None:
        with self._lock:
            self._failures += 1

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            stats = {
                'policy': self.policy,
                'size': 0 if self._disposed else self._count(),
                'hits': self._hits,
                'misses': self._misses,
                'constructions': self._constructions,
                'failures': self._failures,
                'disposed': self._disposed,
            }
            stats.update(self._storage_stats())
        with self._key_locks_guard:
            stats['locked_keys'] = len(self._key_locks)
        return stats


class DefaultObjectCache(ObjectCache):
    """Unbounded cache holding every entry strongly."""

    policy = CACHE_POLICY_ALL

    def __init__(self, lock_timeout: Optional[float] = None):
        super().__init__(lock_timeout)
        self._entries: Dict[Hashable, Any] = {}

    def _lookup(self, key, touch):
        return self._entries.get(key)

    def _store(self, key, value):
        self._entries[key] = value

    def _discard_all(self):
        self._entries.clear()

    def _count(self):
        return len(self._entries)


class NullObjectCache(ObjectCache):
    """Cache that stores nothing; every get_or_create() runs the generator."""

    policy = CACHE_POLICY_NONE

    def _lookup(self, key, touch):
        return None

    def _store(self, key, value):
        pass

    def _discard_all(self):
        pass

    def _count(self):
        return 0


class WeakObjectCache(ObjectCache):
    """
    LRU cache with weak-reference overflow.

    Up to capacity entries are held strongly in recency order. Putting
    or promoting past capacity demotes the least recently used entries
    to weak references. A weak entry still alive when read is promoted
    back to the strong set. Weak entries whose object was collected are
    purged lazily.

    Values that cannot be weakly referenced (int, str, tuple, list,
    dict) are never demoted: demotion skips to the next least recently
    used entry, so such values keep the strong set above capacity
    until they are cleared.

    Attributes:
        capacity: Maximum number of strongly held entries
    """

    policy = CACHE_POLICY_WEAK

    def __init__(self, capacity: int = DEFAULT_CACHE_CAPACITY, lock_timeout: Optional[float] = None):
        if capacity < 0:
            raise ValueError("capacity must be non-negative")
        super().__init__(lock_timeout)
        self.capacity = capacity
        self._strong: 'OrderedDict[Hashable, Any]' = OrderedDict()
        self._weak: Dict[Hashable, weakref.ref] = {}
        self._demotions = 0

    def _lookup(self, key, touch):
        value = self._strong.get(key)
        if value is not None:
            if touch:
                self._strong.move_to_end(key)
            return value

        ref = self._weak.get(key)
        if ref is None:
            return None

        value = ref()
        if value is None:
            del self._weak[key]
            return None

        if touch:
            del self._weak[key]
            self._strong[key] = value
            self._demote_overflow()
        return value

    def _store(self, key, value):
        self._weak.pop(key, None)
        self._strong[key] = value
        self._strong.move_to_end(key)
        self._demote_overflow()
        self._purge()

    def _demote_overflow(self) -> None:
        excess = len(self._strong) - self.capacity
        if excess <= 0:
            return

        for key in list(self._strong):
            if excess <= 0:
                break
            try:
                ref = weakref.ref(self._strong[key])
            except TypeError:
                # No weak form, stays strong
                continue
            del self._strong[key]
            self._weak[key] = ref
            self._demotions += 1
            excess -= 1
            logger.debug(f"Demoted {key!r} to weak reference")

    def _purge(self) -> None:
        dead = [key for key, ref in self._weak.items() if ref() is None]
        for key in dead:
            del self._weak[key]
        if dead:
            logger.debug(f"Purged {len(dead)} collected entries")

    def _discard_all(self):
        self._strong.clear()
        self._weak.clear()

    def _count(self):
        self._purge()
        return len(self._strong) + len(self._weak)

    def _storage_stats(self):
        return {
            'capacity': self.capacity,
            'strong': len(self._strong),
            'weak': len(self._weak),
            'demotions': self._demotions,
        }


def create_cache(
    policy: str = DEFAULT_CACHE_POLICY,
    capacity: int = DEFAULT_CACHE_CAPACITY,
    lock_timeout: Optional[float] = None
) -> ObjectCache:
    """
    Factory function to create an object cache.

    Args:
        policy: "weak", "all" or "none" (case insensitive)
        capacity: Strongly held entries ("weak" policy only)
        lock_timeout: Default per-key lock timeout in seconds

    Returns:
        ObjectCache implementation

    Raises:
        ValueError: On unknown policy or negative capacity
    """
    name = policy.strip().lower()
    if name == CACHE_POLICY_WEAK:
        return WeakObjectCache(capacity, lock_timeout)
    if name == CACHE_POLICY_ALL:
        return DefaultObjectCache(lock_timeout)
    if name == CACHE_POLICY_NONE:
        return NullObjectCache(lock_timeout)
    raise ValueError(f"Unknown cache policy {policy!r}, expected one of {', '.join(CACHE_POLICIES)}")


def cache_from_config(config: CacheConfig) -> ObjectCache:
    """Create the cache described by a CacheConfig."""
    return create_cache(config.policy, config.capacity, config.lock_timeout)
