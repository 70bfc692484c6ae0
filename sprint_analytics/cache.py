"""Cache stores and the cache client used by every component.

A :class:`CacheStore` is any key/value store with per-entry lifetimes and
batch operations. Components never talk to a store directly: they are handed
a :class:`CacheClient`, which turns store failures into cache misses so that
an unreachable cache only ever makes a report slower.
"""

import abc
import logging
import time
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from cachetools import TLRUCache

from .exceptions import CacheUnavailable

logger = logging.getLogger(__name__)

CacheEntry = Tuple[str, Any, int]

# Errors a store may raise that are treated as "cache unavailable"
STORE_ERRORS = (CacheUnavailable, ConnectionError, TimeoutError, OSError)

DEFAULT_MAXSIZE = 4096


def _time_to_use(key, entry, now):
    """Expiry time of a stored ``(value, ttl)`` entry."""
    return now + entry[1]


class CacheStore(abc.ABC):
    """Key/value store with TTL and batch operations."""

    @abc.abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the value stored under key, or None if absent or expired."""

    @abc.abstractmethod
    def set(self, key: str, value: Any, ttl: int) -> None:
        """Store value under key for ttl seconds."""

    def get_many(self, keys: Sequence[str]) -> Dict[str, Any]:
        """Return a mapping of the keys that were found to their values."""
        found = {}
        for key in keys:
            value = self.get(key)
            if value is not None:
                found[key] = value
        return found

    def set_many(self, entries: Iterable[CacheEntry]) -> None:
        for key, value, ttl in entries:
            self.set(key, value, ttl)


class MemoryCacheStore(CacheStore):
    """In-process cache store backed by a ``cachetools.TLRUCache``.

    Each entry expires ``ttl`` seconds after it was written. Expired entries
    are evicted whenever the store is written to, and the store never holds
    more than ``maxsize`` entries. The clock is injectable so expiry can be
    tested without sleeping.
    """

    def __init__(self, maxsize=DEFAULT_MAXSIZE, clock=time.monotonic):
        self._cache = TLRUCache(maxsize=maxsize, ttu=_time_to_use, timer=clock)

    def get(self, key):
        entry = self._cache.get(key)
        if entry is None:
            return None
        return entry[0]

    def set(self, key, value, ttl):
        self._cache[key] = (value, ttl)

    def clear(self):
        self._cache.clear()

    def __len__(self):
        self._cache.expire()
        return len(self._cache)


class CacheClient:
    """Wraps a cache store, treating any store failure as a miss.

    Keeps hit and miss counters for the lifetime of the client.
    """

    def __init__(self, store: CacheStore):
        self.store = store
        self.hits = 0
        self.misses = 0

    def get(self, key):
        try:
            value = self.store.get(key)
        except STORE_ERRORS as e:
            logger.warning("Cache unavailable reading %s: %s", key, e)
            value = None

        if value is None:
            self.misses += 1
            logger.debug("Cache miss for %s", key)
        else:
            self.hits += 1
            logger.debug("Cache hit for %s", key)
        return value

    def set(self, key, value, ttl):
        try:
            self.store.set(key, value, ttl)
        except STORE_ERRORS as e:
            logger.warning("Cache unavailable writing %s: %s", key, e)

    def get_many(self, keys):
        keys = list(keys)
        if not keys:
            return {}
        try:
            found = self.store.get_many(keys)
        except STORE_ERRORS as e:
            logger.warning("Cache unavailable reading %d keys: %s", len(keys), e)
            found = {}

        found = {k: v for k, v in found.items() if v is not None}
        self.hits += len(found)
        self.misses += len(keys) - len(found)
        logger.debug("Cache batch lookup: %d of %d keys found", len(found), len(keys))
        return found

    def set_many(self, entries):
        entries = list(entries)
        if not entries:
            return
        try:
            self.store.set_many(entries)
        except STORE_ERRORS as e:
            logger.warning("Cache unavailable writing %d keys: %s", len(entries), e)

    async def get_or_fetch(self, key, ttl, fetch):
        """Return the cached value for key, or await ``fetch()`` and cache it.

        ``ttl`` is either a number of seconds or a callable taking the
        fetched value and returning one. The value is only written after the
        fetch completed successfully; a failed or cancelled fetch leaves the
        cache untouched.
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        value = await fetch()
        if value is not None:
            self.set(key, value, ttl(value) if callable(ttl) else ttl)
        return value
