"""In-memory holders for memoized values.

``ValueCache`` keeps one value: the composition root owns one instance for the
service's own location, and ``invalidate()`` forces the next ``resolve()`` to
run the provider chain again. With ``ttl_seconds=None`` the value never
expires on its own.

``KeyedValueCache`` keeps one value per key with a TTL and LRU eviction; it
holds per-caller locations keyed by client address.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheItem(Generic[T]):
    """Container for the cached value with expiration metadata."""

    value: T
    stored_at: float
    expires_at: float | None


class ValueCache(Generic[T]):
    """Thread-safe single-slot cache with optional TTL.

    Attributes:
        name: Label used in log events.
        ttl_seconds: Lifetime of a stored value (None for unlimited).
    """

    def __init__(self, name: str, ttl_seconds: float | None = None) -> None:
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0 or None")
        self.name = name
        self._ttl = ttl_seconds
        self._item: CacheItem[T] | None = None
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._invalidations = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"ValueCache(name={self.name!r}, ttl_seconds={self._ttl}, "
            f"populated={self._item is not None}, hits={self._hits}, misses={self._misses})"
        )

    def get(self) -> T | None:
        """Return the value if present and not expired."""

        with self._lock:
            item = self._item
            if item is None:
                self._misses += 1
                logger.debug("cache.miss", extra={"cache": self.name, "reason": "empty"})
                return None

            if item.expires_at is not None and time.time() > item.expires_at:
                self._item = None
                self._misses += 1
                logger.debug("cache.miss", extra={"cache": self.name, "reason": "expired"})
                return None

            self._hits += 1
            return item.value

    def set(self, value: T) -> None:
        """Store ``value``, replacing any previous one."""

        now = time.time()
        with self._lock:
            self._item = CacheItem(
                value=value,
                stored_at=now,
                expires_at=None if self._ttl is None else now + self._ttl,
            )
        logger.debug("cache.set", extra={"cache": self.name, "ttl_s": self._ttl})

    def invalidate(self) -> bool:
        """Drop the stored value.

        Returns:
            True if a value was dropped.
        """

        with self._lock:
            had_value = self._item is not None
            self._item = None
            if had_value:
                self._invalidations += 1
        logger.info("cache.invalidated", extra={"cache": self.name, "had_value": had_value})
        return had_value

    def stats(self) -> dict[str, int | float | bool | None]:
        """Return lightweight cache metrics without exposing the value."""

        with self._lock:
            return {
                "ttl_seconds": self._ttl,
                "populated": self._item is not None,
                "stored_at": self._item.stored_at if self._item else None,
                "hits": self._hits,
                "misses": self._misses,
                "invalidations": self._invalidations,
            }


class KeyedValueCache(Generic[T]):
    """Thread-safe TTL cache with LRU eviction, one value per key.

    Attributes:
        name: Label used in log events.
        ttl_seconds: Lifetime applied to every entry.
        max_entries: Maximum number of entries kept.
    """

    def __init__(self, name: str, ttl_seconds: float = 3600.0, max_entries: int = 10_000) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.name = name
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._store: OrderedDict[str, CacheItem[T]] = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"KeyedValueCache(name={self.name!r}, ttl_seconds={self._ttl}, "
            f"max_entries={self._max_entries}, size={len(self._store)})"
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def get(self, key: str) -> T | None:
        """Return the value stored under ``key`` if present and not expired."""

        with self._lock:
            item = self._store.get(key)
            if item is None:
                self._misses += 1
                return None

            if item.expires_at is not None and time.time() > item.expires_at:
                self._store.pop(key, None)
                self._evictions += 1
                self._misses += 1
                logger.debug("cache.miss", extra={"cache": self.name, "reason": "expired"})
                return None

            self._hits += 1
            self._store.move_to_end(key)
            return item.value

    def set(self, key: str, value: T) -> None:
        """Store ``value`` under ``key``, evicting the least recently used entries."""

        now = time.time()
        with self._lock:
            self._store[key] = CacheItem(value=value, stored_at=now, expires_at=now + self._ttl)
            self._store.move_to_end(key)
            while len(self._store) > self._max_entries:
                self._store.popitem(last=False)
                self._evictions += 1
            size = len(self._store)
        logger.debug("cache.set", extra={"cache": self.name, "size": size, "ttl_s": self._ttl})

    def invalidate(self) -> int:
        """Drop every entry.

        Returns:
            Number of entries dropped.
        """

        with self._lock:
            dropped = len(self._store)
            self._store.clear()
        logger.info("cache.invalidated", extra={"cache": self.name, "dropped": dropped})
        return dropped

    def stats(self) -> dict[str, int | float]:
        """Return lightweight cache metrics without exposing values."""

        with self._lock:
            return {
                "ttl_seconds": self._ttl,
                "max_entries": self._max_entries,
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }
