#!/usr/bin/env python3
"""LRU cache for computed datum pages.

The enumeration window computes datums one page at a time. Pages are kept in
a bounded LRU cache so navigation around the cursor does not recompute them;
an evicted page is recomputed on demand and yields the same datums, since the
underlying sequences are deterministic.

Example:
    >>> cache = LRUCache(CacheConfig(max_entries=4))
    >>> cache.set(0, page)
    >>> cache.get(0)
"""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Optional


@dataclass
class CacheEntry:
    """Single cache entry with metadata."""

    key: Hashable
    value: Any
    timestamp: float = field(default_factory=time.time)
    access_count: int = 0

    def touch(self) -> None:
        """Update access count."""
        self.access_count += 1


@dataclass
class CacheConfig:
    """Configuration for an LRU cache."""

    max_entries: int
    enabled: bool = True

    def validate(self) -> None:
        """Validate cache configuration."""
        if self.max_entries <= 0:
            raise ValueError(f"max_entries must be positive: {self.max_entries}")


class LRUCache:
    """Thread-safe LRU cache bounded by entry count."""

    def __init__(self, config: CacheConfig):
        """Initialize LRU cache.

        Args:
            config: Cache configuration
        """
        self.config = config
        self.config.validate()
        self._cache: "OrderedDict[Hashable, CacheEntry]" = OrderedDict()
        self._lock = threading.RLock()

        # Statistics
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: Hashable) -> Optional[Any]:
        """Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not cached
        """
        with self._lock:
            if not self.config.enabled or key not in self._cache:
                self._misses += 1
                return None

            entry = self._cache[key]
            self._cache.move_to_end(key)
            entry.touch()

            self._hits += 1
            return entry.value

    def set(self, key: Hashable, value: Any) -> None:
        """Set value in cache, evicting the least recently used entries.

        Args:
            key: Cache key
            value: Value to cache
        """
        if not self.config.enabled:
            return

        with self._lock:
            self._cache.pop(key, None)

            while len(self._cache) >= self.config.max_entries:
                self._evict_lru()

            self._cache[key] = CacheEntry(key=key, value=value)

    def invalidate(self, key: Hashable) -> bool:
        """Remove entry from cache.

        Returns:
            True if entry was removed
        """
        with self._lock:
            return self._cache.pop(key, None) is not None

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            self._cache.clear()

    def _evict_lru(self) -> None:
        """Evict least recently used entry."""
        if self._cache:
            self._cache.popitem(last=False)
            self._evictions += 1

    def keys(self) -> List[Hashable]:
        """Cached keys, least recently used first."""
        with self._lock:
            return list(self._cache.keys())

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = self._hits / total_requests if total_requests > 0 else 0

            return {
                "entries": len(self._cache),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": hit_rate,
                "evictions": self._evictions,
            }
