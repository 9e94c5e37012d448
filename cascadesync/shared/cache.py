"""
Process-wide caches with a single invalidation point.

Schema lookups and "indexes already ensured" memos live in L1Cache instances
registered here. Anything that changes schema state (schema sync, a forced
data sync) calls invalidate_all() instead of reaching into each cache.
"""

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple

from .observability import get_logger

logger = get_logger(__name__)

_MISSING = object()


class L1Cache:
    """In-process LRU cache with TTL support and size limits."""

    def __init__(self, max_size: int = 1000, ttl_seconds: Optional[float] = 300):
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._cache: "OrderedDict[str, Tuple[Any, Optional[float]]]" = OrderedDict()
        self._hits = 0
        self._misses = 0

    def get(self, key: str, default: Any = None) -> Any:
        """Get value from cache if present and not expired."""
        if key not in self._cache:
            self._misses += 1
            return default

        value, expiry = self._cache[key]
        if expiry is not None and time.time() > expiry:
            del self._cache[key]
            self._misses += 1
            return default

        # Move to end (most recently used)
        self._cache.move_to_end(key)
        self._hits += 1
        return value

    def put(self, key: str, value: Any) -> None:
        """Put value in cache with TTL."""
        expiry = time.time() + self.ttl_seconds if self.ttl_seconds else None

        if key in self._cache:
            self._cache[key] = (value, expiry)
            self._cache.move_to_end(key)
        else:
            if len(self._cache) >= self.max_size:
                # Evict oldest
                self._cache.popitem(last=False)
            self._cache[key] = (value, expiry)

    def get_or_load(self, key: str, loader: Callable[[], Any]) -> Any:
        """Return the cached value, populating it from loader on a miss."""
        value = self.get(key, _MISSING)
        if value is _MISSING:
            value = loader()
            self.put(key, value)
        return value

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def invalidate(self, key: str) -> None:
        """Remove specific key from cache."""
        self._cache.pop(key, None)

    def clear(self) -> None:
        """Clear entire cache."""
        self._cache.clear()
        self._hits = 0
        self._misses = 0

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        total = self._hits + self._misses
        hit_rate = self._hits / total if total > 0 else 0.0
        return {
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": hit_rate,
            "size": len(self._cache),
            "max_size": self.max_size,
        }


_registry_lock = threading.Lock()
_registered: Dict[str, L1Cache] = {}


def register_cache(name: str, cache: L1Cache) -> L1Cache:
    """Register a cache so invalidate_all() reaches it."""
    with _registry_lock:
        _registered[name] = cache
    return cache


def unregister_cache(name: str) -> None:
    with _registry_lock:
        _registered.pop(name, None)


def invalidate_all() -> int:
    """Clear every registered cache. Returns the number of caches cleared."""
    with _registry_lock:
        caches = list(_registered.items())
    for name, cache in caches:
        cache.clear()
    logger.info("Invalidated process caches", caches=[name for name, _ in caches])
    return len(caches)
