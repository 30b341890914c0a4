"""
Cache Management

diskcache-backed storage shared by the service. Each cache type is its own
diskcache directory with a default TTL; currently only the per-user
playlist history uses it.
"""

import hashlib
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
from diskcache import Cache

logger = structlog.get_logger(__name__)

# Default TTL per cache type (in seconds)
CACHE_TTLS = {
    "playlists": 7 * 24 * 3600,  # 1 week
}


def _short(key: str) -> str:
    return key[:16] + "..."


class CacheManager:
    """
    File-based cache manager with TTL support.

    Unknown cache types and diskcache errors are logged and treated as a
    miss, so a broken cache never fails a playlist request.
    """

    def __init__(self, cache_dir: str = "data/cache", ttls: Optional[Dict[str, int]] = None):
        """
        Initialize cache manager.

        Args:
            cache_dir: Directory for cache storage
            ttls: Cache type to default TTL, replacing ``CACHE_TTLS``
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        self.default_ttl = dict(ttls or CACHE_TTLS)
        self.caches = {
            name: Cache(str(self.cache_dir / name)) for name in self.default_ttl
        }

        logger.info(
            "Cache manager initialized",
            cache_dir=str(self.cache_dir),
            cache_types=list(self.caches)
        )

    @staticmethod
    def make_key(*parts: Any) -> str:
        """Stable hashed key for the given parts."""
        raw = json.dumps(parts, sort_keys=True, default=str)
        return hashlib.md5(raw.encode()).hexdigest()

    def _cache(self, cache_type: str) -> Optional[Cache]:
        cache = self.caches.get(cache_type)
        if cache is None:
            logger.warning("Invalid cache type", cache_type=cache_type)
        return cache

    def get(self, cache_type: str, key: str, default: Any = None) -> Any:
        """
        Get value from cache.

        Args:
            cache_type: Type of cache
            key: Cache key
            default: Returned on a miss or error

        Returns:
            Cached value or default
        """
        cache = self._cache(cache_type)
        if cache is None:
            return default

        try:
            return cache.get(key, default)
        except Exception as e:
            logger.error("Cache get failed", cache_type=cache_type, key=_short(key), error=str(e))
            return default

    def set(self, cache_type: str, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set value in cache.

        Args:
            cache_type: Type of cache
            key: Cache key
            value: Value to cache (must be picklable)
            ttl: Time to live in seconds (cache type default if None)

        Returns:
            True if stored
        """
        cache = self._cache(cache_type)
        if cache is None:
            return False

        try:
            cache.set(key, value, expire=ttl or self.default_ttl[cache_type])
        except Exception as e:
            logger.error("Cache set failed", cache_type=cache_type, key=_short(key), error=str(e))
            return False
        return True

    def push_recent(
        self,
        cache_type: str,
        key: str,
        item: Any,
        max_items: int
    ) -> List[Any]:
        """
        Prepend an item to a cached list, keeping the newest ``max_items``.

        The read-modify-write runs inside a diskcache transaction so
        concurrent writers for the same key do not drop entries.

        Returns:
            The stored list (empty if the cache could not be written)
        """
        cache = self._cache(cache_type)
        if cache is None:
            return []

        try:
            with cache.transact():
                items = [item] + list(cache.get(key, []))
                items = items[:max_items]
                cache.set(key, items, expire=self.default_ttl[cache_type])
        except Exception as e:
            logger.error("Cache push failed", cache_type=cache_type, key=_short(key), error=str(e))
            return []
        return items

    def delete(self, cache_type: str, key: str) -> bool:
        cache = self._cache(cache_type)
        if cache is None:
            return False

        try:
            return cache.delete(key)
        except Exception as e:
            logger.error("Cache delete failed", cache_type=cache_type, key=_short(key), error=str(e))
            return False

    def clear(self, cache_type: Optional[str] = None) -> bool:
        """
        Clear one cache, or all of them when ``cache_type`` is None.

        Returns:
            True if successful
        """
        if cache_type is not None and self._cache(cache_type) is None:
            return False

        names = [cache_type] if cache_type else list(self.caches)
        try:
            for name in names:
                self.caches[name].clear()
        except Exception as e:
            logger.error("Cache clear failed", cache_types=names, error=str(e))
            return False

        logger.info("Cache cleared", cache_types=names)
        return True

    def get_stats(self) -> Dict[str, Dict[str, Any]]:
        """Entry count, disk volume and directory of each cache."""
        return {
            name: {
                "size": len(cache),
                "volume": cache.volume(),
                "directory": str(cache.directory),
            }
            for name, cache in self.caches.items()
        }

    def close(self) -> None:
        for cache in self.caches.values():
            cache.close()
        logger.info("Cache manager closed")


_cache_manager: Optional[CacheManager] = None


def get_cache_manager(cache_dir: str = "data/cache") -> CacheManager:
    """Process-wide cache manager, created on first use."""
    global _cache_manager
    if _cache_manager is None:
        _cache_manager = CacheManager(cache_dir=cache_dir)
    return _cache_manager


def close_cache_manager() -> None:
    global _cache_manager
    if _cache_manager:
        _cache_manager.close()
        _cache_manager = None
