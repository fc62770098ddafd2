"""
Response caching for the legislation.gov.uk client

Responses are kept in LRU caches keyed by request URL, each entry expiring
after the cache's TTL. Process memory is checked on every store; past the
configured limit the caches are emptied and the response is not kept.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Optional

import psutil

from .config_loader import config_loader

logger = logging.getLogger(__name__)


class LRUCache:
    """Thread-safe LRU cache of response bodies with per-entry expiry"""

    def __init__(self, max_size: int = 100, ttl: int = 3600):
        self.max_size = max_size
        self.ttl = ttl
        # key -> (value, stored_at)
        self._entries: OrderedDict[str, tuple[Any, float]] = OrderedDict()
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    def _expired(self, stored_at: float, now: float) -> bool:
        return now - stored_at > self.ttl

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._expired(entry[1], time.time()):
                del self._entries[key]
                entry = None

            if entry is None:
                self.misses += 1
                return None

            self._entries.move_to_end(key)
            self.hits += 1
            return entry[0]

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = (value, time.time())
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def cleanup_expired(self) -> int:
        """Drop expired entries; returns how many went"""
        with self._lock:
            now = time.time()
            expired = [k for k, (_, stored_at) in self._entries.items() if self._expired(stored_at, now)]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def stats(self) -> dict:
        with self._lock:
            return {
                "size": len(self._entries),
                "max_size": self.max_size,
                "ttl_seconds": self.ttl,
                "hits": self.hits,
                "misses": self.misses,
            }


class MemoryMonitor:
    """Resident memory of this process against a configured ceiling"""

    def __init__(self, max_memory_mb: int = 512):
        self.max_memory_mb = max_memory_mb
        self.process = psutil.Process()

    def get_memory_usage_mb(self) -> float:
        return self.process.memory_info().rss / 1024 / 1024

    def is_memory_limit_exceeded(self) -> bool:
        return self.get_memory_usage_mb() > self.max_memory_mb

    def usage(self) -> dict:
        current = self.get_memory_usage_mb()
        return {
            "current_usage_mb": round(current, 1),
            "max_memory_mb": self.max_memory_mb,
            "memory_limit_exceeded": current > self.max_memory_mb,
        }


class CacheManager:
    """Holds the document and search caches and enforces the memory limit"""

    def __init__(self, settings: dict = None):
        settings = settings or config_loader.cache_settings
        document = settings.get("document_cache", {})
        search = settings.get("search_cache", {})

        self.document_cache = LRUCache(
            max_size=document.get("max_size", 100), ttl=document.get("ttl", 3600)
        )
        self.search_cache = LRUCache(
            max_size=search.get("max_size", 200), ttl=search.get("ttl", 900)
        )
        self.memory_monitor = MemoryMonitor(settings.get("memory_limit_mb", 512))

    def caches(self) -> dict[str, LRUCache]:
        return {"document": self.document_cache, "search": self.search_cache}

    def should_clear_cache(self) -> bool:
        return self.memory_monitor.is_memory_limit_exceeded()

    def cleanup_if_needed(self) -> bool:
        """
        Empty every cache when over the memory limit, otherwise drop expired entries.

        Returns True when the caches were emptied for memory.
        """
        if self.should_clear_cache():
            logger.info("Memory limit exceeded, clearing caches")
            self.clear()
            return True
        for cache in self.caches().values():
            cache.cleanup_expired()
        return False

    def store(self, cache: LRUCache, key: str, value: Any) -> bool:
        """Cache a response unless memory is over the limit; returns whether it was kept"""
        if self.cleanup_if_needed():
            return False
        cache.put(key, value)
        return True

    def clear(self, cache_type: str = "all") -> None:
        if cache_type == "all":
            for cache in self.caches().values():
                cache.clear()
        elif cache_type in self.caches():
            self.caches()[cache_type].clear()
        else:
            raise ValueError(f"Unknown cache type: {cache_type}")

    def stats(self) -> dict:
        return {
            "cache_statistics": {f"{name}_cache": cache.stats() for name, cache in self.caches().items()},
            "memory_monitoring": self.memory_monitor.usage(),
        }


cache_manager = CacheManager()
