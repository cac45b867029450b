"""
Process-local read-through caches.

``ReferenceCache`` holds rarely-changing reference collections (the full
product list, the full ingredient list) and per-user score listings for
a bounded TTL. Concurrent misses on the same key coalesce onto one
in-flight load. The cache is best-effort: it may be cleared at any time
and is never the system of record. ``NullCache`` is the always-miss
variant used in tests.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class Cache(Protocol):
    """Interface shared by the real and the no-op cache."""

    def get_or_load(self, key: str, loader: Callable[[], Any], ttl_seconds: Optional[float] = None) -> Any:
        """Return the cached value for ``key`` or load, store and return it."""

    def invalidate(self, key: str) -> bool:
        """Evict one key. Returns True when something was evicted."""

    def invalidate_prefix(self, prefix: str) -> int:
        """Evict every key starting with ``prefix``."""

    def clear(self) -> None:
        """Evict everything."""


@dataclass
class _Entry:
    value: Any
    expires_at: float


class ReferenceCache:
    """TTL cache with single-flight loading per key."""

    def __init__(self, default_ttl_seconds: float = 7200, clock: Callable[[], float] = time.monotonic):
        self.default_ttl_seconds = default_ttl_seconds
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._inflight: Dict[str, Future] = {}
        self._lock = threading.Lock()
        self.loads = 0

    def get_or_load(self, key: str, loader: Callable[[], Any], ttl_seconds: Optional[float] = None) -> Any:
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.expires_at > self._clock():
                return entry.value
            if entry is not None:
                del self._entries[key]

            future = self._inflight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[key] = future

        if not owner:
            # Another thread is already loading this key.
            return future.result()

        try:
            value = loader()
        except Exception as exc:
            with self._lock:
                if self._inflight.get(key) is future:
                    del self._inflight[key]
            future.set_exception(exc)
            raise

        with self._lock:
            self.loads += 1
            # An invalidation during the load drops the in-flight marker;
            # only cache the value if this load is still the current one.
            if self._inflight.get(key) is future:
                self._entries[key] = _Entry(value=value, expires_at=self._clock() + ttl)
                del self._inflight[key]
        future.set_result(value)
        logger.debug(f"Cache loaded {key} (ttl={ttl}s)")
        return value

    def peek(self, key: str) -> Optional[Any]:
        """Cached value without loading; None when missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.expires_at <= self._clock():
                return None
            return entry.value

    def invalidate(self, key: str) -> bool:
        with self._lock:
            self._inflight.pop(key, None)
            return self._entries.pop(key, None) is not None

    def invalidate_prefix(self, prefix: str) -> int:
        with self._lock:
            keys = [key for key in self._entries if key.startswith(prefix)]
            for key in keys:
                del self._entries[key]
            for key in [key for key in self._inflight if key.startswith(prefix)]:
                del self._inflight[key]
            return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._inflight.clear()


class NullCache:
    """Cache that never stores anything; every read calls the loader."""

    def __init__(self):
        self.loads = 0

    def get_or_load(self, key: str, loader: Callable[[], Any], ttl_seconds: Optional[float] = None) -> Any:
        self.loads += 1
        return loader()

    def invalidate(self, key: str) -> bool:
        return False

    def invalidate_prefix(self, prefix: str) -> int:
        return 0

    def clear(self) -> None:
        return None


def build_cache(cache_config: Optional[Any] = None) -> Cache:
    """Factory honouring CacheConfig.enabled / reference_ttl_seconds."""
    if cache_config is None:
        return ReferenceCache()
    if not cache_config.enabled:
        return NullCache()
    return ReferenceCache(default_ttl_seconds=cache_config.reference_ttl_seconds)
