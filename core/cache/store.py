# core/cache/store.py
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Set, Tuple

logger = logging.getLogger(__name__)


class CacheDuration:
    """Time-based expiry in seconds, a safety net on top of tag invalidation."""
    SHORT = 60        # frequently changing data
    MEDIUM = 300      # user-specific data
    LONG = 3600       # rarely changing data
    STATIC = 86400    # near-static data like reading lists


MISS = object()


def make_key(prefix: str, *parts: Any) -> str:
    """Build a cache key from a prefix and positional arguments.

    Every argument keeps its slot; ``None`` renders as an empty field.
    """
    return ":".join([prefix, *("" if part is None else str(part) for part in parts)])


class CacheStore(ABC):
    """Key/value store where each value is registered under one or more tags."""

    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the cached value or ``MISS``."""

    @abstractmethod
    def set(self, key: str, value: Any, tags: Iterable[str] = (), ttl: Optional[int] = None) -> None:
        pass

    @abstractmethod
    def invalidate(self, tag: str) -> int:
        """Drop every value registered under ``tag``; returns how many were dropped."""

    @abstractmethod
    def clear(self) -> None:
        pass

    def get_or_set(
        self,
        key: str,
        compute: Callable[[], Any],
        tags: Sequence[str] = (),
        ttl: Optional[int] = None,
    ) -> Any:
        """Return the cached value for ``key``, computing and registering it on a miss."""
        value = self.get(key)
        if value is not MISS:
            return value
        value = compute()
        self.set(key, value, tags=tags, ttl=ttl)
        return value


class MemoryCacheStore(CacheStore):
    """Thread-safe in-process cache with tag registration and TTL expiry."""

    def __init__(self, default_ttl: int = CacheDuration.MEDIUM, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[Any, float, frozenset]] = {}
        self._tag_index: Dict[str, Set[str]] = {}

    def _drop(self, key: str) -> None:
        entry = self._entries.pop(key, None)
        if entry is None:
            return
        for tag in entry[2]:
            keys = self._tag_index.get(tag)
            if keys is not None:
                keys.discard(key)
                if not keys:
                    del self._tag_index[tag]

    def get(self, key: str) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return MISS
            value, expires_at, _ = entry
            if self._clock() >= expires_at:
                self._drop(key)
                return MISS
            return value

    def set(self, key: str, value: Any, tags: Iterable[str] = (), ttl: Optional[int] = None) -> None:
        expires_at = self._clock() + (ttl if ttl is not None else self.default_ttl)
        tags = frozenset(tags)
        with self._lock:
            self._drop(key)
            self._entries[key] = (value, expires_at, tags)
            for tag in tags:
                self._tag_index.setdefault(tag, set()).add(key)

    def invalidate(self, tag: str) -> int:
        with self._lock:
            keys = list(self._tag_index.get(tag, ()))
            for key in keys:
                self._drop(key)
        if keys:
            logger.debug("Invalidated %d cache entries for tag %s", len(keys), tag)
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._tag_index.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not MISS
