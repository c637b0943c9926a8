import logging
import time
from asyncio import Lock
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Set, TypeVar

T = TypeVar("T")


@dataclass
class CacheEntry:
    ts: float
    value: Any


class PlaylistCache:
    """Key/value store with per-key TTL and a set of TTL-exempt keys.

    One instance is created in the app lifespan and handed to request
    handlers through a dependency.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.entries: Dict[str, CacheEntry] = {}
        self.persistent_keys: Set[str] = set()
        self.locks: Dict[str, Lock] = {}  # one lock per key for cached_fetch
        self._clock = clock

    def cache_set(self, key: str, value: Any) -> None:
        self.entries[key] = CacheEntry(ts=self._clock(), value=value)

    def cache_get(self, key: str, max_age_seconds: Optional[float] = None) -> Any:
        """Return the cached value, or None when missing or expired.

        Args:
            key (str): Cache key
            max_age_seconds (float, optional): Entries older than this are dropped. Persistent keys never expire.

        Returns:
            Any: Cached value or None
        """
        entry = self.entries.get(key)
        if entry is None:
            return None
        if max_age_seconds is not None and key not in self.persistent_keys:
            if self._clock() - entry.ts > max_age_seconds:
                del self.entries[key]
                return None
        return entry.value

    def is_live(self, key: str, max_age_seconds: Optional[float] = None) -> bool:
        entry = self.entries.get(key)
        if entry is None:
            return False
        if key in self.persistent_keys or max_age_seconds is None:
            return True
        return self._clock() - entry.ts <= max_age_seconds

    async def cached_fetch(
        self,
        key: str,
        ttl_seconds: float,
        loader: Callable[[], Awaitable[T]],
        is_persistent: bool = False,
    ) -> T:
        """Return the live entry for `key` or load, store and return a fresh one.

        A loader exception propagates and leaves the cache untouched, so the
        next call retries.
        """
        if is_persistent:
            self.persistent_keys.add(key)
        if self.is_live(key, ttl_seconds):
            return self.entries[key].value

        lock = self.locks.setdefault(key, Lock())
        async with lock:
            # Another caller may have filled the entry while we waited.
            if self.is_live(key, ttl_seconds):
                return self.entries[key].value
            logging.debug(f"Cache miss for {key}")
            value = await loader()
            self.cache_set(key, value)
            return value

    def cache_clear(self) -> None:
        """Evict every entry that is not persistent."""
        for key in list(self.entries):
            if key not in self.persistent_keys:
                del self.entries[key]
        for key in list(self.locks):
            if key not in self.entries and not self.locks[key].locked():
                del self.locks[key]

    def update_persistent_keys(self, keys: Iterable[str]) -> None:
        self.persistent_keys = set(keys)

    def evict(self, key: str) -> None:
        self.entries.pop(key, None)
        self.persistent_keys.discard(key)
