"""In-process response cache for the web layer."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

log = logging.getLogger("pompey.cache")


@dataclass
class CacheEntry:
    value: Any
    fetched_at: float

    def is_expired(self, ttl_seconds: float, now: float) -> bool:
        return now - self.fetched_at >= ttl_seconds


class TTLCache:
    """Keeps each loaded value for ``ttl_seconds``. Concurrent misses share one load."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None or entry.is_expired(self.ttl_seconds, self._clock()):
            return None
        return entry.value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = CacheEntry(value=value, fetched_at=self._clock())

    def invalidate(self, key: Optional[str] = None) -> None:
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    async def get_or_load(self, key: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        entry = self._entries.get(key)
        if entry is not None and not entry.is_expired(self.ttl_seconds, self._clock()):
            return entry.value
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            # Another request may have loaded it while we waited
            entry = self._entries.get(key)
            if entry is not None and not entry.is_expired(self.ttl_seconds, self._clock()):
                return entry.value
            log.debug("Cache miss: %s", key)
            value = await loader()
            self.set(key, value)
            return value
