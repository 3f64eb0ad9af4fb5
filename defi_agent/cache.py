import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


Clock = Callable[[], float]


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    """Simple in-memory TTL map.

    Reads and writes happen between awaits on a single event loop, so there
    is no locking. Expired entries are dropped lazily on read and in bulk by
    :meth:`clear_expired`, which the host's janitor calls periodically.
    """

    def __init__(self, default_ttl: float = 300, clock: Optional[Clock] = None):
        self.default_ttl = default_ttl
        self._clock: Clock = clock or time.time
        self._cache: Dict[Any, CacheEntry] = {}

    def now(self) -> float:
        return self._clock()

    def get(self, key: Any) -> Optional[Any]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            del self._cache[key]
            return None
        return entry.value

    def set(self, key: Any, value: Any, ttl: Optional[float] = None) -> CacheEntry:
        ttl = self.default_ttl if ttl is None else ttl
        entry = CacheEntry(value=value, expires_at=self._clock() + ttl)
        self._cache[key] = entry
        return entry

    def delete(self, key: Any) -> bool:
        return self._cache.pop(key, None) is not None

    def clear_expired(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._cache.items() if now > entry.expires_at]
        for key in expired:
            del self._cache[key]
        return len(expired)

    def clear(self) -> None:
        self._cache.clear()

    def __contains__(self, key: Any) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._cache)
