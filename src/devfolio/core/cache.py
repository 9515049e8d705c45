"""
In-memory TTL cache with size-bounded eviction.
Why: avoid repeating the same database reads on every public page load.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from .logging import get_logger
from .metrics import metrics

_LOG = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_SIZE = 100

_MISSING = object()


def _now_ms() -> float:
    return time.time() * 1000


@dataclass
class CacheEntry:
    value: Any
    created_at: float  # ms since epoch
    ttl: float  # ms

    def is_expired(self, now: float) -> bool:
        return now - self.created_at > self.ttl


@dataclass
class CacheStats:
    size: int
    max_size: int
    keys: List[str] = field(default_factory=list)


class MemoryCache:
    """Key -> value store where every entry carries its own TTL.

    Expired entries are dropped lazily when read. When full, the entry that
    was inserted first is evicted; reads do not change that order.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {max_size}")
        self.max_size = max_size
        self._clock = clock
        self._data: Dict[str, CacheEntry] = {}

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._data.get(key)
        if entry is None:
            return default
        if entry.is_expired(self._clock()):
            del self._data[key]
            return default
        return entry.value

    def set(self, key: str, value: Any, ttl_ms: float) -> None:
        # a full store evicts even when the key is already present
        if len(self._data) >= self.max_size:
            self._evict_oldest()
        self._data[key] = CacheEntry(value=value, created_at=self._clock(), ttl=ttl_ms)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def stats(self) -> CacheStats:
        return CacheStats(size=len(self._data), max_size=self.max_size, keys=list(self._data))

    def invalidate_by_pattern(self, pattern: str) -> int:
        """Delete every key containing ``pattern``; returns how many went."""
        matching = [key for key in self._data if pattern in key]
        for key in matching:
            del self._data[key]
        if matching:
            _LOG.debug(f"cache invalidate pattern={pattern!r} removed={len(matching)}")
        return len(matching)

    async def get_or_compute(
        self, key: str, ttl_ms: float, compute: Callable[[], Awaitable[T]]
    ) -> T:
        cached = self.get(key, _MISSING)
        if cached is not _MISSING:
            metrics.record_cache_hit()
            _LOG.debug(f"cache hit key={key}")
            return cached

        metrics.record_cache_miss()
        _LOG.debug(f"cache miss key={key}")
        try:
            value = await compute()
        except Exception as exc:
            _LOG.warning(f"cache compute failed key={key} error={exc!r}")
            raise
        self.set(key, value, ttl_ms)
        return value

    def _evict_oldest(self) -> None:
        oldest = next(iter(self._data), None)
        if oldest is None:
            return
        del self._data[oldest]
        metrics.record_cache_eviction()
        _LOG.debug(f"cache evict key={oldest}")

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        entry = self._data.get(key)  # type: ignore[arg-type]
        return entry is not None and not entry.is_expired(self._clock())


default_cache = MemoryCache()


async def with_cache(
    key: str,
    ttl_ms: float,
    compute: Callable[[], Awaitable[T]],
    *,
    store: Optional[MemoryCache] = None,
) -> T:
    """Return the fresh value for ``key`` or run ``compute`` and remember it.

    Failures from ``compute`` propagate and leave nothing behind. Concurrent
    misses on one key each run ``compute``; the last write wins.
    """
    target = store if store is not None else default_cache
    return await target.get_or_compute(key, ttl_ms, compute)


def invalidate_cache(pattern: str, *, store: Optional[MemoryCache] = None) -> int:
    target = store if store is not None else default_cache
    return target.invalidate_by_pattern(pattern)
