"""Cross-cutting pieces: cache, logging, metrics, middleware, schemas."""

from .cache import CacheEntry, CacheStats, MemoryCache, default_cache, invalidate_cache, with_cache
from .presets import CacheConfig, CachePreset

__all__ = [
    "CacheConfig",
    "CacheEntry",
    "CachePreset",
    "CacheStats",
    "MemoryCache",
    "default_cache",
    "invalidate_cache",
    "with_cache",
]
