"""
Canonical cache keys and TTLs per data domain.
Why: callers share one key scheme so pattern invalidation stays predictable.
"""

from dataclasses import dataclass

SECOND_MS = 1000
MINUTE_MS = 60 * SECOND_MS


@dataclass(frozen=True)
class CachePreset:
    key: str
    ttl_ms: int

    @property
    def namespace(self) -> str:
        return self.key.split(":", 1)[0]

    @property
    def ttl_seconds(self) -> int:
        return self.ttl_ms // SECOND_MS


class CacheConfig:
    PROJECTS = CachePreset("projects:all", 5 * MINUTE_MS)
    FEATURED_PROJECTS = CachePreset("projects:featured", 10 * MINUTE_MS)
    EXPERIENCES = CachePreset("experiences:all", 15 * MINUTE_MS)
    CONTACT_MESSAGES = CachePreset("contacts:all", 2 * MINUTE_MS)
    UNREAD_CONTACT_MESSAGES = CachePreset("contacts:unread", 2 * MINUTE_MS)
    DB_HEALTH = CachePreset("health:db", 30 * SECOND_MS)
