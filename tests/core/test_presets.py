"""Tests for cache presets and HTTP cache headers."""

from devfolio.core.headers import SECURITY_HEADERS, create_cache_headers
from devfolio.core.presets import CacheConfig


def test_preset_keys_and_ttls():
    assert CacheConfig.PROJECTS.key == "projects:all"
    assert CacheConfig.PROJECTS.ttl_ms == 5 * 60 * 1000
    assert CacheConfig.FEATURED_PROJECTS.key == "projects:featured"
    assert CacheConfig.FEATURED_PROJECTS.ttl_ms == 10 * 60 * 1000
    assert CacheConfig.EXPERIENCES.key == "experiences:all"
    assert CacheConfig.EXPERIENCES.ttl_ms == 15 * 60 * 1000
    assert CacheConfig.CONTACT_MESSAGES.key == "contacts:all"
    assert CacheConfig.CONTACT_MESSAGES.ttl_ms == 2 * 60 * 1000
    assert CacheConfig.DB_HEALTH.key == "health:db"
    assert CacheConfig.DB_HEALTH.ttl_ms == 30 * 1000


def test_preset_namespace():
    assert CacheConfig.PROJECTS.namespace == "projects"
    assert CacheConfig.FEATURED_PROJECTS.namespace == "projects"
    assert CacheConfig.UNREAD_CONTACT_MESSAGES.namespace == "contacts"


def test_preset_ttl_seconds():
    assert CacheConfig.DB_HEALTH.ttl_seconds == 30


def test_cache_headers_without_swr():
    headers = create_cache_headers(300)
    assert headers["Cache-Control"] == "public, max-age=300, s-maxage=300"
    assert headers["CDN-Cache-Control"] == "public, max-age=300"


def test_cache_headers_with_swr():
    headers = create_cache_headers(60, 120)
    assert headers["Cache-Control"] == (
        "public, max-age=60, s-maxage=60, stale-while-revalidate=120"
    )


def test_security_headers():
    assert SECURITY_HEADERS["X-Content-Type-Options"] == "nosniff"
    assert SECURITY_HEADERS["X-Frame-Options"] == "DENY"
