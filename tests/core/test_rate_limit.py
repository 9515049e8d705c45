"""Tests for the sliding-window rate limiter."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from devfolio.core.rate_limit import (
    RateLimiter,
    RateLimitMiddleware,
    RateLimits,
    client_identifier,
)


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _limits(clock, api=5, admin=5, contact=2, cleanup_interval=60.0):
    return RateLimits(
        api=RateLimiter(api, 60, clock=clock),
        admin=RateLimiter(admin, 60, clock=clock),
        contact=RateLimiter(contact, 900, clock=clock),
        cleanup_interval=cleanup_interval,
        clock=clock,
    )


def _request(headers=None, client=("203.0.113.9", 4000)):
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "headers": raw, "client": client})


def test_limiter_allows_up_to_limit():
    clock = FakeClock()
    limiter = RateLimiter(3, 60, clock=clock)
    results = [limiter.check("ip") for _ in range(4)]
    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]
    assert all(r.limit == 3 for r in results)


def test_limiter_window_slides():
    """A request frees its slot once it is older than the window."""
    clock = FakeClock()
    limiter = RateLimiter(2, 60, clock=clock)
    limiter.check("ip")
    clock.advance(30)
    limiter.check("ip")
    assert not limiter.check("ip").allowed

    clock.advance(31)
    result = limiter.check("ip")
    assert result.allowed
    assert result.remaining == 0


def test_limiter_reset_is_when_oldest_request_leaves():
    clock = FakeClock(start=1_000.0)
    limiter = RateLimiter(2, 60, clock=clock)
    limiter.check("ip")
    clock.advance(10)
    assert limiter.check("ip").reset == 1_060


def test_blocked_requests_do_not_extend_the_window():
    clock = FakeClock()
    limiter = RateLimiter(1, 60, clock=clock)
    limiter.check("ip")
    for _ in range(5):
        clock.advance(10)
        assert not limiter.check("ip").allowed
    clock.advance(11)
    assert limiter.check("ip").allowed


def test_limiter_tracks_identifiers_separately():
    clock = FakeClock()
    limiter = RateLimiter(1, 60, clock=clock)
    assert limiter.check("a").allowed
    assert limiter.check("b").allowed
    assert not limiter.check("a").allowed


def test_cleanup_forgets_idle_identifiers():
    clock = FakeClock()
    limiter = RateLimiter(5, 60, clock=clock)
    limiter.check("old")
    clock.advance(45)
    limiter.check("recent")
    clock.advance(20)
    assert limiter.cleanup() == 1
    assert len(limiter) == 1


@pytest.mark.parametrize("limit,window", [(0, 60), (-1, 60), (1, 0)])
def test_limiter_rejects_bad_configuration(limit, window):
    with pytest.raises(ValueError):
        RateLimiter(limit, window)


@pytest.mark.parametrize(
    "method,path,expected",
    [
        ("POST", "/api/contact", "contact"),
        ("POST", "/api/contact/", "contact"),
        ("GET", "/api/contact", "admin"),
        ("PUT", "/api/contact/4", "admin"),
        ("GET", "/api/projects", "admin"),
        ("DELETE", "/api/experiences/2", "admin"),
        ("GET", "/api/admin/cache", "admin"),
        ("GET", "/api/other", "api"),
        ("GET", "/health", None),
        ("GET", "/metrics", None),
    ],
)
def test_limiter_selection_by_path(method, path, expected):
    limits = _limits(FakeClock())
    limiter = limits.for_request(method, path)
    if expected is None:
        assert limiter is None
    else:
        assert limiter is getattr(limits, expected)


def test_limits_run_periodic_cleanup():
    clock = FakeClock()
    limits = _limits(clock, cleanup_interval=120)
    limits.check("GET", "/api/other", "idle")
    clock.advance(121)
    limits.check("GET", "/api/other", "busy")
    assert len(limits.api) == 1


def test_client_identifier_prefers_forwarded_for():
    request = _request({"X-Forwarded-For": "198.51.100.1, 10.0.0.1", "X-Real-IP": "10.9.9.9"})
    assert client_identifier(request) == "198.51.100.1"


def test_client_identifier_falls_back_to_real_ip_then_peer():
    assert client_identifier(_request({"X-Real-IP": "10.9.9.9"})) == "10.9.9.9"
    assert client_identifier(_request()) == "203.0.113.9"
    assert client_identifier(_request(client=None)) == "unknown"


def test_middleware_returns_429_with_headers():
    clock = FakeClock()
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, limits=_limits(clock, api=2))

    @app.get("/api/ping")
    async def ping():
        return {"pong": True}

    @app.get("/open")
    async def open_route():
        return {"ok": True}

    client = TestClient(app)
    first = client.get("/api/ping")
    assert first.status_code == 200
    assert first.headers["x-ratelimit-limit"] == "2"
    assert first.headers["x-ratelimit-remaining"] == "1"
    client.get("/api/ping")

    blocked = client.get("/api/ping")
    assert blocked.status_code == 429
    assert blocked.json()["error"] == "Too Many Requests"
    assert blocked.headers["x-ratelimit-reset"] == "1060"

    assert client.get("/open").status_code == 200

    clock.advance(61)
    assert client.get("/api/ping").status_code == 200
