"""
In-memory metrics for /metrics endpoint (rough p50/p95, cache hit ratio).
Why: quick visibility without Prometheus.
"""

from collections import deque
from typing import Deque, Dict, List, Union

MAX_LATENCY_SAMPLES = 1000


def _percentile(values: List[int], p: float) -> int:
    if not values:
        return 0
    idx = max(0, min(len(values) - 1, int(len(values) * p)))
    return sorted(values)[idx]


class _Metrics:
    def __init__(self) -> None:
        self.total_requests = 0
        self.total_errors = 0
        self.cache_hits = 0
        self.cache_misses = 0
        self.cache_evictions = 0
        self._latencies: Deque[int] = deque(maxlen=MAX_LATENCY_SAMPLES)

    def increment_requests(self) -> None:
        self.total_requests += 1

    def increment_errors(self) -> None:
        self.total_errors += 1

    def record_latency(self, ms: int) -> None:
        self._latencies.append(ms)

    def record_cache_hit(self) -> None:
        self.cache_hits += 1

    def record_cache_miss(self) -> None:
        self.cache_misses += 1

    def record_cache_eviction(self) -> None:
        self.cache_evictions += 1

    def snapshot(self) -> Dict[str, Union[int, float]]:
        lat = list(self._latencies)
        lookups = self.cache_hits + self.cache_misses
        return {
            "total_requests": self.total_requests,
            "total_errors": self.total_errors,
            "p50_ms": _percentile(lat, 0.50),
            "p95_ms": _percentile(lat, 0.95),
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "cache_evictions": self.cache_evictions,
            "cache_hit_ratio": round(self.cache_hits / lookups, 3) if lookups else 0.0,
        }


metrics = _Metrics()
