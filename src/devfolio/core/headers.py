"""HTTP header helpers shared by the API routes."""

from typing import Dict, Optional

SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

NO_STORE_HEADERS: Dict[str, str] = {"Cache-Control": "no-store"}


def create_cache_headers(
    max_age: int, stale_while_revalidate: Optional[int] = None
) -> Dict[str, str]:
    """Cache-Control headers matching an in-memory TTL (seconds)."""
    cache_control = f"public, max-age={max_age}, s-maxage={max_age}"
    if stale_while_revalidate:
        cache_control += f", stale-while-revalidate={stale_while_revalidate}"
    return {
        "Cache-Control": cache_control,
        "CDN-Cache-Control": f"public, max-age={max_age}",
    }
