"""Configuration settings for the application."""
import os
from dataclasses import dataclass, field

# Load .env when python-dotenv is available
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class CacheSettings:
    max_size: int = field(default_factory=lambda: int(os.getenv("DEVFOLIO_CACHE_MAX_SIZE", 100)))
    enabled: bool = field(default_factory=lambda: _env_bool("DEVFOLIO_CACHE_ENABLED", True))


@dataclass
class DatabaseSettings:
    # ":memory:" keeps everything in-process
    path: str = field(default_factory=lambda: os.getenv("DEVFOLIO_DB_PATH", "data/devfolio.duckdb"))


@dataclass
class AdminSettings:
    # empty token locks every admin endpoint
    api_token: str = field(default_factory=lambda: os.getenv("DEVFOLIO_ADMIN_TOKEN", ""))


@dataclass
class RateLimitSettings:
    enabled: bool = field(default_factory=lambda: _env_bool("DEVFOLIO_RATE_LIMIT_ENABLED", True))
    api_limit: int = field(default_factory=lambda: int(os.getenv("DEVFOLIO_RATE_LIMIT_API", 100)))
    admin_limit: int = field(default_factory=lambda: int(os.getenv("DEVFOLIO_RATE_LIMIT_ADMIN", 200)))
    # contact form: a few submissions per quarter hour
    contact_limit: int = field(default_factory=lambda: int(os.getenv("DEVFOLIO_RATE_LIMIT_CONTACT", 3)))
    window_seconds: float = 60.0
    contact_window_seconds: float = 15 * 60.0


@dataclass
class Settings:
    cache: CacheSettings = field(default_factory=CacheSettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    admin: AdminSettings = field(default_factory=AdminSettings)
    rate_limit: RateLimitSettings = field(default_factory=RateLimitSettings)
    service_name: str = "devfolio"
    log_level: str = field(default_factory=lambda: os.getenv("DEVFOLIO_LOG_LEVEL", "INFO"))


settings = Settings()
