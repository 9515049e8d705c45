import pytest
from fastapi.testclient import TestClient

from devfolio.api.app import create_app
from devfolio.config.settings import AdminSettings, CacheSettings, DatabaseSettings, Settings
from devfolio.core.cache import MemoryCache

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        cache=CacheSettings(max_size=10, enabled=True),
        database=DatabaseSettings(path=str(tmp_path / "api.duckdb")),
        admin=AdminSettings(api_token=ADMIN_TOKEN),
    )


@pytest.fixture
def store():
    return MemoryCache(max_size=10)


@pytest.fixture
def app(settings, store):
    return create_app(settings=settings, store=store)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}
