import sys
from pathlib import Path

# Ensure the project root is on sys.path for direct pytest runs
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest
from fastapi.testclient import TestClient

from bookhub.catalog.fanout import FanoutChannel
from bookhub.catalog.store import CatalogStore
from bookhub.main import create_app
from bookhub.settings import Settings


@pytest.fixture
def store() -> CatalogStore:
    return CatalogStore()


@pytest.fixture
def channel(store: CatalogStore) -> FanoutChannel:
    return FanoutChannel(store)


@pytest.fixture
def settings(monkeypatch) -> Settings:
    for name in (
        "HOST",
        "PORT",
        "LOG_LEVEL",
        "CORS_ORIGINS",
        "CATALOG_SEED_FILE",
        "CATALOG_STRICT_DELETE",
        "SUBSCRIBER_QUEUE_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)
    return Settings()


@pytest.fixture
def client(settings: Settings):
    # Entering the client shares one event loop between HTTP and WebSocket traffic.
    with TestClient(create_app(settings)) as test_client:
        yield test_client
