"""Pytest configuration and fixtures for corsgate tests.

Test isolation strategy:
- Engine tests build their own PolicyConfig; nothing is shared between tests
- App tests pass explicit Settings to create_app instead of reading the environment
- The settings cache is cleared around every test
"""

import sys
from collections.abc import Generator
from pathlib import Path

# Add repo root to sys.path for importing top-level packages (e.g., apps)
_repo_root = Path(__file__).parent.parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

import pytest
from fastapi.testclient import TestClient

from corsgate.app import create_app
from corsgate.config import clear_settings_cache
from tests.helpers import make_settings


@pytest.fixture(autouse=True)
def _clear_settings() -> Generator[None, None, None]:
    """Ensure no cached Settings leak between tests."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Provide a test client for an app with CORS disabled (the default)."""
    app = create_app(make_settings())
    with TestClient(app) as client:
        yield client


@pytest.fixture
def cors_client():
    """Factory fixture: build a test client from settings overrides (env aliases).

    Example:
        def test_something(self, cors_client):
            client = cors_client(CORS_ALLOWED_ORIGINS="https://a.test")
    """
    clients: list[TestClient] = []

    def _make(**overrides) -> TestClient:
        settings = make_settings(CORS_ENABLED=True, **overrides)
        client = TestClient(create_app(settings))
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()
