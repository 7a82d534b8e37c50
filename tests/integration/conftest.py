"""Integration test fixtures for OratoriaFlow.

Provides async HTTP client and sync TestClient (for WebSocket) that use
an in-memory SQLite database with real repository operations, and an
orchestrator wired to fake providers.
"""

from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.testclient import TestClient

from src.api.app import create_app
from src.core.models import ProviderKind
from src.services.orchestrator import AnalysisOrchestrator, ProviderRegistry
from src.services.storage import database


@pytest.fixture
def app():
    """Create a fresh FastAPI application instance."""
    return create_app()


@pytest.fixture
def providers(fake_provider, result_factory):
    """Remote provider that succeeds plus an on-device one for offline runs."""
    return [
        fake_provider("openai", result=result_factory("openai", 88)),
        fake_provider("on_device", result=result_factory("on_device", 64), kind=ProviderKind.on_device),
    ]


@pytest.fixture
def analyzer(providers):
    """Patch the process-wide orchestrator with one built from ``providers``."""
    instance = AnalysisOrchestrator(ProviderRegistry(providers))
    with patch("src.services.orchestrator.get_orchestrator", return_value=instance):
        yield instance


@pytest.fixture
async def async_client(app, db_engine, analyzer):
    """AsyncClient backed by the in-memory test engine.

    Injects the test engine into the database module so that all routes
    use the same in-memory SQLite with tables already created.
    """
    database._engine = db_engine
    database._session_factory = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    database.reset_engine()


@pytest.fixture
def test_client(app, analyzer):
    """Synchronous TestClient for WebSocket tests.

    Not entered as a context manager, so the lifespan (and its on-disk
    database) never runs.
    """
    return TestClient(app)


@pytest.fixture
async def user(async_client):
    resp = await async_client.post("/api/v1/users", json={"email": "ana@example.com", "name": "Ana"})
    assert resp.status_code == 201
    return resp.json()
