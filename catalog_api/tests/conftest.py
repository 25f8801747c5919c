"""Shared pytest fixtures for catalog tests."""

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from catalog_api.core.config import settings
from catalog_api.main import app
from catalog_api.providers import reset_providers
from catalog_api.providers.observability import provider_monitor
from catalog_api.tests.utils import StubUpstream


@pytest.fixture(autouse=True)
def _catalog_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "tmdb_api_key", "tmdb-key")
    monkeypatch.setattr(settings, "igdb_client_id", "igdb-client")
    monkeypatch.setattr(settings, "igdb_client_secret", "igdb-secret")
    monkeypatch.setattr(settings, "igdb_access_token", None)
    monkeypatch.setattr(settings, "google_books_api_key", "google-key")
    monkeypatch.setattr(settings, "catalog_google_books_fallback", False)
    monkeypatch.setattr(settings, "health_allowlist", [])
    reset_providers()
    provider_monitor.reset()
    yield
    reset_providers()
    provider_monitor.reset()


@pytest.fixture()
def upstream(monkeypatch: pytest.MonkeyPatch) -> StubUpstream:
    stub = StubUpstream()
    monkeypatch.setattr("catalog_api.providers.http._build_client", stub.build_client)
    return stub


@pytest_asyncio.fixture()
async def client() -> AsyncClient:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as async_client:
        yield async_client
    app.dependency_overrides.clear()
