"""
Shared fixtures for the access portal tests.
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from devportal.core.dependencies import get_portal
from devportal.infrastructure.identity import StaticIdentityProvider
from devportal.infrastructure.store import InMemoryResourceStore
from devportal.main import app
from devportal.services.access import AuthorizationEngine, build_portal
from tests.fixtures.access import (
    AccessTestData,
    RecordingCredentialIssuer,
    make_settings,
    seed_catalog,
)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def store():
    return InMemoryResourceStore()


@pytest.fixture
def issuer():
    return RecordingCredentialIssuer()


@pytest.fixture
def engine():
    return AuthorizationEngine()


@pytest.fixture
def portal(settings, store, issuer):
    """Services over an empty in-memory store with bearer-token identities."""
    return build_portal(
        settings,
        store=store,
        identity_provider=StaticIdentityProvider(AccessTestData.TOKENS),
        credential_issuer=issuer,
    )


@pytest_asyncio.fixture
async def seeded_portal(portal, store):
    """Portal over a store holding the standard catalog."""
    await seed_catalog(store)
    return portal


@pytest_asyncio.fixture
async def client(seeded_portal):
    """HTTP client against the app, wired to the seeded portal."""
    app.dependency_overrides[get_portal] = lambda: seeded_portal
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()
