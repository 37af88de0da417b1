import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from distribution_hub.cache import QueryCache
from distribution_hub.database import get_session
from distribution_hub.deps import get_query_cache
from distribution_hub.main import app


@pytest_asyncio.fixture
async def client(db):
    """HTTP client bound to the app, sharing the test session."""
    cache = QueryCache(default_ttl=30.0)

    async def override_session():
        yield db

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_query_cache] = lambda: cache
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
