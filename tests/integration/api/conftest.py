"""Fixtures for API integration tests"""
import pytest
from httpx import ASGITransport, AsyncClient


@pytest.fixture
async def client(test_db_session):
    """Async client against the app, sharing the test database session"""
    from judging.core.database import get_db
    from judging.main import app

    async def override_get_db():
        yield test_db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()
