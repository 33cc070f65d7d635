import pytest

from guestlist.routers.healthz.router import get_database_check


async def _database_up() -> bool:
    return True


async def _database_down() -> bool:
    return False


@pytest.mark.asyncio
async def test_health_check(client_factory):
    """Test the health check endpoint returns healthy status."""
    async with client_factory({get_database_check: lambda: _database_up}) as client:
        response = await client.get("/healthz/")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "ok"
    assert data["version"] == "0.1.0"


@pytest.mark.asyncio
async def test_health_check_database_down(client_factory):
    async with client_factory({get_database_check: lambda: _database_down}) as client:
        response = await client.get("/healthz/")

    assert response.status_code == 200
    assert response.json() == {"status": "degraded", "database": "unavailable", "version": "0.1.0"}


@pytest.mark.asyncio
async def test_root_endpoint(client_factory):
    """Test the root endpoint returns welcome message."""
    async with client_factory() as client:
        response = await client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Welcome to the Guestlist API"
