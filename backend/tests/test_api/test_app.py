"""Tests for app-level routes."""

from httpx import AsyncClient


async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "API Marketplace"}


async def test_root(client: AsyncClient):
    response = await client.get("/")
    assert response.json()["docs"] == "/docs"
