"""
Integration tests for the health and backend-status endpoints.
"""

import httpx
import pytest
from httpx import AsyncClient

from grooming_gateway import __version__


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": __version__}
        assert "X-Request-ID" in response.headers


class TestBackendStatus:
    """Integration tests for GET /api/backend-status."""

    @pytest.mark.asyncio
    async def test_online(self, client: AsyncClient, mock_backend):
        mock_backend.respond("GET", "/api/v1/health", httpx.Response(200, json={"status": "ok"}))

        response = await client.get("/api/backend-status")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "online"
        assert data["backend_url"] == "http://backend.test"
        assert data["details"] == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_offline_when_backend_errors(self, client: AsyncClient, mock_backend):
        mock_backend.respond("GET", "/api/v1/health", httpx.Response(500, text=""))

        response = await client.get("/api/backend-status")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "offline"
        assert data["details"]["status_code"] == 500

    @pytest.mark.asyncio
    async def test_offline_when_backend_unreachable(self, client: AsyncClient, mock_backend):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        mock_backend.respond("GET", "/api/v1/health", refuse)

        response = await client.get("/api/backend-status")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "offline"
        assert data["details"]["status_code"] == 502
        assert "Connection refused" in data["details"]["message"]
