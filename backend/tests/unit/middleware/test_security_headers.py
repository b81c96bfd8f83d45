"""
Tests for security headers middleware.

WHY: These tests ensure the static security headers are present on normal
responses and that routes keep control of their own Cache-Control.
"""

import pytest
from httpx import AsyncClient


class TestSecurityHeadersMiddleware:
    """Test security headers middleware."""

    @pytest.mark.asyncio
    async def test_x_content_type_options_header(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"

    @pytest.mark.asyncio
    async def test_x_frame_options_header(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.headers["X-Frame-Options"] == "DENY"

    @pytest.mark.asyncio
    async def test_api_responses_not_cached(self, client: AsyncClient):
        response = await client.get("/api/travel-times/template")

        assert "no-store" in response.headers["Cache-Control"]

    @pytest.mark.asyncio
    async def test_non_api_paths_have_no_cache_override(self, client: AsyncClient):
        response = await client.get("/health")

        assert "Cache-Control" not in response.headers
