"""
Pytest configuration and fixtures.

WHY: Fixtures provide reusable test setup/teardown logic, reducing
duplication and ensuring consistent test environments.
"""

import json
from typing import AsyncGenerator, Callable, Dict, List, Tuple, Union

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient

from grooming_gateway.main import app
from grooming_gateway.core.deps import get_backend_client
from grooming_gateway.services.backend_client import BackendClient


TEST_BACKEND_URL = "http://backend.test"

ResponseSource = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class MockBackend:
    """
    In-process stand-in for the grooming backend.

    WHY: httpx.MockTransport lets the real BackendClient run unchanged while
    tests script the backend's answers and inspect what was sent.

    Unregistered routes answer 404 with a JSON message.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], ResponseSource] = {}
        self.requests: List[httpx.Request] = []

    def respond(self, method: str, path: str, response: ResponseSource) -> None:
        self.routes[(method.upper(), path)] = response

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.routes.get((request.method, request.url.path))
        if reply is None:
            return httpx.Response(404, json={"message": f"No route for {request.url.path}"})
        if callable(reply):
            return reply(request)
        return reply

    def json_bodies(self, path: str) -> List[dict]:
        """Decoded JSON bodies of every request sent to path."""
        return [json.loads(r.content) for r in self.requests if r.url.path == path]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def mock_backend() -> MockBackend:
    """Fresh scripted backend for each test."""
    return MockBackend()


@pytest.fixture
def backend_client(mock_backend: MockBackend) -> BackendClient:
    """BackendClient wired to the scripted backend."""
    return BackendClient(
        base_url=TEST_BACKEND_URL,
        timeout=5.0,
        transport=mock_backend.transport(),
    )


@pytest_asyncio.fixture
async def client(backend_client: BackendClient) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test HTTP client.

    WHY: AsyncClient allows testing FastAPI endpoints without running
    a real server, making tests faster and more reliable.

    Yields:
        AsyncClient: HTTP client for making test requests
    """
    from httpx import ASGITransport

    app.dependency_overrides[get_backend_client] = lambda: backend_client

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
