"""
FastAPI dependencies.

WHY: Routes receive their collaborators through Depends() so tests can swap
them via app.dependency_overrides.
"""

from grooming_gateway.services.backend_client import BackendClient


def get_backend_client() -> BackendClient:
    """
    Backend client configured from settings.

    Returns:
        A fresh BackendClient for the request
    """
    return BackendClient()
