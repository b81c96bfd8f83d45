"""
System status routes.

WHAT: Reports whether the downstream grooming backend is reachable.
"""

import logging

from fastapi import APIRouter, Depends

from grooming_gateway.core.deps import get_backend_client
from grooming_gateway.core.exceptions import ExternalServiceError
from grooming_gateway.schemas.travel_time import BackendStatusResponse
from grooming_gateway.services.backend_client import BackendClient


logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


@router.get("/backend-status", response_model=BackendStatusResponse)
async def backend_status(
    client: BackendClient = Depends(get_backend_client),
) -> BackendStatusResponse:
    """
    Probe the backend health endpoint.

    WHY: Always answers 200 so the status page can render either state;
    an unreachable or failing backend is reported as offline.
    """
    try:
        health = await client.check_health()
    except ExternalServiceError as e:
        logger.warning(f"Backend health check failed: {e.message}")
        return BackendStatusResponse(
            status="offline",
            backend_url=client.base_url,
            details={"message": e.message, "status_code": e.status_code},
        )

    return BackendStatusResponse(
        status="online",
        backend_url=client.base_url,
        details=health if isinstance(health, dict) else {"response": health},
    )
