"""
Travel Time API Routes.

WHAT: Endpoints for importing, exporting and browsing commute travel times.

WHY: Travel times feed appointment planning; operators bulk-load measured
commutes from a spreadsheet and review what the backend has stored.

HOW: Import validates locally and relays the backend's progress stream;
the other routes are passthroughs to the grooming backend.
"""

import logging
from typing import Any, Dict, List, Optional

import anyio
from fastapi import APIRouter, Body, Depends, File, Query, UploadFile
from fastapi.responses import Response, StreamingResponse
from starlette.types import Receive, Scope, Send

from grooming_gateway.core.deps import get_backend_client
from grooming_gateway.core.exceptions import MissingFileError, ValidationError
from grooming_gateway.schemas.travel_time import ErrorResponse
from grooming_gateway.services.backend_client import BackendClient, ImportProgressStream
from grooming_gateway.services.spreadsheet import (
    TEMPLATE_FILENAME,
    XLSX_MEDIA_TYPE,
    build_template,
)
from grooming_gateway.services.travel_time_import import TravelTimeImportService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/travel-times", tags=["travel-times"])

EVENT_STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


class ImportStreamResponse(StreamingResponse):
    """
    Event-stream response that always releases the downstream import.

    WHY: A StreamingResponse only runs its iterator's cleanup once the body
    starts. The caller can disconnect before that, so the downstream stream
    is closed here however the response ends.
    """

    def __init__(self, events: ImportProgressStream):
        super().__init__(events, media_type="text/event-stream", headers=EVENT_STREAM_HEADERS)
        self.events = events

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            with anyio.CancelScope(shield=True):
                await self.events.aclose()


def _parse_int_param(name: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        raise ValidationError(message=f"{name} must be an integer", **{name.lower(): value})


# ============================================================================
# Import / Template
# ============================================================================


@router.post(
    "/import",
    summary="Import travel times from a spreadsheet",
    responses={
        200: {"content": {"text/event-stream": {}}, "description": "Import progress events"},
        400: {"model": ErrorResponse},
    },
)
async def import_travel_times(
    file: Optional[UploadFile] = File(None, description="Spreadsheet (.xlsx) to import"),
    client: BackendClient = Depends(get_backend_client),
) -> ImportStreamResponse:
    """
    Import travel times.

    WHAT: Validates every row of the uploaded workbook, forwards the batch
    to the backend and relays the backend's progress events.

    WHY: All-or-nothing: a single invalid row rejects the file with the full
    list of row errors and nothing is sent downstream.
    """
    if file is None:
        raise MissingFileError()

    service = TravelTimeImportService(client)
    content = await service.read_upload(file)
    events = await service.start_import(file.filename, content)

    return ImportStreamResponse(events)


@router.get(
    "/template",
    summary="Download the import template",
    response_class=Response,
    responses={200: {"content": {XLSX_MEDIA_TYPE: {}}}},
)
async def download_template() -> Response:
    """Spreadsheet with the required headers and two example rows."""
    return Response(
        content=build_template(),
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"',
        },
    )


# ============================================================================
# Passthrough Endpoints
# ============================================================================


@router.get("", summary="List travel times")
async def list_travel_times(
    client: BackendClient = Depends(get_backend_client),
) -> List[Dict[str, Any]]:
    """All travel-time records stored by the backend."""
    return await client.list_travel_times()


@router.get("/by-day-hour", summary="Travel times for a weekday and hour")
async def list_travel_times_by_day_hour(
    day: Optional[str] = Query(None, description="Weekday number as stored by the backend"),
    hour: Optional[str] = Query(None, description="Hour of day (0-23)"),
    client: BackendClient = Depends(get_backend_client),
) -> List[Dict[str, Any]]:
    """
    Filter travel times by weekday and hour.

    WHY: The backend has no filtered endpoint, so the full list is fetched
    and filtered on the record's Day and Hour fields.
    """
    if not day or not hour:
        raise ValidationError(message="Day and hour parameters are required")

    day_num = _parse_int_param("Day", day)
    hour_num = _parse_int_param("Hour", hour)

    records = await client.list_travel_times()
    return [
        record
        for record in records
        if record.get("Day") == day_num and record.get("Hour") == hour_num
    ]


@router.post("/update", summary="Refresh travel times")
async def update_travel_times(
    body: Optional[Dict[str, Any]] = Body(None),
    client: BackendClient = Depends(get_backend_client),
) -> Dict[str, Any]:
    """
    Trigger a travel-time refresh on the backend.

    Backend errors keep their status; a maps-provider failure is flagged
    with details.google_api_error.
    """
    body = body or {}
    logger.info(f"Requesting travel time update with keys: {sorted(body.keys())}")
    return await client.update_travel_times(body)
