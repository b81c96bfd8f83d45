"""
Unit tests for TravelTimeImportService.

WHY: The service is the point where a batch is either rejected or handed
to the backend; nothing may be forwarded for a rejected file.
"""

from io import BytesIO

import pytest
from fastapi import UploadFile

from grooming_gateway.core.exceptions import (
    EmptyUploadError,
    RowValidationError,
    SpreadsheetParseError,
    ValidationError,
)
from grooming_gateway.services.travel_time_import import TravelTimeImportService
from tests.factories import SSEFactory, WorkbookFactory


IMPORT_PATH = "/api/v1/travel-times/import"


class TestTravelTimeImportService:
    """Tests for start_import()."""

    @pytest.mark.asyncio
    async def test_valid_file_is_forwarded(self, backend_client, mock_backend):
        mock_backend.respond("POST", IMPORT_PATH, SSEFactory.response([{"imported": 3}]))
        service = TravelTimeImportService(backend_client)

        stream = await service.start_import(
            "times.xlsx", WorkbookFactory.build(WorkbookFactory.valid_rows(3))
        )
        events = [event async for event in stream]

        assert events == ['data: {"imported": 3}\n\n']
        (body,) = mock_backend.json_bodies(IMPORT_PATH)
        assert len(body["travelTimes"]) == 3

    @pytest.mark.asyncio
    async def test_empty_upload_rejected(self, backend_client, mock_backend):
        service = TravelTimeImportService(backend_client)

        with pytest.raises(EmptyUploadError) as exc_info:
            await service.start_import("empty.xlsx", b"")

        assert exc_info.value.message == "Uploaded file is empty"
        assert mock_backend.requests == []

    @pytest.mark.asyncio
    async def test_oversized_upload_rejected(self, backend_client, mock_backend):
        service = TravelTimeImportService(backend_client, max_upload_bytes=100)

        with pytest.raises(ValidationError) as exc_info:
            await service.start_import("big.xlsx", b"x" * 101)

        assert exc_info.value.message == "Uploaded file is too large"
        assert mock_backend.requests == []

    @pytest.mark.asyncio
    async def test_malformed_file_not_forwarded(self, backend_client, mock_backend):
        service = TravelTimeImportService(backend_client)

        with pytest.raises(SpreadsheetParseError):
            await service.start_import("notes.txt", b"hello")

        assert mock_backend.requests == []

    @pytest.mark.asyncio
    async def test_invalid_row_not_forwarded(self, backend_client, mock_backend):
        rows = WorkbookFactory.valid_rows(10)
        rows.append(["home_to_work", 30, -4, "2024-03-20"])
        service = TravelTimeImportService(backend_client)

        with pytest.raises(RowValidationError) as exc_info:
            await service.start_import("times.xlsx", WorkbookFactory.build(rows))

        assert exc_info.value.errors == [
            'Row 11: Invalid Distance "-4". Must be a non-negative number'
        ]
        assert mock_backend.requests == []

    @pytest.mark.asyncio
    async def test_read_upload_stops_past_the_limit(self, backend_client):
        service = TravelTimeImportService(backend_client, max_upload_bytes=100)
        upload = UploadFile(file=BytesIO(b"x" * 5000), filename="big.xlsx")

        content = await service.read_upload(upload)

        assert len(content) == 101
        with pytest.raises(ValidationError, match="too large"):
            await service.start_import(upload.filename, content)

    @pytest.mark.asyncio
    async def test_read_upload_within_limit_reads_everything(self, backend_client):
        service = TravelTimeImportService(backend_client, max_upload_bytes=100)
        upload = UploadFile(file=BytesIO(b"x" * 100), filename="small.xlsx")

        assert await service.read_upload(upload) == b"x" * 100
