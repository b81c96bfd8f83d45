"""
Travel-time import service.

WHAT: Runs the spreadsheet import pipeline: read -> validate -> forward.

WHY: Keeps the route handler to request/response plumbing; every step that
can reject a batch runs here, before any streaming response is started.
"""

import logging
from typing import Optional

from fastapi import UploadFile

from grooming_gateway.core.config import settings
from grooming_gateway.core.exceptions import EmptyUploadError, ValidationError
from grooming_gateway.services.backend_client import BackendClient, ImportProgressStream
from grooming_gateway.services.spreadsheet import read_sheet
from grooming_gateway.services.travel_time_validator import validate_sheet


logger = logging.getLogger(__name__)


class TravelTimeImportService:
    """
    Service for bulk travel-time imports.

    HOW: Stateless apart from the backend client; one instance per request.
    """

    def __init__(self, client: BackendClient, max_upload_bytes: Optional[int] = None):
        self.client = client
        self.max_upload_bytes = (
            max_upload_bytes if max_upload_bytes is not None else settings.MAX_UPLOAD_BYTES
        )

    async def read_upload(self, file: UploadFile) -> bytes:
        """
        Read an uploaded file without buffering more than the size limit.

        HOW: Reads at most one byte past max_upload_bytes, which is enough
        for start_import() to tell an oversized upload apart.
        """
        return await file.read(self.max_upload_bytes + 1)

    async def start_import(self, filename: Optional[str], content: bytes) -> ImportProgressStream:
        """
        Validate an uploaded workbook and start the downstream import.

        Args:
            filename: Original upload name (for logging only)
            content: Raw file bytes

        Returns:
            ImportProgressStream relaying the backend's progress events

        Raises:
            EmptyUploadError: Upload has no content
            ValidationError: Upload exceeds the size limit
            SpreadsheetParseError / EmptySpreadsheetError /
            MissingColumnsError / RowValidationError: Batch rejected
            DownstreamImportError: Backend refused the batch
        """
        if not content:
            raise EmptyUploadError(filename=filename)
        if len(content) > self.max_upload_bytes:
            raise ValidationError(
                message="Uploaded file is too large",
                max_bytes=self.max_upload_bytes,
            )

        sheet = read_sheet(content)
        rows = validate_sheet(sheet)

        logger.info(f"Validated {len(rows)} travel-time row(s) from {filename or 'upload'}")
        return await self.client.open_import_stream(rows)
