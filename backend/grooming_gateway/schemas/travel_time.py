"""
Travel Time Pydantic Schemas.

WHAT: Row and batch models for the travel-time import pipeline, plus the
response shapes used in the OpenAPI docs.

HOW: Field aliases carry the capitalized spreadsheet/downstream names
(Direction, Duration, Distance, Date, travelTimes) while Python code uses
snake_case attributes. Serialize with model_dump(by_alias=True).
"""

from typing import Any, Dict, List, Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


REQUIRED_COLUMNS = ("Direction", "Duration", "Distance", "Date")


class TravelDirection(str, Enum):
    """Commute direction values."""

    HOME_TO_WORK = "home_to_work"
    WORK_TO_HOME = "work_to_home"


class TravelTimeRow(BaseModel):
    """
    One validated travel-time measurement.

    WHAT: A single directional commute duration/distance tied to a date.

    WHY: Constructed only after the row validator accepted every field,
    so the constraints here restate the import rules rather than enforce
    them for the first time.
    """

    model_config = ConfigDict(populate_by_name=True)

    direction: TravelDirection = Field(..., alias="Direction")
    duration: float = Field(..., gt=0, alias="Duration", description="Minutes")
    distance: float = Field(..., ge=0, alias="Distance", description="Distance units")
    date: str = Field(
        ..., alias="Date", description="Timestamp formatted as YYYY-MM-DD HH:mm:ss"
    )


class TravelTimeImportBatch(BaseModel):
    """Body posted to the downstream import endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    travel_times: List[TravelTimeRow] = Field(..., alias="travelTimes")


# ============================================================================
# Response Schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """JSON error body produced by the exception handlers."""

    error: str
    message: str
    status_code: int
    details: Optional[Dict[str, Any]] = None
    errors: Optional[List[str]] = Field(
        None, description="Per-row messages, present for row validation failures"
    )


class BackendStatusResponse(BaseModel):
    """Reachability of the downstream grooming backend."""

    status: str = Field(..., description="online or offline")
    backend_url: str
    details: Optional[Dict[str, Any]] = None
