"""
Travel-time row validation and normalization.

WHAT: Column checks, per-row field validation and date normalization for
spreadsheet imports.

WHY: Imports are all-or-nothing. Every row is checked and every problem is
collected before anything is forwarded downstream, so the operator can fix
the whole file in one pass.

HOW:
1. check_columns() runs before any row is inspected
2. validate_row() checks each field independently
3. validate_sheet() aggregates row errors and raises RowValidationError
"""

import logging
import math
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from grooming_gateway.core.exceptions import (
    EmptySpreadsheetError,
    MissingColumnsError,
    RowValidationError,
)
from grooming_gateway.schemas.travel_time import (
    REQUIRED_COLUMNS,
    TravelDirection,
    TravelTimeRow,
)
from grooming_gateway.services.spreadsheet import SheetData


logger = logging.getLogger(__name__)

# 1900 date system: serial day 25569 is 1970-01-01
SERIAL_EPOCH_OFFSET_DAYS = 25569
MILLISECONDS_PER_DAY = 24 * 60 * 60 * 1000

_UNIX_EPOCH = datetime(1970, 1, 1)

_DIRECTION_VALUES = tuple(d.value for d in TravelDirection)


def convert_serial_date(serial: float) -> datetime:
    """
    Convert a spreadsheet serial date to a naive UTC datetime.

    Args:
        serial: Days since the 1900 epoch, fractional part is time of day

    Returns:
        The corresponding datetime, truncated to whole milliseconds

    Raises:
        ValueError: If the serial is not finite or falls outside datetime's range
    """
    if isinstance(serial, bool) or not math.isfinite(serial):
        raise ValueError(f"Invalid serial date: {serial!r}")

    milliseconds = int((float(serial) - SERIAL_EPOCH_OFFSET_DAYS) * MILLISECONDS_PER_DAY)
    try:
        return _UNIX_EPOCH + timedelta(milliseconds=milliseconds)
    except OverflowError as e:
        raise ValueError(f"Serial date out of range: {serial!r}") from e


def _to_utc_naive(value: datetime) -> datetime:
    """Drop tzinfo after converting an aware datetime to UTC."""
    if value.tzinfo is None:
        return value
    try:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    except OverflowError as e:
        raise ValueError(f"Date out of range in UTC: {value.isoformat()}") from e


def format_timestamp(value: datetime) -> str:
    """Format as YYYY-MM-DD HH:mm:ss, converting aware datetimes to UTC first."""
    value = _to_utc_naive(value)
    # strftime("%Y") does not zero-pad years below 1000 on every platform
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d} "
        f"{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )


def parse_date_value(value: Any) -> datetime:
    """
    Interpret a Date cell.

    Accepts spreadsheet serial numbers, datetime/date cells and ISO-like
    strings ("2024-03-20", "2024-03-20 08:00:00", "2024-03-20T08:00:00Z").
    Values carrying an offset are returned as naive UTC.

    Raises:
        ValueError: If the value does not yield a valid calendar date
    """
    if isinstance(value, datetime):
        return _to_utc_naive(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, bool):
        raise ValueError(f"Invalid date: {value!r}")
    if isinstance(value, (int, float, Decimal)):
        return convert_serial_date(float(value))

    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return _to_utc_naive(datetime.fromisoformat(text))


def _as_number(value: Any) -> Optional[float]:
    """Numeric value of a cell, or None when it is not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _display(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def validate_row(row: Dict[str, Any], index: int) -> Tuple[Optional[TravelTimeRow], List[str]]:
    """
    Validate and normalize one data row.

    Presence is an explicit None/blank check, so a Distance of 0 is valid
    and a Duration of 0 is reported as non-positive rather than missing.

    Args:
        row: Cell values keyed by column name
        index: Zero-based data row index (reported 1-based)

    Returns:
        (normalized row, []) when valid, (None, messages) otherwise
    """
    label = f"Row {index + 1}"
    errors: List[str] = []

    direction = row.get("Direction")
    if _is_missing(direction):
        errors.append(f"{label}: Missing Direction")
    elif str(direction) not in _DIRECTION_VALUES:
        errors.append(
            f'{label}: Invalid Direction "{_display(direction)}". '
            f'Must be "home_to_work" or "work_to_home"'
        )

    raw_duration = row.get("Duration")
    duration = None
    if _is_missing(raw_duration):
        errors.append(f"{label}: Missing Duration")
    else:
        duration = _as_number(raw_duration)
        if duration is None or duration <= 0:
            errors.append(
                f'{label}: Invalid Duration "{_display(raw_duration)}". '
                f"Must be a positive number"
            )

    raw_distance = row.get("Distance")
    distance = None
    if _is_missing(raw_distance):
        errors.append(f"{label}: Missing Distance")
    else:
        distance = _as_number(raw_distance)
        if distance is None or distance < 0:
            errors.append(
                f'{label}: Invalid Distance "{_display(raw_distance)}". '
                f"Must be a non-negative number"
            )

    raw_date = row.get("Date")
    parsed_date = None
    if _is_missing(raw_date):
        errors.append(f"{label}: Missing Date")
    else:
        try:
            parsed_date = parse_date_value(raw_date)
        except ValueError:
            errors.append(f'{label}: Invalid Date "{_display(raw_date)}". Must be a valid date')

    if errors:
        return None, errors

    return (
        TravelTimeRow(
            direction=TravelDirection(str(direction)),
            duration=duration,
            distance=distance,
            date=format_timestamp(parsed_date),
        ),
        [],
    )


def check_columns(headers: Iterable[str]) -> None:
    """
    Ensure every required column is present.

    Raises:
        MissingColumnsError: Listing exactly the missing columns
    """
    present = set(headers)
    missing = [column for column in REQUIRED_COLUMNS if column not in present]
    if missing:
        raise MissingColumnsError(missing)


def validate_sheet(sheet: SheetData) -> List[TravelTimeRow]:
    """
    Validate an entire worksheet.

    Args:
        sheet: Parsed worksheet contents

    Returns:
        Every row, normalized, in sheet order

    Raises:
        EmptySpreadsheetError: No header row, or no data rows under it
        MissingColumnsError: Required columns absent (checked before rows)
        RowValidationError: One or more rows invalid, with all messages
    """
    if sheet.headers is None:
        raise EmptySpreadsheetError()

    check_columns(sheet.headers)

    if not sheet.rows:
        raise EmptySpreadsheetError()

    accepted: List[TravelTimeRow] = []
    all_errors: List[str] = []
    for index, row in enumerate(sheet.rows):
        travel_time, errors = validate_row(row, index)
        if errors:
            all_errors.extend(errors)
        else:
            accepted.append(travel_time)

    if all_errors:
        logger.warning(
            f"Rejected travel-time batch: {len(all_errors)} error(s) across {len(sheet.rows)} row(s)"
        )
        raise RowValidationError(all_errors, row_count=len(sheet.rows))

    return accepted
