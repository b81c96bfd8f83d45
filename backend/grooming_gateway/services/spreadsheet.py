"""
Spreadsheet reading and template generation.

WHAT: Thin openpyxl wrapper that turns an uploaded .xlsx workbook into a
header list plus row dicts, and builds the downloadable import template.

WHY: Keeping workbook I/O here leaves the validator working on plain Python
values (str, int, float, datetime), which is also what the tests feed it.
"""

import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Dict, List, Optional, Tuple
from zipfile import BadZipFile

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from grooming_gateway.core.exceptions import SpreadsheetParseError
from grooming_gateway.schemas.travel_time import REQUIRED_COLUMNS


logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

TEMPLATE_FILENAME = "travel-times-template.xlsx"
TEMPLATE_SHEET_TITLE = "Travel Times"
TEMPLATE_EXAMPLE_ROWS = [
    ("home_to_work", 30, 10.5, "2024-03-20 08:00:00"),
    ("work_to_home", 35, 11.2, "2024-03-20 17:00:00"),
]


@dataclass
class SheetData:
    """
    Contents of the first worksheet.

    headers is None when the sheet has no header row at all, which is
    distinct from a header row that lacks required columns.
    """

    headers: Optional[List[str]]
    rows: List[Dict[str, Any]] = field(default_factory=list)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _header_positions(header_row: Tuple[Any, ...]) -> List[Tuple[int, str]]:
    """Map column index -> stripped header name, skipping blank cells."""
    positions: List[Tuple[int, str]] = []
    seen = set()
    for index, cell in enumerate(header_row):
        if _is_blank(cell):
            continue
        name = str(cell).strip()
        # First occurrence wins for duplicated headers
        if name in seen:
            continue
        seen.add(name)
        positions.append((index, name))
    return positions


def read_sheet(content: bytes) -> SheetData:
    """
    Read the first worksheet of an .xlsx workbook.

    Args:
        content: Raw bytes of the uploaded file

    Returns:
        SheetData with header names and one dict per non-blank data row

    Raises:
        SpreadsheetParseError: If the bytes are not a readable workbook
    """
    try:
        workbook = load_workbook(BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, ValueError, OSError) as e:
        logger.warning(f"Rejected unreadable spreadsheet upload: {e}")
        raise SpreadsheetParseError(reason=str(e))

    try:
        if not workbook.worksheets:
            raise SpreadsheetParseError(message="Spreadsheet contains no worksheets")

        rows_iter = workbook.worksheets[0].iter_rows(values_only=True)
        header_row = next(rows_iter, None)
        if header_row is None or all(_is_blank(cell) for cell in header_row):
            return SheetData(headers=None)

        positions = _header_positions(header_row)
        rows: List[Dict[str, Any]] = []
        for values in rows_iter:
            if values is None or all(_is_blank(v) for v in values):
                continue
            rows.append(
                {
                    name: values[index] if index < len(values) else None
                    for index, name in positions
                }
            )

        return SheetData(headers=[name for _, name in positions], rows=rows)
    except (KeyError, ValueError, BadZipFile) as e:
        # Lazy parsing in read-only mode can fail part way through the sheet
        logger.warning(f"Spreadsheet failed while reading rows: {e}")
        raise SpreadsheetParseError(reason=str(e))
    finally:
        workbook.close()


def build_template() -> bytes:
    """
    Build the travel-time import template workbook.

    Returns:
        .xlsx bytes with the required header row and two example rows
    """
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = TEMPLATE_SHEET_TITLE

    worksheet.append(list(REQUIRED_COLUMNS))
    for row in TEMPLATE_EXAMPLE_ROWS:
        worksheet.append(list(row))

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
