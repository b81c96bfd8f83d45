"""
Unit tests for spreadsheet reading and template generation.

HOW: Workbooks are built in memory with openpyxl, the same library that
reads them back.
"""

from datetime import datetime
from io import BytesIO

import pytest
from openpyxl import load_workbook

from grooming_gateway.core.exceptions import SpreadsheetParseError
from grooming_gateway.services.spreadsheet import (
    TEMPLATE_SHEET_TITLE,
    build_template,
    read_sheet,
)
from tests.factories import WorkbookFactory


class TestReadSheet:
    """Tests for read_sheet()."""

    def test_reads_headers_and_rows(self):
        content = WorkbookFactory.build(
            rows=[["home_to_work", 30, 10.5, "2024-03-20 08:00:00"]]
        )

        sheet = read_sheet(content)

        assert sheet.headers == ["Direction", "Duration", "Distance", "Date"]
        assert sheet.rows == [
            {
                "Direction": "home_to_work",
                "Duration": 30,
                "Distance": 10.5,
                "Date": "2024-03-20 08:00:00",
            }
        ]

    def test_datetime_cells_come_back_as_datetimes(self):
        content = WorkbookFactory.build(
            rows=[["work_to_home", 35, 11.2, datetime(2024, 3, 20, 17, 0)]]
        )

        sheet = read_sheet(content)

        assert sheet.rows[0]["Date"] == datetime(2024, 3, 20, 17, 0)

    def test_header_names_are_stripped(self):
        content = WorkbookFactory.build(
            headers=[" Direction ", "Duration", "Distance", "Date "],
            rows=[["home_to_work", 1, 1, "2024-01-01"]],
        )

        assert read_sheet(content).headers == ["Direction", "Duration", "Distance", "Date"]

    def test_blank_rows_are_skipped(self):
        content = WorkbookFactory.build(
            rows=[
                ["home_to_work", 30, 10, "2024-03-20"],
                [None, None, None, None],
                ["work_to_home", 35, 11, "2024-03-21"],
            ]
        )

        sheet = read_sheet(content)

        assert [r["Direction"] for r in sheet.rows] == ["home_to_work", "work_to_home"]

    def test_short_rows_fill_missing_cells_with_none(self):
        content = WorkbookFactory.build(rows=[["home_to_work", 30]])

        row = read_sheet(content).rows[0]

        assert row["Distance"] is None
        assert row["Date"] is None

    def test_headers_only(self):
        sheet = read_sheet(WorkbookFactory.build(rows=[]))

        assert sheet.headers == ["Direction", "Duration", "Distance", "Date"]
        assert sheet.rows == []

    def test_completely_empty_sheet_has_no_headers(self):
        sheet = read_sheet(WorkbookFactory.build(headers=None))

        assert sheet.headers is None
        assert sheet.rows == []

    def test_extra_columns_are_kept(self):
        content = WorkbookFactory.build(
            headers=["Direction", "Duration", "Distance", "Date", "Notes"],
            rows=[["home_to_work", 30, 10, "2024-03-20", "traffic"]],
        )

        assert read_sheet(content).rows[0]["Notes"] == "traffic"

    @pytest.mark.parametrize("content", [b"", b"not a spreadsheet", b"PK\x03\x04garbage"])
    def test_unreadable_content_raises_parse_error(self, content):
        with pytest.raises(SpreadsheetParseError) as exc_info:
            read_sheet(content)

        assert exc_info.value.status_code == 400


class TestBuildTemplate:
    """Tests for the downloadable template."""

    def test_template_layout(self):
        workbook = load_workbook(BytesIO(build_template()))
        worksheet = workbook.active

        assert worksheet.title == TEMPLATE_SHEET_TITLE
        values = list(worksheet.iter_rows(values_only=True))
        assert values[0] == ("Direction", "Duration", "Distance", "Date")
        assert len(values) == 3
        assert values[1][0] == "home_to_work"
        assert values[2][0] == "work_to_home"

    def test_template_passes_import_validation(self):
        from grooming_gateway.services.travel_time_validator import validate_sheet

        rows = validate_sheet(read_sheet(build_template()))

        assert len(rows) == 2
        assert rows[0].date == "2024-03-20 08:00:00"
