"""Unit tests for the spreadsheet reader."""

from __future__ import annotations

from datetime import datetime

import pytest

from salesboard.core.exceptions import ParseError
from salesboard.processors.excel_reader import _engine_for, read_records


def test_reads_first_sheet_into_records(make_workbook) -> None:
    payload = make_workbook(
        ["Invoice", "Invoice date", "Quantity", "Country"],
        [
            ["INV-1", datetime(2024, 5, 15), 3, "US"],
            ["INV-2", None, 1.5, None],
        ],
    )

    records = read_records(payload, "sales.xlsx")

    assert len(records) == 2
    assert records[0] == {
        "Invoice": "INV-1",
        "Invoice date": datetime(2024, 5, 15),
        "Quantity": 3,
        "Country": "US",
    }
    assert records[1]["Invoice date"] is None
    assert records[1]["Country"] is None
    assert records[1]["Quantity"] == 1.5


def test_cells_are_plain_python_values(make_workbook) -> None:
    payload = make_workbook(["Quantity", "Invoice date"], [[7, datetime(2023, 1, 1)]])

    record = read_records(payload, "sales.xlsx")[0]

    assert type(record["Quantity"]) is int
    assert type(record["Invoice date"]) is datetime


def test_header_only_workbook_is_a_parse_error(make_workbook) -> None:
    payload = make_workbook(["Invoice", "Country"], [])

    with pytest.raises(ParseError, match="no data rows"):
        read_records(payload, "empty.xlsx")


def test_garbage_payload_is_a_parse_error() -> None:
    with pytest.raises(ParseError) as exc_info:
        read_records(b"this is not a workbook", "broken.xlsx")

    assert exc_info.value.details["file_name"] == "broken.xlsx"
    assert exc_info.value.status_code == 400


def test_empty_payload_is_a_parse_error() -> None:
    with pytest.raises(ParseError, match="empty"):
        read_records(b"", "nothing.xlsx")


def test_engine_follows_extension() -> None:
    assert _engine_for("legacy.XLS") == "xlrd"
    assert _engine_for("modern.xlsx") == "openpyxl"
    assert _engine_for("no_extension") == "openpyxl"
