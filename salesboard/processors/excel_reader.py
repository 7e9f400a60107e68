"""
Spreadsheet reader.

Turns an uploaded workbook (``.xlsx`` through openpyxl, legacy ``.xls``
through xlrd) into raw records: one ``{header: cell}`` dict per data row
of the first sheet, with pandas' missing-value markers replaced by None.
"""
from io import BytesIO
from pathlib import PurePath
from typing import Any, Dict, List

import numpy as np
import pandas as pd

from salesboard.core.exceptions import ParseError
from salesboard.core.logging import get_logger

logger = get_logger(__name__)

RawRecord = Dict[str, Any]

# Row 1 of the sheet holds the headers, so record i sits on row i + 2
FIRST_DATA_ROW = 2


def _engine_for(file_name: str) -> str:
    return "xlrd" if PurePath(file_name).suffix.lower() == ".xls" else "openpyxl"


def _clean_cell(value: Any) -> Any:
    """Map pandas/numpy cell values onto plain Python ones."""
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and np.isnan(value):
        return None
    return value


def read_records(payload: bytes, file_name: str) -> List[RawRecord]:
    """
    Read the first sheet of a workbook into raw records.

    Args:
        payload: Workbook bytes
        file_name: Original file name, used to pick the reader engine

    Returns:
        Records in sheet order, headers taken from the first row

    Raises:
        ParseError: If the payload is not a readable workbook or the
            first sheet has no data rows
    """
    if not payload:
        raise ParseError("Uploaded file is empty", file_name=file_name)

    engine = _engine_for(file_name)
    try:
        frame = pd.read_excel(BytesIO(payload), sheet_name=0, header=0, dtype=object, engine=engine)
    except Exception as e:
        logger.warning(f"Failed to read workbook {file_name!r} with {engine}: {e}")
        raise ParseError(f"Could not read spreadsheet: {e}", file_name=file_name)

    if frame.empty:
        raise ParseError("Spreadsheet contains no data rows", file_name=file_name)

    headers = [str(column).strip() for column in frame.columns]
    records = [
        {header: _clean_cell(value) for header, value in zip(headers, row)}
        for row in frame.itertuples(index=False, name=None)
    ]

    logger.info(f"Read {len(records)} records with {len(headers)} columns from {file_name!r}")
    return records
