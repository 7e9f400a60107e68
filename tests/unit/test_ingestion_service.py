"""Unit tests for the batch ingestion service."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest
from sqlmodel import Session, select

from salesboard.core.config import UploadSettings
from salesboard.core.enums import Entity, InsertStrategy, UploadStatus
from salesboard.core.exceptions import (
    DatabaseError,
    ParseError,
    PersistenceError,
    RequestValidationError,
)
from salesboard.infrastructure.db.models.sales_data import SalesData
from salesboard.infrastructure.db.models.upload_history import UploadHistory
from salesboard.services.ingestion_service import (
    IngestionService,
    UploadPayload,
    validate_upload,
)

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
HEADERS = ["Invoice", "Invoice date", "Line Amount_MST", "Country"]


class FakeSalesRepository:
    """Records insert calls; can fail a given chunk call or given invoices."""

    def __init__(self, fail_chunk_calls: Set[int] = frozenset(), failing_invoices: Set[str] = frozenset()):
        self.fail_chunk_calls = fail_chunk_calls
        self.failing_invoices = failing_invoices
        self.chunk_calls: List[int] = []
        self.rows: List[Dict[str, Any]] = []
        self.exists = True

    def table_exists(self) -> bool:
        return self.exists

    async def insert_many(self, rows):
        self.chunk_calls.append(len(rows))
        if len(self.chunk_calls) in self.fail_chunk_calls:
            raise DatabaseError("value too long for column", operation="insert_many")
        self.rows.extend(rows)
        return len(rows)

    async def insert_one(self, row):
        if row["invoice"] in self.failing_invoices:
            raise DatabaseError("duplicate key value", operation="insert_one")
        self.rows.append(row)


class FakeHistoryRepository:
    def __init__(self):
        self.opened: List[Dict[str, Any]] = []
        self.progress: List[int] = []
        self.finalized: List[Tuple[UploadStatus, int, Optional[str]]] = []

    async def open_batch(self, **kwargs):
        self.opened.append(kwargs)

    async def update_progress(self, batch_id, rows_uploaded):
        self.progress.append(rows_uploaded)

    async def finalize(self, batch_id, status, rows_uploaded, error_message=None):
        self.finalized.append((status, rows_uploaded, error_message))


def _payload(make_workbook, rows, name="sales.xlsx", content_type=XLSX_MIME) -> UploadPayload:
    return UploadPayload(file_name=name, content=make_workbook(HEADERS, rows), content_type=content_type)


def _rows(count: int) -> List[List[Any]]:
    return [[f"INV-{i}", datetime(2024, 2, 1), 10, "US"] for i in range(count)]


def _service(make_settings, sales=None, history=None, **upload_overrides) -> IngestionService:
    return IngestionService(
        db_session=None,
        settings=make_settings(**upload_overrides),
        sales_repository=sales or FakeSalesRepository(),
        history_repository=history or FakeHistoryRepository(),
    )


# validation

def test_missing_file_is_reported_before_bad_entity() -> None:
    with pytest.raises(RequestValidationError, match="No file provided"):
        validate_upload(None, "Bogus", UploadSettings())


@pytest.mark.parametrize(
    "entity, message",
    [(None, "Entity is required"), ("  ", "Entity is required"), ("All", "specific entity"), ("Mars", "Invalid entity")],
)
def test_entity_is_validated(entity, message) -> None:
    upload = UploadPayload("sales.xlsx", b"x", XLSX_MIME)

    with pytest.raises(RequestValidationError, match=message):
        validate_upload(upload, entity, UploadSettings())


def test_size_is_checked_before_type() -> None:
    upload = UploadPayload("notes.txt", b"x" * 11, "text/plain")

    with pytest.raises(RequestValidationError, match="File size exceeds"):
        validate_upload(upload, "HQ", UploadSettings(max_file_size=10))


def test_unsupported_type_is_rejected() -> None:
    upload = UploadPayload("notes.txt", b"hello", "text/plain")

    with pytest.raises(RequestValidationError, match="Invalid file type"):
        validate_upload(upload, "HQ", UploadSettings())


def test_extension_is_enough_when_mime_is_generic() -> None:
    upload = UploadPayload("sales.XLSX", b"x", "application/octet-stream")

    assert validate_upload(upload, "Healthcare", UploadSettings()) is Entity.HEALTHCARE


# pipeline with fake repositories

def test_rows_are_inserted_in_sequential_chunks(make_workbook, make_settings) -> None:
    sales, history = FakeSalesRepository(), FakeHistoryRepository()
    service = _service(make_settings, sales, history)

    result = asyncio.run(service.ingest(_payload(make_workbook, _rows(1200)), "HQ"))

    assert sales.chunk_calls == [500, 500, 200]
    assert history.progress == [500, 1000, 1200]
    assert history.progress == sorted(history.progress)
    assert history.finalized == [(UploadStatus.SUCCESS, 1200, None)]
    assert result.status is UploadStatus.SUCCESS
    assert result.rows_inserted == 1200


def test_batch_id_is_uniform_and_opened_before_inserts(make_workbook, make_settings) -> None:
    sales, history = FakeSalesRepository(), FakeHistoryRepository()
    service = _service(make_settings, sales, history)

    result = asyncio.run(service.ingest(_payload(make_workbook, _rows(3)), "USA"))

    assert {row["upload_batch_id"] for row in sales.rows} == {result.batch_id}
    assert history.opened[0]["batch_id"] == result.batch_id
    assert history.opened[0]["total_rows"] == 3
    assert {row["entity"] for row in sales.rows} == {"USA"}


def test_abort_strategy_stops_at_failed_chunk(make_workbook, make_settings) -> None:
    sales = FakeSalesRepository(fail_chunk_calls={2})
    history = FakeHistoryRepository()
    service = _service(make_settings, sales, history, insert_strategy=InsertStrategy.ABORT)

    with pytest.raises(PersistenceError) as exc_info:
        asyncio.run(service.ingest(_payload(make_workbook, _rows(1200)), "HQ"))

    assert exc_info.value.message == "value too long for column"
    assert exc_info.value.rows_inserted == 500
    assert exc_info.value.status_code == 500
    assert sales.chunk_calls == [500, 500]
    assert history.finalized == [(UploadStatus.FAILED, 500, "value too long for column")]


def test_row_fallback_reports_partial_upload(make_workbook, make_settings) -> None:
    sales = FakeSalesRepository(fail_chunk_calls={1}, failing_invoices={"INV-1"})
    history = FakeHistoryRepository()
    service = _service(make_settings, sales, history)

    result = asyncio.run(service.ingest(_payload(make_workbook, _rows(3)), "HQ"))

    assert result.status is UploadStatus.PARTIAL
    assert result.rows_inserted == 2
    assert result.errors == ["Row 3: duplicate key value"]
    assert history.finalized == [(UploadStatus.PARTIAL, 2, "Row 3: duplicate key value")]


def test_row_fallback_with_no_surviving_rows_fails(make_workbook, make_settings) -> None:
    sales = FakeSalesRepository(fail_chunk_calls={1}, failing_invoices={"INV-0", "INV-1"})
    history = FakeHistoryRepository()
    service = _service(make_settings, sales, history)

    with pytest.raises(PersistenceError, match="No rows could be inserted"):
        asyncio.run(service.ingest(_payload(make_workbook, _rows(2)), "HQ"))

    assert [status for status, _, _ in history.finalized] == [UploadStatus.FAILED]


class LockedProgressHistory(FakeHistoryRepository):
    async def update_progress(self, batch_id, rows_uploaded):
        raise RuntimeError("progress row locked")


class UnreachableHistory(LockedProgressHistory):
    async def finalize(self, batch_id, status, rows_uploaded, error_message=None):
        raise RuntimeError("history store unreachable")


def test_unexpected_error_after_allocation_fails_batch(make_workbook, make_settings) -> None:
    history = LockedProgressHistory()
    service = _service(make_settings, FakeSalesRepository(), history)

    with pytest.raises(PersistenceError, match="progress row locked") as exc_info:
        asyncio.run(service.ingest(_payload(make_workbook, _rows(3)), "HQ"))

    assert history.finalized == [(UploadStatus.FAILED, 3, "progress row locked")]
    assert exc_info.value.rows_inserted == 3
    assert exc_info.value.batch_id == history.opened[0]["batch_id"]


def test_failure_to_mark_batch_failed_is_only_logged(make_workbook, make_settings, caplog) -> None:
    service = _service(make_settings, FakeSalesRepository(), UnreachableHistory())

    with caplog.at_level(logging.ERROR, logger="salesboard.services.ingestion_service"):
        with pytest.raises(PersistenceError, match="progress row locked"):
            asyncio.run(service.ingest(_payload(make_workbook, _rows(3)), "HQ"))

    assert "Could not mark upload batch as failed" in caplog.text
    assert "history store unreachable" in caplog.text


def test_warnings_are_capped_with_marker(make_workbook, make_settings) -> None:
    rows = [[f"INV-{i}", "not a date", 10, "US"] for i in range(15)]
    service = _service(make_settings)

    result = asyncio.run(service.ingest(_payload(make_workbook, rows), "HQ"))

    assert len(result.warnings) == 11
    assert result.warnings[-1] == "5 further warnings suppressed"
    assert result.rows_inserted == 15


def test_empty_rows_are_skipped(make_workbook, make_settings) -> None:
    rows = [["INV-1", None, 5, "US"], [None, "not a date", None, None], ["INV-2", None, 7, "VN"]]
    sales = FakeSalesRepository()
    service = _service(make_settings, sales)

    result = asyncio.run(service.ingest(_payload(make_workbook, rows), "HQ"))

    assert result.rows_skipped == 1
    assert result.total_rows == 2
    assert len(sales.rows) == 2


def test_workbook_without_usable_rows_creates_no_batch(make_workbook, make_settings) -> None:
    history = FakeHistoryRepository()
    service = _service(make_settings, history=history)

    with pytest.raises(RequestValidationError, match="No valid rows"):
        asyncio.run(service.ingest(_payload(make_workbook, [[None, "not a date", None, None]]), "HQ"))

    assert history.opened == []


def test_unreadable_workbook_is_a_parse_error(make_settings) -> None:
    history = FakeHistoryRepository()
    service = _service(make_settings, history=history)
    upload = UploadPayload("broken.xlsx", b"garbage", XLSX_MIME)

    with pytest.raises(ParseError):
        asyncio.run(service.ingest(upload, "HQ"))

    assert history.opened == []


def test_missing_sales_table_is_reported_with_hint(make_workbook, make_settings) -> None:
    sales, history = FakeSalesRepository(), FakeHistoryRepository()
    sales.exists = False
    service = _service(make_settings, sales, history)

    with pytest.raises(PersistenceError) as exc_info:
        asyncio.run(service.ingest(_payload(make_workbook, _rows(1)), "HQ"))

    assert "initdb" in exc_info.value.hint
    assert history.opened == []


# pipeline against the database

def test_ingest_persists_rows_and_history(session: Session, make_workbook, make_settings) -> None:
    rows = [
        ["INV-1", datetime(2024, 5, 15), 100.5, "US"],
        ["INV-2", "not a date", 50, "VN"],
        ["INV-3", 45000, "1,234.50", "US"],
    ]
    service = IngestionService(session, settings=make_settings())

    result = asyncio.run(service.ingest(_payload(make_workbook, rows), "Vietnam"))

    stored = session.exec(select(SalesData).order_by(SalesData.id)).all()
    assert result.rows_inserted == 3
    assert [row.upload_batch_id for row in stored] == [result.batch_id] * 3
    assert (stored[0].year, stored[0].quarter) == (2024, "Q2")
    assert (stored[1].year, stored[1].quarter) == (None, None)
    assert (stored[2].year, stored[2].quarter) == (2023, "Q1")

    history = session.exec(select(UploadHistory)).one()
    assert history.batch_id == result.batch_id
    assert history.status == UploadStatus.SUCCESS.value
    assert history.rows_uploaded == 3
    assert history.completed_at is not None


def test_ingest_without_schema_writes_nothing(bare_engine, make_workbook, make_settings) -> None:
    UploadHistory.__table__.create(bare_engine)
    with Session(bare_engine) as session:
        service = IngestionService(session, settings=make_settings())

        with pytest.raises(PersistenceError) as exc_info:
            asyncio.run(service.ingest(_payload(make_workbook, _rows(2)), "HQ"))

        assert exc_info.value.batch_id is None
        assert session.exec(select(UploadHistory)).all() == []
