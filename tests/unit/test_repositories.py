"""Unit tests for the sales and upload history repositories."""

from __future__ import annotations

import asyncio
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import event
from sqlmodel import Session

from salesboard.core.enums import UploadStatus
from salesboard.core.exceptions import DatabaseError
from salesboard.infrastructure.db.models.sales_data import SalesData
from salesboard.infrastructure.db.models.upload_history import UploadHistory
from salesboard.infrastructure.db.repositories.sales_repository import SalesRepository
from salesboard.infrastructure.db.repositories.upload_history_repository import (
    UploadHistoryRepository,
)


def _row(batch_id: str, invoice: str) -> dict:
    return {
        "entity": "HQ",
        "year": 2024,
        "quarter": "Q1",
        "upload_batch_id": batch_id,
        "invoice": invoice,
        "invoice_date": date(2024, 1, 15),
        "line_amount_mst": Decimal("10.50"),
    }


def test_insert_many_counts_rows(session: Session) -> None:
    repository = SalesRepository(session)

    inserted = asyncio.run(repository.insert_many([_row("b-1", "INV-1"), _row("b-1", "INV-2")]))

    assert inserted == 2
    assert asyncio.run(repository.count_by_batch("b-1")) == 2


def test_insert_many_with_no_rows_is_a_no_op(session: Session) -> None:
    assert asyncio.run(SalesRepository(session).insert_many([])) == 0


def test_failed_chunk_is_rolled_back(session: Session) -> None:
    repository = SalesRepository(session)
    bad = _row("b-1", "INV-2")
    bad["upload_batch_id"] = None  # violates NOT NULL

    with pytest.raises(DatabaseError):
        asyncio.run(repository.insert_many([_row("b-1", "INV-1"), bad]))

    assert asyncio.run(repository.count_by_batch("b-1")) == 0


def test_insert_one(session: Session) -> None:
    repository = SalesRepository(session)

    asyncio.run(repository.insert_one(_row("b-2", "INV-9")))

    assert asyncio.run(repository.count_by_batch("b-2")) == 1


def test_table_exists(session: Session, bare_engine) -> None:
    assert SalesRepository(session).table_exists()
    with Session(bare_engine) as empty:
        assert not SalesRepository(empty).table_exists()


def test_history_lifecycle(session: Session) -> None:
    repository = UploadHistoryRepository(session)

    opened = asyncio.run(repository.open_batch("b-1", "HQ", "sales.xlsx", file_size=1024, total_rows=10))
    assert opened.status == UploadStatus.PROCESSING.value
    assert opened.file_path is None
    assert opened.completed_at is None

    progressed = asyncio.run(repository.update_progress("b-1", 5))
    assert progressed.rows_uploaded == 5
    assert progressed.status == UploadStatus.PROCESSING.value

    finalized = asyncio.run(repository.finalize("b-1", UploadStatus.PARTIAL, 8, "Row 4: boom"))
    assert finalized.status == UploadStatus.PARTIAL.value
    assert finalized.rows_uploaded == 8
    assert finalized.error_message == "Row 4: boom"
    assert finalized.completed_at is not None


def test_list_recent_filters_and_limits(session: Session) -> None:
    repository = UploadHistoryRepository(session)
    for index, entity in enumerate(["HQ", "USA", "HQ", "HQ"]):
        asyncio.run(repository.open_batch(f"b-{index}", entity, f"file-{index}.xlsx"))

    recent_hq = asyncio.run(repository.list_recent(entity="HQ", limit=2))
    everything = asyncio.run(repository.list_recent())

    assert [item.batch_id for item in recent_hq] == ["b-3", "b-2"]
    assert len(everything) == 4


def test_get_by_batch_id_returns_none_when_absent(session: Session) -> None:
    assert asyncio.run(UploadHistoryRepository(session).get_by_batch_id("missing")) is None


@pytest.mark.parametrize(
    "column",
    [
        UploadHistory.__table__.c.uploaded_at,
        UploadHistory.__table__.c.completed_at,
        SalesData.__table__.c.created_at,
    ],
)
def test_timestamp_columns_are_timezone_aware(column) -> None:
    assert column.type.timezone is True


def test_new_batch_gets_aware_upload_time() -> None:
    history = UploadHistory(batch_id="b-1", entity="HQ", file_name="sales.xlsx")

    assert history.uploaded_at.tzinfo is not None


def test_finalize_stamps_aware_completion_time(session: Session) -> None:
    repository = UploadHistoryRepository(session)
    asyncio.run(repository.open_batch("b-1", "HQ", "sales.xlsx"))
    flushed = []

    def capture(flush_session, flush_context, instances):
        flushed.extend(obj.completed_at for obj in flush_session.dirty if isinstance(obj, UploadHistory))

    event.listen(session, "before_flush", capture)
    asyncio.run(repository.finalize("b-1", UploadStatus.SUCCESS, 0))

    assert flushed
    assert all(stamp.tzinfo is not None for stamp in flushed)
