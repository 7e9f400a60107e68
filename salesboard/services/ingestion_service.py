"""
Batch ingestion of uploaded sales workbooks.

One call to ``IngestionService.ingest`` walks a single upload through
VALIDATING -> PARSING -> TRANSFORMING -> PERSISTING -> FINALIZED. Nothing
is written before the batch id is allocated; from then on the upload
history row always ends in exactly one terminal status.
"""

from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from sqlmodel import Session

from salesboard.core.config import Settings, UploadSettings, get_settings
from salesboard.core.enums import Entity, IngestionState, InsertStrategy, UploadStatus
from salesboard.core.exceptions import (
    AppException,
    DatabaseError,
    PersistenceError,
    RequestValidationError,
)
from salesboard.core.logging import StructuredLogger
from salesboard.infrastructure.db.repositories.sales_repository import (
    MISSING_TABLE_HINT,
    SalesRepository,
)
from salesboard.infrastructure.db.repositories.upload_history_repository import (
    UploadHistoryRepository,
)
from salesboard.processors.excel_reader import FIRST_DATA_ROW, read_records
from salesboard.services.base import BaseService
from salesboard.transformers.row_transformer import CanonicalRow, RowTransformer

NumberedRow = Tuple[int, CanonicalRow]

ALL_ENTITIES = "All"


@dataclass
class UploadPayload:
    """An uploaded file, held in memory."""
    file_name: Optional[str]
    content: Optional[bytes]
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content or b"")


@dataclass
class IngestionResult:
    batch_id: str
    entity: Entity
    file_name: str
    status: UploadStatus
    rows_inserted: int
    rows_skipped: int
    total_rows: int
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status in (UploadStatus.SUCCESS, UploadStatus.PARTIAL)

    @property
    def message(self) -> str:
        if self.status is UploadStatus.SUCCESS:
            return f"Uploaded {self.rows_inserted} rows"
        return (
            f"Uploaded {self.rows_inserted} of {self.total_rows} rows, "
            f"{len(self.errors)} rows failed"
        )


def validate_upload(
    upload: Optional[UploadPayload],
    entity: Optional[str],
    settings: UploadSettings,
) -> Entity:
    """
    Check an upload request before anything is read or written.

    Checks run in a fixed order and the first failure is reported:
    file presence, entity, size, then file type.

    Returns:
        The validated entity

    Raises:
        RequestValidationError: On the first failed check
    """
    if upload is None or not upload.file_name or upload.content is None:
        raise RequestValidationError("No file provided", field="file")

    entity = (entity or "").strip()
    if not entity:
        raise RequestValidationError("Entity is required", field="entity")
    if entity == ALL_ENTITIES:
        raise RequestValidationError(
            "Please select a specific entity, not 'All'", field="entity", value=entity
        )
    if entity not in Entity.values():
        raise RequestValidationError(
            f"Invalid entity. Must be one of: {', '.join(Entity.values())}",
            field="entity",
            value=entity,
        )

    if upload.size > settings.max_file_size:
        limit_mb = settings.max_file_size / (1024 * 1024)
        raise RequestValidationError(
            f"File size exceeds maximum allowed size of {limit_mb:g}MB",
            field="file",
            details={"file_size": upload.size, "max_file_size": settings.max_file_size},
        )

    extension = PurePath(upload.file_name).suffix.lower()
    if upload.content_type not in settings.allowed_mime_types and extension not in settings.allowed_extensions:
        raise RequestValidationError(
            "Invalid file type. Please upload an Excel file (.xlsx or .xls)",
            field="file",
            details={"content_type": upload.content_type, "file_name": upload.file_name},
        )

    return Entity(entity)


class IngestionService(BaseService):
    """
    Runs uploaded workbooks through the ingestion pipeline.

    Repositories and the transformer are injectable; by default they are
    built on the given session and the packaged column mapping.
    """

    def __init__(
        self,
        db_session: Session,
        settings: Optional[Settings] = None,
        transformer: Optional[RowTransformer] = None,
        sales_repository: Optional[SalesRepository] = None,
        history_repository: Optional[UploadHistoryRepository] = None,
    ):
        super().__init__(db_session)
        self.settings = settings or get_settings()
        self.transformer = transformer or RowTransformer()
        self.sales = sales_repository or SalesRepository(db_session)
        self.history = history_repository or UploadHistoryRepository(db_session)
        self.log = StructuredLogger(__name__)

    def get_service_name(self) -> str:
        return "ingestion"

    @property
    def upload_settings(self) -> UploadSettings:
        return self.settings.upload

    async def ingest(self, upload: Optional[UploadPayload], entity: Optional[str]) -> IngestionResult:
        """
        Validate, parse, transform and persist one upload.

        Returns:
            Outcome of a batch that ended ``success`` or ``partial``

        Raises:
            RequestValidationError: Rejected request or no usable rows
            ParseError: Payload is not a readable workbook
            PersistenceError: Missing schema, or the batch ended ``failed``
        """
        log = self.log.bind(file_name=getattr(upload, "file_name", None))

        log.info("Upload received", state=IngestionState.VALIDATING.value)
        valid_entity = validate_upload(upload, entity, self.upload_settings)
        log = log.bind(entity=valid_entity.value)

        log.info("Reading workbook", state=IngestionState.PARSING.value, file_size=upload.size)
        records = read_records(upload.content, upload.file_name)

        log.info("Transforming records", state=IngestionState.TRANSFORMING.value, records=len(records))
        rows, rows_skipped, warnings = self._transform(records, valid_entity)
        if not rows:
            raise RequestValidationError(
                "No valid rows found in the spreadsheet",
                field="file",
                details={"warnings": warnings, "rows_skipped": rows_skipped},
            )

        if not self.sales.table_exists():
            log.error("Sales table is missing, upload rejected")
            raise PersistenceError(
                "Database schema is not initialized",
                rows_inserted=0,
                hint=MISSING_TABLE_HINT,
            )

        batch_id = str(uuid4())
        rows = [(number, {**row, "upload_batch_id": batch_id}) for number, row in rows]
        log = log.bind(batch_id=batch_id)

        log.info(
            "Persisting rows",
            state=IngestionState.PERSISTING.value,
            rows=len(rows),
            rows_skipped=rows_skipped,
        )
        try:
            await self.history.open_batch(
                batch_id=batch_id,
                entity=valid_entity.value,
                file_name=upload.file_name,
                file_size=upload.size,
                total_rows=len(rows),
                rows_skipped=rows_skipped,
            )
        except DatabaseError as e:
            raise PersistenceError(
                f"Failed to record upload history: {e.message}",
                batch_id=batch_id,
                rows_inserted=0,
            ) from e

        status, rows_inserted, errors = await self._persist(batch_id, rows, log)

        log.info(
            "Upload finished",
            state=IngestionState.FINALIZED.value,
            status=status.value,
            rows_inserted=rows_inserted,
            errors=len(errors),
        )
        if status is UploadStatus.FAILED:
            raise PersistenceError(
                f"No rows could be inserted: {errors[0]}" if errors else "No rows could be inserted",
                batch_id=batch_id,
                rows_inserted=0,
                details={"errors": errors},
            )

        return IngestionResult(
            batch_id=batch_id,
            entity=valid_entity,
            file_name=upload.file_name,
            status=status,
            rows_inserted=rows_inserted,
            rows_skipped=rows_skipped,
            total_rows=len(rows),
            warnings=warnings,
            errors=errors,
        )

    def _transform(self, records: List[Dict[str, Any]], entity: Entity) -> Tuple[List[NumberedRow], int, List[str]]:
        """Transform every record, dropping empty rows and capping warnings."""
        max_warnings = self.upload_settings.max_warnings
        rows: List[NumberedRow] = []
        warnings: List[str] = []
        suppressed = 0
        skipped = 0

        for position, raw in enumerate(records):
            row_number = position + FIRST_DATA_ROW
            row, row_warnings = self.transformer.transform_with_warnings(raw, entity, None, row_number)

            for warning in row_warnings:
                if len(warnings) < max_warnings:
                    warnings.append(warning)
                else:
                    suppressed += 1

            if self.transformer.is_empty(row):
                skipped += 1
                continue
            rows.append((row_number, row))

        if suppressed:
            warnings.append(f"{suppressed} further warnings suppressed")
        return rows, skipped, warnings

    async def _persist(
        self,
        batch_id: str,
        rows: List[NumberedRow],
        log: StructuredLogger,
    ) -> Tuple[UploadStatus, int, List[str]]:
        """Insert rows chunk by chunk and finalize the history row."""
        chunk_size = self.upload_settings.chunk_size
        strategy = self.upload_settings.insert_strategy
        inserted = 0
        errors: List[str] = []

        try:
            for start in range(0, len(rows), chunk_size):
                chunk = rows[start:start + chunk_size]
                try:
                    inserted += await self.sales.insert_many([row for _, row in chunk])
                except DatabaseError as e:
                    if strategy is InsertStrategy.ABORT:
                        raise PersistenceError(e.message, batch_id=batch_id, rows_inserted=inserted) from e
                    log.warning("Chunk insert failed, retrying row by row", chunk_start=start, error=e.message)
                    chunk_inserted, chunk_errors = await self._insert_rows(chunk)
                    inserted += chunk_inserted
                    errors.extend(chunk_errors)

                await self.history.update_progress(batch_id, inserted)
                log.debug("Chunk persisted", rows_uploaded=inserted, total=len(rows))

            if not errors:
                status = UploadStatus.SUCCESS
            elif inserted:
                status = UploadStatus.PARTIAL
            else:
                status = UploadStatus.FAILED
            await self.history.finalize(batch_id, status, inserted, "; ".join(errors) or None)

        except Exception as e:
            await self._mark_failed(batch_id, inserted, e, log)
            if isinstance(e, PersistenceError):
                raise
            message = e.message if isinstance(e, AppException) else str(e)
            raise PersistenceError(
                f"Failed to persist upload: {message}",
                batch_id=batch_id,
                rows_inserted=inserted,
            ) from e

        return status, inserted, errors

    async def _insert_rows(self, chunk: List[NumberedRow]) -> Tuple[int, List[str]]:
        inserted = 0
        errors: List[str] = []
        for row_number, row in chunk:
            try:
                await self.sales.insert_one(row)
                inserted += 1
            except DatabaseError as e:
                errors.append(f"Row {row_number}: {e.message}")
        return inserted, errors

    async def _mark_failed(self, batch_id: str, inserted: int, error: Exception, log: StructuredLogger) -> None:
        """Best effort: a batch that cannot be marked failed is only logged."""
        message = error.message if isinstance(error, AppException) else str(error)
        try:
            await self.history.finalize(batch_id, UploadStatus.FAILED, inserted, message)
        except Exception as finalize_error:
            log.error("Could not mark upload batch as failed", exc_info=True, error=str(finalize_error))
