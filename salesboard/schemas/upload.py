from typing import List

from pydantic import Field

from salesboard.core.enums import Entity, UploadStatus
from salesboard.infrastructure.db.models.upload_history import UploadHistoryRead
from salesboard.schemas.base import BaseResponse
from salesboard.services.ingestion_service import IngestionResult


class UploadResponse(BaseResponse):
    """Outcome of one spreadsheet upload."""
    batch_id: str
    entity: Entity
    file_name: str
    status: UploadStatus
    rows_inserted: int = Field(ge=0)
    rows_skipped: int = Field(ge=0)
    total_rows: int = Field(ge=0, description="Usable rows after empty rows were dropped")
    warnings: List[str] = Field(default_factory=list, description="Cells that could not be coerced")
    errors: List[str] = Field(default_factory=list, description="Rows that could not be inserted")

    @classmethod
    def from_result(cls, result: IngestionResult) -> "UploadResponse":
        return cls(
            success=result.success,
            message=result.message,
            batch_id=result.batch_id,
            entity=result.entity,
            file_name=result.file_name,
            status=result.status,
            rows_inserted=result.rows_inserted,
            rows_skipped=result.rows_skipped,
            total_rows=result.total_rows,
            warnings=result.warnings,
            errors=result.errors,
        )


class UploadHistoryListResponse(BaseResponse):
    history: List[UploadHistoryRead]


class UploadHistoryDetailResponse(BaseResponse):
    upload: UploadHistoryRead
