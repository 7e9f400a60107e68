from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, DateTime, Text

from salesboard.core.enums import Entity, UploadStatus
from salesboard.infrastructure.db.models.base import BaseModel, utc_now


class UploadHistory(BaseModel, table=True):
    """
    Audit record of one upload batch.

    Created as ``processing`` before the first row is written and moved
    to exactly one terminal status afterwards. Never deleted.
    """
    __tablename__ = "upload_history"

    batch_id: str = Field(
        unique=True,
        index=True,
        max_length=36,
        description="Batch identifier stamped on every inserted sales row"
    )

    entity: str = Field(
        max_length=20,
        index=True,
        description="Business unit the workbook belongs to"
    )

    file_name: str = Field(
        max_length=255,
        description="Original name of the uploaded file"
    )

    file_path: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Storage path; uploads are processed in memory so this stays empty"
    )

    file_size: Optional[int] = Field(
        default=None,
        description="Size of the file in bytes"
    )

    total_rows: int = Field(
        default=0,
        description="Usable rows produced by the transformer"
    )

    rows_uploaded: int = Field(
        default=0,
        description="Rows persisted so far"
    )

    rows_skipped: int = Field(
        default=0,
        description="Empty rows dropped before persisting"
    )

    status: str = Field(
        default=UploadStatus.PROCESSING.value,
        max_length=20,
        description="Current status of the batch"
    )

    error_message: Optional[str] = Field(
        default=None,
        sa_column=Column(Text),
        description="Joined row errors or the failure reason"
    )

    uploaded_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        index=True,
        description="When the batch was opened"
    )

    completed_at: Optional[datetime] = Field(
        default=None,
        sa_type=DateTime(timezone=True),
        description="When the batch reached a terminal status"
    )


class UploadHistoryRead(SQLModel):
    """Schema for reading upload history entries"""
    batch_id: str
    entity: Entity
    file_name: str
    file_path: Optional[str]
    file_size: Optional[int]
    total_rows: int
    rows_uploaded: int
    rows_skipped: int
    status: UploadStatus
    error_message: Optional[str]
    uploaded_at: datetime
    completed_at: Optional[datetime]
