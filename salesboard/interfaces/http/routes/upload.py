from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlmodel import Session

from salesboard.core.config import Settings, get_settings
from salesboard.infrastructure.db.connection import get_session_dependency
from salesboard.infrastructure.db.models.upload_history import UploadHistoryRead
from salesboard.schemas.upload import (
    UploadHistoryDetailResponse,
    UploadHistoryListResponse,
    UploadResponse,
)
from salesboard.services.history_service import UploadHistoryService
from salesboard.services.ingestion_service import IngestionService, UploadPayload

router = APIRouter()


@router.post("", response_model=UploadResponse)
async def upload_sales_file(
    file: Optional[UploadFile] = File(None, description="Excel workbook (.xlsx or .xls)"),
    entity: Optional[str] = Form(None, description="Entity the rows belong to"),
    db: Session = Depends(get_session_dependency),
    settings: Settings = Depends(get_settings),
) -> UploadResponse:
    """Upload a sales workbook and load its rows"""
    upload = None
    if file is not None:
        upload = UploadPayload(
            file_name=file.filename,
            content=await file.read(),
            content_type=file.content_type,
        )

    service = IngestionService(db, settings=settings)
    result = await service.ingest(upload, entity)
    return UploadResponse.from_result(result)


@router.get("/history", response_model=UploadHistoryListResponse)
async def list_upload_history(
    entity: Optional[str] = Query(None, description="Filter by entity, 'All' for every entity"),
    limit: Optional[int] = Query(None, description="Number of batches to return (1-20)"),
    db: Session = Depends(get_session_dependency),
    settings: Settings = Depends(get_settings),
) -> UploadHistoryListResponse:
    """List the most recent upload batches, newest first"""
    service = UploadHistoryService(db, settings=settings)
    history = await service.list_recent(entity=entity, limit=limit)
    return UploadHistoryListResponse(
        message=f"Found {len(history)} uploads",
        history=[UploadHistoryRead.model_validate(item) for item in history],
    )


@router.get("/history/{batch_id}", response_model=UploadHistoryDetailResponse)
async def get_upload_batch(
    batch_id: str,
    db: Session = Depends(get_session_dependency),
    settings: Settings = Depends(get_settings),
) -> UploadHistoryDetailResponse:
    """Get one upload batch by its batch id"""
    service = UploadHistoryService(db, settings=settings)
    history = await service.get(batch_id)
    return UploadHistoryDetailResponse(
        message="Upload batch found",
        upload=UploadHistoryRead.model_validate(history),
    )
