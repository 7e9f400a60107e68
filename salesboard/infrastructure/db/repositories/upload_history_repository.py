import logging
from typing import List, Optional

from sqlmodel import Session, select

from salesboard.core.enums import UploadStatus
from salesboard.infrastructure.db.models.base import utc_now
from salesboard.infrastructure.db.models.upload_history import UploadHistory
from salesboard.infrastructure.db.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class UploadHistoryRepository(BaseRepository[UploadHistory]):
    """
    Persists the lifecycle of upload batches.

    The repository does not enforce transitions; the ingestion service
    opens a batch, reports progress and finalizes it exactly once.
    """

    def __init__(self, session: Session):
        super().__init__(UploadHistory, session)

    async def open_batch(
        self,
        batch_id: str,
        entity: str,
        file_name: str,
        file_size: Optional[int] = None,
        total_rows: int = 0,
        rows_skipped: int = 0,
    ) -> UploadHistory:
        """Create the history row in ``processing`` state."""
        return await self.create({
            "batch_id": batch_id,
            "entity": entity,
            "file_name": file_name,
            "file_path": None,
            "file_size": file_size,
            "total_rows": total_rows,
            "rows_skipped": rows_skipped,
            "rows_uploaded": 0,
            "status": UploadStatus.PROCESSING.value,
        })

    async def get_by_batch_id(self, batch_id: str) -> Optional[UploadHistory]:
        statement = select(UploadHistory).where(UploadHistory.batch_id == batch_id)
        return self.session.exec(statement).first()

    async def _require(self, batch_id: str) -> UploadHistory:
        history = await self.get_by_batch_id(batch_id)
        if history is None:
            # Only reachable if the row was removed behind our back
            raise LookupError(f"Upload batch {batch_id} not found")
        return history

    async def update_progress(self, batch_id: str, rows_uploaded: int) -> UploadHistory:
        """Record how many rows of the batch are persisted so far."""
        history = await self._require(batch_id)
        history.rows_uploaded = rows_uploaded
        self.session.add(history)
        self._commit("update_progress")
        return history

    async def finalize(
        self,
        batch_id: str,
        status: UploadStatus,
        rows_uploaded: int,
        error_message: Optional[str] = None,
    ) -> UploadHistory:
        """Move the batch to a terminal status."""
        history = await self._require(batch_id)
        history.status = status.value
        history.rows_uploaded = rows_uploaded
        history.error_message = error_message
        history.completed_at = utc_now()
        self.session.add(history)
        self._commit("finalize")
        logger.debug(f"Upload batch {batch_id} finalized as {status.value}")
        return history

    async def list_recent(self, entity: Optional[str] = None, limit: int = 20) -> List[UploadHistory]:
        """Most recent batches first, optionally for one entity."""
        return await self.get_multi(
            limit=limit,
            order_by="uploaded_at",
            descending=True,
            entity=entity,
        )
