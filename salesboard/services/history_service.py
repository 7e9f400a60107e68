from typing import List, Optional

from sqlmodel import Session

from salesboard.core.config import Settings, get_settings
from salesboard.core.enums import Entity
from salesboard.core.exceptions import NotFoundError, RequestValidationError
from salesboard.infrastructure.db.models.upload_history import UploadHistory
from salesboard.infrastructure.db.repositories.upload_history_repository import (
    UploadHistoryRepository,
)
from salesboard.services.base import BaseService


class UploadHistoryService(BaseService):
    """Read access to the upload audit trail."""

    def __init__(self, db_session: Session, settings: Optional[Settings] = None):
        super().__init__(db_session)
        self.settings = settings or get_settings()
        self.repository = UploadHistoryRepository(db_session)

    def get_service_name(self) -> str:
        return "upload_history"

    async def list_recent(self, entity: Optional[str] = None, limit: Optional[int] = None) -> List[UploadHistory]:
        """
        Most recent batches, newest first.

        Args:
            entity: Restrict to one entity; None, empty or "All" lists every entity
            limit: Number of batches, 1 up to the configured maximum

        Raises:
            RequestValidationError: On an unknown entity or a limit out of range
        """
        max_limit = self.settings.history_max_limit
        if limit is None:
            limit = max_limit
        if not 1 <= limit <= max_limit:
            raise RequestValidationError(
                f"limit must be between 1 and {max_limit}", field="limit", value=limit
            )

        entity = (entity or "").strip() or None
        if entity == "All":
            entity = None
        if entity is not None and entity not in Entity.values():
            raise RequestValidationError(
                f"Invalid entity. Must be one of: {', '.join(Entity.values())}",
                field="entity",
                value=entity,
            )

        self.log_operation("list_recent", {"entity": entity, "limit": limit})
        return await self.repository.list_recent(entity=entity, limit=limit)

    async def get(self, batch_id: str) -> UploadHistory:
        history = await self.repository.get_by_batch_id(batch_id)
        if history is None:
            raise NotFoundError("Upload batch", batch_id)
        return history
