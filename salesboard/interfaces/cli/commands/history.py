import asyncio

from salesboard.core.exceptions import AppException
from salesboard.infrastructure.db.connection import database_manager
from salesboard.services.history_service import UploadHistoryService

from .base import BaseCommand


class Command(BaseCommand):
    description = "Show the most recent upload batches"

    def add_arguments(self, parser):
        parser.add_argument("--entity", default=None, help="Only batches of this entity")
        parser.add_argument("--limit", type=int, default=None, help="Number of batches (1-20)")

    def handle(self, entity=None, limit=None, **kwargs):
        try:
            with database_manager.get_session() as session:
                history = asyncio.run(UploadHistoryService(session).list_recent(entity=entity, limit=limit))
                rows = [
                    (
                        item.uploaded_at.strftime("%Y-%m-%d %H:%M:%S"),
                        item.entity,
                        item.status,
                        f"{item.rows_uploaded}/{item.total_rows}",
                        item.file_name,
                        item.batch_id,
                    )
                    for item in history
                ]
        except AppException as e:
            self.print_error(e.message)
            return 1

        if not rows:
            self.print_info("No uploads yet")
            return 0

        print(f"{'UPLOADED AT':<20} {'ENTITY':<11} {'STATUS':<11} {'ROWS':<12} {'FILE':<30} BATCH")
        for uploaded_at, entity_name, status, rows_text, file_name, batch_id in rows:
            print(f"{uploaded_at:<20} {entity_name:<11} {status:<11} {rows_text:<12} {file_name[:30]:<30} {batch_id}")
        return 0
