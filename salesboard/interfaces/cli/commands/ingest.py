import asyncio
import mimetypes
from pathlib import Path

from salesboard.core.enums import Entity
from salesboard.core.exceptions import AppException
from salesboard.infrastructure.db.connection import database_manager
from salesboard.services.ingestion_service import IngestionService, UploadPayload

from .base import BaseCommand


class Command(BaseCommand):
    description = "Load a local Excel workbook through the upload pipeline"

    def add_arguments(self, parser):
        parser.add_argument("path", type=Path, help="Path to the .xlsx or .xls file")
        parser.add_argument(
            "--entity",
            required=True,
            choices=Entity.values(),
            help="Entity the rows belong to",
        )

    def handle(self, path: Path, entity: str, **kwargs):
        if not path.is_file():
            self.print_error(f"File not found: {path}")
            return 1

        content_type, _ = mimetypes.guess_type(path.name)
        upload = UploadPayload(file_name=path.name, content=path.read_bytes(), content_type=content_type)

        self.print_info(f"Ingesting {path.name} for {entity}...")
        try:
            with database_manager.get_session() as session:
                result = asyncio.run(IngestionService(session).ingest(upload, entity))
        except AppException as e:
            self.print_error(f"{e.error_code}: {e.message}")
            for key, value in e.details.items():
                self.print_info(f"  {key}: {value}")
            return 1

        for warning in result.warnings:
            self.print_warning(warning)
        for error in result.errors:
            self.print_error(error)

        summary = (
            f"Batch {result.batch_id}: {result.rows_inserted}/{result.total_rows} rows inserted, "
            f"{result.rows_skipped} empty rows skipped ({result.status.value})"
        )
        if result.errors:
            self.print_warning(summary)
        else:
            self.print_success(summary)
        return 0
