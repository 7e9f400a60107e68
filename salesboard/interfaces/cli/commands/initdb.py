from salesboard.core.exceptions import DatabaseError, MappingError
from salesboard.infrastructure.db.connection import database_manager
from salesboard.infrastructure.db.repositories.sales_repository import check_column_mapping

from .base import BaseCommand


class Command(BaseCommand):
    description = "Create the sales_data and upload_history tables"

    def add_arguments(self, parser):
        parser.add_argument(
            "--drop",
            action="store_true",
            help="Drop existing tables first (destroys all data)",
        )

    def handle(self, drop: bool = False, **kwargs):
        try:
            check_column_mapping()
            if drop:
                self.print_warning("Dropping existing tables...")
                database_manager.drop_tables()
            database_manager.create_tables()
        except MappingError as e:
            self.print_error(str(e))
            return 1
        except DatabaseError as e:
            self.print_error(e.message)
            return 1

        self.print_success(f"Database ready: {database_manager.get_engine().url.render_as_string(hide_password=True)}")
        return 0
