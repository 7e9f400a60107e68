import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import insert, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from salesboard.core.exceptions import DatabaseError
from salesboard.infrastructure.db.models.sales_data import SalesData
from salesboard.infrastructure.db.repositories.base import BaseRepository, describe_error
from salesboard.transformers.column_mapping import ColumnMappingTable, get_column_mapping

logger = logging.getLogger(__name__)

MISSING_TABLE_HINT = (
    f"The '{SalesData.__tablename__}' table does not exist. "
    "Run 'python manage.py initdb' to create the database schema."
)


def check_column_mapping(table: Optional[ColumnMappingTable] = None) -> None:
    """Raise MappingError when a mapped field has no sales_data column."""
    (table or get_column_mapping()).check_fields(SalesData.__table__.columns.keys())


class SalesRepository(BaseRepository[SalesData]):
    """Writes canonical sales rows to the sales_data table."""

    def __init__(self, session: Session):
        super().__init__(SalesData, session)

    def table_exists(self) -> bool:
        return inspect(self.session.get_bind()).has_table(SalesData.__tablename__)

    async def insert_many(self, rows: List[Dict[str, Any]]) -> int:
        """
        Insert a chunk of rows in a single statement.

        The chunk is committed as a unit; on failure nothing from it is
        kept and DatabaseError carries the driver's message.

        Returns:
            Number of rows inserted
        """
        if not rows:
            return 0
        try:
            self.session.exec(insert(SalesData), params=rows)
            self.session.commit()

        except SQLAlchemyError as e:
            self.session.rollback()
            logger.warning(f"Chunk insert of {len(rows)} rows failed: {describe_error(e)}")
            raise DatabaseError(describe_error(e), operation="insert_many")

        return len(rows)

    async def insert_one(self, row: Dict[str, Any]) -> None:
        """Insert and commit a single row."""
        try:
            self.session.exec(insert(SalesData).values(**row))
            self.session.commit()

        except SQLAlchemyError as e:
            self.session.rollback()
            raise DatabaseError(describe_error(e), operation="insert_one")

    async def count_by_batch(self, batch_id: str) -> int:
        return await self.count(upload_batch_id=batch_id)
