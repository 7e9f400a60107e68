import logging
from typing import Generic, TypeVar, Type, Optional, List, Dict, Any, Union

from sqlmodel import SQLModel, Session, select, func
from sqlalchemy.exc import SQLAlchemyError

from ....core.exceptions import DatabaseError

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=SQLModel)


def describe_error(error: Exception) -> str:
    """Driver message of a SQLAlchemy error, without the SQL echo."""
    return str(getattr(error, "orig", None) or error)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class with common CRUD operations.

    Writes are committed immediately: ingestion relies on every chunk and
    every status change being durable before the next step starts.
    """

    def __init__(self, model: Type[ModelType], session: Session):
        self.model = model
        self.session = session

    def _commit(self, operation: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to {operation} {self.model.__name__}: {e}")
            raise DatabaseError(describe_error(e), operation=operation)

    async def create(self, obj_in: Union[ModelType, Dict[str, Any]]) -> ModelType:
        """
        Create a new record.

        Args:
            obj_in: Model instance or dictionary with field values

        Returns:
            Created model instance

        Raises:
            DatabaseError: If creation fails
        """
        db_obj = self.model(**obj_in) if isinstance(obj_in, dict) else obj_in
        try:
            self.session.add(db_obj)
            self._commit("create")
            self.session.refresh(db_obj)

            logger.debug(f"Created {self.model.__name__} with ID: {db_obj.id}")
            return db_obj

        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to create {self.model.__name__}: {e}")
            raise DatabaseError(f"Failed to create {self.model.__name__}: {describe_error(e)}", operation="create")

    async def get_multi(
        self,
        *,
        skip: int = 0,
        limit: int = 100,
        order_by: Optional[str] = None,
        descending: bool = False,
        **filters
    ) -> List[ModelType]:
        """
        Get multiple records with pagination and filtering.

        Args:
            skip: Number of records to skip
            limit: Maximum number of records to return
            order_by: Field name for ordering
            descending: Reverse the ordering
            **filters: Field filters, None values are ignored

        Returns:
            List of model instances
        """
        try:
            statement = select(self.model)

            for field, value in filters.items():
                if hasattr(self.model, field) and value is not None:
                    statement = statement.where(getattr(self.model, field) == value)

            if order_by and hasattr(self.model, order_by):
                column = getattr(self.model, order_by)
                statement = statement.order_by(column.desc() if descending else column)

            statement = statement.offset(skip).limit(limit)

            return list(self.session.exec(statement).all())

        except SQLAlchemyError as e:
            logger.error(f"Failed to get multiple {self.model.__name__}: {e}")
            raise DatabaseError(f"Failed to get {self.model.__name__} list: {describe_error(e)}", operation="get_multi")

    async def count(self, **filters) -> int:
        """Count records with optional filtering."""
        try:
            statement = select(func.count()).select_from(self.model)

            for field, value in filters.items():
                if hasattr(self.model, field) and value is not None:
                    statement = statement.where(getattr(self.model, field) == value)

            return self.session.exec(statement).one()

        except SQLAlchemyError as e:
            logger.error(f"Failed to count {self.model.__name__}: {e}")
            raise DatabaseError(f"Failed to count {self.model.__name__}: {describe_error(e)}", operation="count")
