import logging
from contextlib import contextmanager
from typing import Generator, Iterator, Optional

from sqlmodel import create_engine, Session, SQLModel
from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import QueuePool, StaticPool

from ...core.config import Settings, get_settings
from ...core.exceptions import AppException, DatabaseError

logger = logging.getLogger(__name__)

# Import all models here to ensure they're registered with SQLModel.metadata
from . import models  # noqa: E402,F401


class DatabaseManager:
    """
    Database connection manager.

    Owns one synchronous engine and hands out sessions that commit on
    success and roll back on error.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._engine: Optional[Engine] = None

    def _get_database_config(self) -> dict:
        """Get database configuration based on URL."""
        config = {"echo": self.settings.DATABASE_ECHO}

        # SQLite specific configuration
        if self.settings.DATABASE_URL.startswith("sqlite"):
            config["connect_args"] = {"check_same_thread": False}
            if make_url(self.settings.DATABASE_URL).database in (None, "", ":memory:"):
                config["poolclass"] = StaticPool
        else:
            config.update({
                "poolclass": QueuePool,
                "pool_size": self.settings.DATABASE_POOL_SIZE,
                "max_overflow": self.settings.DATABASE_MAX_OVERFLOW,
                "pool_pre_ping": True,
            })

        return config

    def _create_engine(self) -> Engine:
        """Create database engine."""
        try:
            engine = create_engine(self.settings.DATABASE_URL, **self._get_database_config())
            logger.info(f"Database engine created: {engine.url.render_as_string(hide_password=True)}")
            return engine

        except Exception as e:
            logger.error(f"Failed to create database engine: {e}")
            raise DatabaseError(f"Database engine creation failed: {e}", operation="create_engine")

    def get_engine(self) -> Engine:
        """Get or create the database engine."""
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        """Get database session with automatic cleanup."""
        session = Session(self.get_engine())

        try:
            logger.debug(f"Database session created: {id(session)}")
            yield session
            session.commit()
            logger.debug(f"Database session committed: {id(session)}")

        except AppException:
            session.rollback()
            raise

        except Exception as e:
            logger.error(f"Database session error: {e}")
            session.rollback()
            logger.debug(f"Database session rolled back: {id(session)}")
            raise DatabaseError(f"Database operation failed: {e}", operation="session")

        finally:
            session.close()
            logger.debug(f"Database session closed: {id(session)}")

    def create_tables(self) -> None:
        """Create all database tables."""
        logger.info("Creating database tables...")

        try:
            SQLModel.metadata.create_all(bind=self.get_engine())
            logger.info("Database tables created successfully")

        except Exception as e:
            logger.error(f"Failed to create database tables: {e}")
            raise DatabaseError(f"Database table creation failed: {e}", operation="create_tables")

    def drop_tables(self) -> None:
        """Drop all database tables."""
        logger.warning("Dropping all database tables...")

        try:
            SQLModel.metadata.drop_all(bind=self.get_engine())
            logger.warning("All database tables dropped")

        except Exception as e:
            logger.error(f"Failed to drop database tables: {e}")
            raise DatabaseError(f"Database table drop failed: {e}", operation="drop_tables")

    def table_exists(self, table_name: str) -> bool:
        """Check whether a table is present in the connected database."""
        return inspect(self.get_engine()).has_table(table_name)

    def health_check(self) -> bool:
        """Check database health and connectivity."""
        try:
            with self.get_engine().connect() as connection:
                return connection.execute(text("SELECT 1")).scalar() == 1

        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    def dispose(self) -> None:
        """Close pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Database engine disposed")


# Global database manager instance
database_manager = DatabaseManager()


def get_session_dependency() -> Generator[Session, None, None]:
    """FastAPI dependency for getting database session."""
    with database_manager.get_session() as session:
        yield session


def get_database_manager() -> DatabaseManager:
    """FastAPI dependency for the shared database manager."""
    return database_manager
