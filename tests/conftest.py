"""Shared fixtures: in-memory database, app client and workbook builder."""

from __future__ import annotations

from io import BytesIO
from typing import Any, Callable, Iterator, Optional, Sequence

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from salesboard.core.config import Settings, UploadSettings, get_settings
from salesboard.infrastructure.db import models  # noqa: F401
from salesboard.infrastructure.db.connection import (
    DatabaseManager,
    get_database_manager,
    get_session_dependency,
)
from salesboard.main import create_application

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

WorkbookFactory = Callable[..., bytes]


def build_workbook(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(list(headers))
    for row in rows:
        sheet.append(list(row))
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_workbook() -> WorkbookFactory:
    return build_workbook


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    def _make(**upload_overrides: Any) -> Settings:
        return Settings(
            DATABASE_URL="sqlite://",
            ENVIRONMENT="test",
            upload=UploadSettings(**upload_overrides),
        )
    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


def _memory_engine() -> Engine:
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = _memory_engine()
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def bare_engine() -> Iterator[Engine]:
    """Engine without any tables."""
    engine = _memory_engine()
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine) -> Iterator[Session]:
    with Session(engine) as session:
        yield session


def make_client(session: Session, settings: Settings, manager: Optional[DatabaseManager] = None) -> TestClient:
    app = create_application(settings)

    def override_session() -> Iterator[Session]:
        yield session

    app.dependency_overrides[get_session_dependency] = override_session
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_database_manager] = lambda: manager or DatabaseManager(settings)
    return TestClient(app)


@pytest.fixture
def client_factory(session) -> Callable[..., TestClient]:
    def _make(settings: Settings, manager: Optional[DatabaseManager] = None) -> TestClient:
        return make_client(session, settings, manager)
    return _make


@pytest.fixture
def client(session, settings) -> TestClient:
    return make_client(session, settings)
