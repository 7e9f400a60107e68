import traceback
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError as RequestSchemaError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from salesboard.core.config import Settings, get_settings
from salesboard.core.exceptions import AppException
from salesboard.core.logging import get_logger, setup_logging
from salesboard.infrastructure.db.connection import (
    DatabaseManager,
    database_manager,
    get_database_manager,
)
from salesboard.infrastructure.db.repositories.sales_repository import check_column_mapping
from salesboard.interfaces.http.middleware.logging import LoggingMiddleware
from salesboard.interfaces.http.routes import api_router
from salesboard.schemas.base import HealthCheckSchema

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("Starting application...")
    try:
        check_column_mapping()
        database_manager.create_tables()
        yield
    finally:
        database_manager.dispose()
        logger.info("Application shut down")


def error_content(
    code: str,
    message: str,
    details: Optional[dict] = None,
    exc: Optional[BaseException] = None,
) -> dict:
    """Uniform error body; a traceback is attached when ``exc`` is given."""
    error = {"code": code, "message": message, "details": details or {}}
    if exc is not None:
        error["traceback"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return jsonable_encoder({"success": False, "error": error})


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Sales spreadsheet ingestion and dashboard API",
        version=settings.VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    app.add_middleware(LoggingMiddleware)

    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        """Handle application-specific exceptions."""
        if exc.status_code >= 500:
            logger.error(f"{exc.error_code} on {request.url.path}: {exc.message}")
        else:
            logger.warning(f"{exc.error_code} on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=error_content(
                exc.error_code,
                exc.message,
                exc.details,
                exc if exc.status_code >= 500 and not settings.is_production else None,
            ),
        )

    @app.exception_handler(RequestSchemaError)
    async def request_schema_error_handler(request: Request, exc: RequestSchemaError) -> JSONResponse:
        """Malformed query or form parameters."""
        return JSONResponse(
            status_code=422,
            content=error_content(
                "VALIDATION_ERROR",
                "Invalid request parameters",
                {"errors": [{"loc": e.get("loc"), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()]},
            ),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle general exceptions."""
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
        if settings.is_production:
            content = error_content("INTERNAL_SERVER_ERROR", "Internal server error occurred")
        else:
            content = error_content("INTERNAL_SERVER_ERROR", str(exc), exc=exc)
        return JSONResponse(status_code=500, content=content)

    @app.get("/health", response_model=HealthCheckSchema)
    async def health_check(db: DatabaseManager = Depends(get_database_manager)) -> HealthCheckSchema:
        """Health check endpoint."""
        database_ok = db.health_check()
        return HealthCheckSchema(
            status="healthy" if database_ok else "degraded",
            version=settings.VERSION,
            environment=settings.ENVIRONMENT,
            database=database_ok,
        )

    app.include_router(api_router, prefix="/api")

    return app


app = create_application()


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "salesboard.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    main()
