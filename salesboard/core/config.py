from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .enums import InsertStrategy


class UploadSettings(BaseSettings):
    """Spreadsheet upload and ingestion settings."""

    max_file_size: int = Field(default=100 * 1024 * 1024)  # 100MB in bytes
    chunk_size: int = Field(default=500, ge=1)
    max_warnings: int = Field(default=10, ge=0)
    insert_strategy: InsertStrategy = Field(default=InsertStrategy.ROW_FALLBACK)
    allowed_mime_types: List[str] = Field(default=[
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-excel",
        "application/excel",
        "application/x-excel",
    ])
    allowed_extensions: List[str] = Field(default=[".xlsx", ".xls"])

    model_config = SettingsConfigDict(env_prefix="UPLOAD_", env_file=".env", extra="ignore")


class LoggingSettings(BaseSettings):
    level: str = Field(default="INFO")
    json_format: bool = Field(default=False)
    format: str = Field(default="%(asctime)s - %(levelname)s - %(name)s - %(message)s")
    file_path: Optional[str] = Field(default=None)
    max_bytes: int = Field(default=10 * 1024 * 1024)
    backup_count: int = Field(default=5)

    model_config = SettingsConfigDict(env_prefix="LOG_", env_file=".env", extra="ignore")


class Settings(BaseSettings):
    PROJECT_NAME: str = Field(default="Salesboard")
    VERSION: str = Field(default="1.0.0")
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)
    BACKEND_CORS_ORIGINS: List[str] = Field(default=["http://localhost:3000"])

    DATABASE_URL: str = Field(default="sqlite:///./salesboard.db")
    DATABASE_ECHO: bool = Field(default=False)
    DATABASE_POOL_SIZE: int = Field(default=5)
    DATABASE_MAX_OVERFLOW: int = Field(default=10)

    upload: UploadSettings = Field(default_factory=UploadSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    # History endpoint
    history_max_limit: int = Field(default=20)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", env_file_encoding="utf-8")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
