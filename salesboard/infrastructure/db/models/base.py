from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime, func


def utc_now() -> datetime:
    """Timezone-aware current UTC time for stored timestamps."""
    return datetime.now(timezone.utc)


class BaseModel(SQLModel):
    """
    Base model with a UUID primary key.
    """

    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        index=True,
        nullable=False,
        description="Unique identifier"
    )


class TimestampMixin(SQLModel):
    """
    Mixin for models that need a creation timestamp.

    The server default covers Core bulk inserts, which skip
    ``default_factory``.
    """

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": func.now()},
        nullable=False,
        description="Record creation timestamp"
    )
