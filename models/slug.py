"""Slug model - the single current slug (+ collection) of a urlable entity."""

from datetime import datetime, UTC
from uuid import UUID

from pydantic import BaseModel, ConfigDict
import sqlalchemy as sa
from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from db import Base
from models.record_status import ACTIVE_ROW_PREDICATE, RecordStatus


class Slug(Base):
    """Slug ORM model - one row per (slugable_type, slugable_id)."""

    __tablename__ = "slugs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slugable_type: Mapped[str] = mapped_column(String(100), nullable=False)
    slugable_id: Mapped[UUID] = mapped_column(sa.Uuid(as_uuid=True), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    collection: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=RecordStatus.ACTIVE.value,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=lambda: datetime.now(UTC),
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    __table_args__ = (
        # One active slug row per entity
        Index(
            "ux_slugs_slugable_active",
            "slugable_type",
            "slugable_id",
            unique=True,
            postgresql_where=sa.text(ACTIVE_ROW_PREDICATE),
            sqlite_where=sa.text(ACTIVE_ROW_PREDICATE),
        ),
        Index("ix_slugs_slugable", "slugable_type", "slugable_id"),
        {"comment": "Current slug per urlable entity; retired rows belong to soft-deleted entities"},
    )

    @property
    def is_active(self) -> bool:
        return self.status == RecordStatus.ACTIVE.value


# (type, slug, collection) unique among active rows; NULL collection is its own scope
Index(
    "ux_slugs_type_slug_collection_active",
    Slug.slugable_type,
    Slug.slug,
    sa.func.coalesce(Slug.collection, ""),
    unique=True,
    postgresql_where=sa.text(ACTIVE_ROW_PREDICATE),
    sqlite_where=sa.text(ACTIVE_ROW_PREDICATE),
)


# Pydantic schemas
class SlugResponse(BaseModel):
    """Schema for slug response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    slugable_type: str
    slugable_id: UUID
    slug: str
    collection: str | None = None
    status: str
    created_at: datetime
    updated_at: datetime | None = None
    deleted_at: datetime | None = None


class SlugAvailabilityResponse(BaseModel):
    """Schema for the slug availability check."""

    slugable_type: str
    slug: str | None
    collection: str | None = None
    available: bool
