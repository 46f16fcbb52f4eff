"""Url model - append-only, versioned history of an entity's full URL."""

from datetime import datetime, UTC
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict
import sqlalchemy as sa
from sqlalchemy import DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db import Base
from models.record_status import ACTIVE_ROW_PREDICATE, RecordStatus


class Url(Base):
    """Url ORM model - one row per full URL version of a urlable entity.

    Exactly one ACTIVE row per (urlable_type, urlable_id); RETIRED rows are
    legacy versions used to answer old links with a permanent redirect.
    """

    __tablename__ = "urls"

    # Monotonic id doubles as internal recency for legacy lookups
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    urlable_type: Mapped[str] = mapped_column(String(100), nullable=False)
    urlable_id: Mapped[UUID] = mapped_column(sa.Uuid(as_uuid=True), nullable=False)
    full_url: Mapped[str] = mapped_column(String(2000), nullable=False, index=True)
    collection: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
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
        UniqueConstraint("urlable_type", "urlable_id", "version", name="uq_urls_urlable_version"),
        sa.CheckConstraint("version >= 1", name="ck_urls_version_positive"),
        # At most one active version per entity
        Index(
            "ux_urls_urlable_active",
            "urlable_type",
            "urlable_id",
            unique=True,
            postgresql_where=sa.text(ACTIVE_ROW_PREDICATE),
            sqlite_where=sa.text(ACTIVE_ROW_PREDICATE),
        ),
        # No two live entities (of any type) share a full URL
        Index(
            "ux_urls_full_url_active",
            "full_url",
            unique=True,
            postgresql_where=sa.text(ACTIVE_ROW_PREDICATE),
            sqlite_where=sa.text(ACTIVE_ROW_PREDICATE),
        ),
        Index("ix_urls_urlable", "urlable_type", "urlable_id"),
        {"comment": "Versioned full URLs; retired rows are kept for 301 redirects"},
    )

    @property
    def is_active(self) -> bool:
        return self.status == RecordStatus.ACTIVE.value


# Pydantic schemas
class UrlResponse(BaseModel):
    """Schema for url version response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    urlable_type: str
    urlable_id: UUID
    full_url: str
    collection: str | None = None
    version: int
    status: str
    created_at: datetime
    updated_at: datetime | None = None
    deleted_at: datetime | None = None


class UrlOwnerResponse(BaseModel):
    """Schema for the owner of an active full URL."""

    model_config = ConfigDict(from_attributes=True)

    urlable_type: str
    urlable_id: UUID
    full_url: str
    collection: str | None = None
    version: int
    urlable: Any | None = None


class UrlRedirectResponse(BaseModel):
    """Schema for a legacy full URL and its current canonical target."""

    requested: str
    target: str


class UrlRebuildResponse(BaseModel):
    """Schema for bulk url rebuild results."""

    model_config = ConfigDict(from_attributes=True)

    entity_type: str
    processed: int
    changed: int
    failed: int
