"""Category model - nested catalog node that owns a URL segment."""

from datetime import datetime, UTC
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict
import sqlalchemy as sa
from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from db import Base


class Category(Base):
    """Category ORM model - categories nest through parent_id (no soft delete)."""

    __tablename__ = "categories"

    id: Mapped[UUID] = mapped_column(
        sa.Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
        index=True,
    )
    parent_id: Mapped[UUID | None] = mapped_column(
        sa.Uuid(as_uuid=True),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    # Falls back as the url collection when none is given explicitly
    type: Mapped[str | None] = mapped_column(String(100), nullable=True)
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

    __table_args__ = (
        {"comment": "Nested catalog categories"},
    )


# Pydantic schemas
class CategoryBase(BaseModel):
    """Base category schema."""

    title: str
    status: str = "draft"
    type: str | None = None
    parent_id: UUID | None = None


class CategoryCreate(CategoryBase):
    """Schema for creating a category.

    slug is raw input; it is normalized server-side before it is stored.
    """

    slug: str | None = None
    collection: str | None = None


class CategoryUpdate(BaseModel):
    """Schema for updating a category. All fields are optional."""

    title: str | None = None
    status: str | None = None
    type: str | None = None
    parent_id: UUID | None = None
    slug: str | None = None
    collection: str | None = None


class CategoryResponse(CategoryBase):
    """Schema for category response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    updated_at: datetime | None = None
    slug: str | None = None
    collection: str | None = None
    full_url: str | None = None
    url_version: int | None = None
