"""Product model - catalog item addressed under its category's URL."""

from datetime import datetime, UTC
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict
import sqlalchemy as sa
from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from db import Base


class Product(Base):
    """Product ORM model - soft-deletable, optionally filed under a category."""

    __tablename__ = "products"

    id: Mapped[UUID] = mapped_column(
        sa.Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
        index=True,
    )
    category_id: Mapped[UUID | None] = mapped_column(
        sa.Uuid(as_uuid=True),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
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
        index=True,
    )

    __table_args__ = (
        {"comment": "Catalog products; soft delete keeps their url history"},
    )


# Pydantic schemas
class ProductBase(BaseModel):
    """Base product schema."""

    title: str
    category_id: UUID | None = None


class ProductCreate(ProductBase):
    """Schema for creating a product."""

    slug: str | None = None
    collection: str | None = None


class ProductUpdate(BaseModel):
    """Schema for updating a product. All fields are optional."""

    title: str | None = None
    category_id: UUID | None = None
    slug: str | None = None
    collection: str | None = None


class ProductResponse(ProductBase):
    """Schema for product response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    slug: str | None = None
    collection: str | None = None
    full_url: str | None = None
    url_version: int | None = None
