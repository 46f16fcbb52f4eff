"""create_slug_and_url_tables

Revision ID: 4f2a9c1d7e30
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f2a9c1d7e30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE = sa.text("status = 'active'")


def upgrade() -> None:
    """Create slugs, urls and the catalog tables."""

    op.create_table('categories',
        sa.Column('id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('parent_id', sa.Uuid(as_uuid=True), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('type', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['parent_id'], ['categories.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        comment='Nested catalog categories'
    )
    op.create_index('ix_categories_id', 'categories', ['id'], unique=False)
    op.create_index('ix_categories_parent_id', 'categories', ['parent_id'], unique=False)

    op.create_table('products',
        sa.Column('id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('category_id', sa.Uuid(as_uuid=True), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        comment='Catalog products; soft delete keeps their url history'
    )
    op.create_index('ix_products_id', 'products', ['id'], unique=False)
    op.create_index('ix_products_category_id', 'products', ['category_id'], unique=False)
    op.create_index('ix_products_deleted_at', 'products', ['deleted_at'], unique=False)

    op.create_table('slugs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('slugable_type', sa.String(length=100), nullable=False),
        sa.Column('slugable_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('collection', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        comment='Current slug per urlable entity; retired rows belong to soft-deleted entities'
    )
    op.create_index('ix_slugs_slug', 'slugs', ['slug'], unique=False)
    op.create_index('ix_slugs_collection', 'slugs', ['collection'], unique=False)
    op.create_index('ix_slugs_status', 'slugs', ['status'], unique=False)
    op.create_index('ix_slugs_slugable', 'slugs', ['slugable_type', 'slugable_id'], unique=False)
    # Partial unique indexes: only active rows compete
    op.create_index(
        'ux_slugs_slugable_active', 'slugs', ['slugable_type', 'slugable_id'],
        unique=True, postgresql_where=ACTIVE, sqlite_where=ACTIVE,
    )
    op.create_index(
        'ux_slugs_type_slug_collection_active', 'slugs',
        ['slugable_type', 'slug', sa.text("coalesce(collection, '')")],
        unique=True, postgresql_where=ACTIVE, sqlite_where=ACTIVE,
    )

    op.create_table('urls',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('urlable_type', sa.String(length=100), nullable=False),
        sa.Column('urlable_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('full_url', sa.String(length=2000), nullable=False),
        sa.Column('collection', sa.String(length=255), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('version >= 1', name='ck_urls_version_positive'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('urlable_type', 'urlable_id', 'version', name='uq_urls_urlable_version'),
        comment='Versioned full URLs; retired rows are kept for 301 redirects'
    )
    op.create_index('ix_urls_full_url', 'urls', ['full_url'], unique=False)
    op.create_index('ix_urls_collection', 'urls', ['collection'], unique=False)
    op.create_index('ix_urls_status', 'urls', ['status'], unique=False)
    op.create_index('ix_urls_urlable', 'urls', ['urlable_type', 'urlable_id'], unique=False)
    op.create_index(
        'ux_urls_urlable_active', 'urls', ['urlable_type', 'urlable_id'],
        unique=True, postgresql_where=ACTIVE, sqlite_where=ACTIVE,
    )
    op.create_index(
        'ux_urls_full_url_active', 'urls', ['full_url'],
        unique=True, postgresql_where=ACTIVE, sqlite_where=ACTIVE,
    )


def downgrade() -> None:
    """Drop slugs, urls and the catalog tables."""
    op.drop_index('ux_urls_full_url_active', table_name='urls')
    op.drop_index('ux_urls_urlable_active', table_name='urls')
    op.drop_index('ix_urls_urlable', table_name='urls')
    op.drop_index('ix_urls_status', table_name='urls')
    op.drop_index('ix_urls_collection', table_name='urls')
    op.drop_index('ix_urls_full_url', table_name='urls')
    op.drop_table('urls')

    op.drop_index('ux_slugs_type_slug_collection_active', table_name='slugs')
    op.drop_index('ux_slugs_slugable_active', table_name='slugs')
    op.drop_index('ix_slugs_slugable', table_name='slugs')
    op.drop_index('ix_slugs_status', table_name='slugs')
    op.drop_index('ix_slugs_collection', table_name='slugs')
    op.drop_index('ix_slugs_slug', table_name='slugs')
    op.drop_table('slugs')

    op.drop_index('ix_products_deleted_at', table_name='products')
    op.drop_index('ix_products_category_id', table_name='products')
    op.drop_index('ix_products_id', table_name='products')
    op.drop_table('products')

    op.drop_index('ix_categories_parent_id', table_name='categories')
    op.drop_index('ix_categories_id', table_name='categories')
    op.drop_table('categories')
