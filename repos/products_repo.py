"""Repository for Product database operations."""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.product import Product


async def get_by_id(
    session: AsyncSession,
    *,
    product_id: UUID,
    include_deleted: bool = False,
) -> Product | None:
    """
    Get a product by ID.

    Args:
        session: Database session
        product_id: Product ID to fetch
        include_deleted: If True, include soft-deleted products

    Returns:
        Product if found, None otherwise
    """
    query = select(Product).where(Product.id == product_id)

    if not include_deleted:
        # Filter out soft-deleted records
        query = query.where(Product.deleted_at.is_(None))

    result = await session.execute(query)
    return result.scalar_one_or_none()


async def list_all(
    session: AsyncSession,
    *,
    include_deleted: bool = False,
) -> list[Product]:
    """
    List products, oldest first.

    Args:
        session: Database session
        include_deleted: If True, include soft-deleted products

    Returns:
        List of products
    """
    query = select(Product).order_by(Product.created_at, Product.id)

    if not include_deleted:
        query = query.where(Product.deleted_at.is_(None))

    result = await session.execute(query)
    return list(result.scalars().all())


async def list_by_categories(
    session: AsyncSession,
    *,
    category_ids: list[UUID],
) -> list[Product]:
    """List live products filed directly under any of the given categories."""
    if not category_ids:
        return []

    result = await session.execute(
        select(Product)
        .where(
            Product.category_id.in_(category_ids),
            Product.deleted_at.is_(None),
        )
        .order_by(Product.id)
    )
    return list(result.scalars().all())


async def delete(session: AsyncSession, product: Product) -> None:
    """Permanently delete a product row."""
    await session.delete(product)
    await session.flush()


async def detach_from_category(session: AsyncSession, *, category_id: UUID) -> int:
    """Unfile every product (live or soft-deleted) from a category."""
    result = await session.execute(
        update(Product).where(Product.category_id == category_id).values(category_id=None)
    )
    return result.rowcount
