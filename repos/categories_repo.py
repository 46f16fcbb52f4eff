"""Repository for Category database operations."""

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.category import Category


async def get_by_id(session: AsyncSession, *, category_id: UUID) -> Category | None:
    """
    Get a category by ID.

    Args:
        session: Database session
        category_id: Category ID to fetch

    Returns:
        Category if found, None otherwise
    """
    result = await session.execute(select(Category).where(Category.id == category_id))
    return result.scalar_one_or_none()


async def list_all(session: AsyncSession) -> list[Category]:
    """List all categories, oldest first."""
    result = await session.execute(select(Category).order_by(Category.created_at, Category.id))
    return list(result.scalars().all())


async def list_children(session: AsyncSession, *, parent_ids: list[UUID]) -> list[Category]:
    """
    List the direct children of any of the given categories.

    Args:
        session: Database session
        parent_ids: Parent category IDs

    Returns:
        List of child categories
    """
    if not parent_ids:
        return []

    result = await session.execute(
        select(Category).where(Category.parent_id.in_(parent_ids)).order_by(Category.id)
    )
    return list(result.scalars().all())


async def get_ancestors(session: AsyncSession, category: Category) -> list[Category]:
    """
    Walk up the parent chain of a category.

    Returns:
        Ancestors ordered root first, excluding the category itself
    """
    ancestors: list[Category] = []
    seen = {category.id}
    parent_id = category.parent_id

    while parent_id is not None and parent_id not in seen:
        parent = await get_by_id(session, category_id=parent_id)
        if parent is None:
            break
        ancestors.append(parent)
        seen.add(parent.id)
        parent_id = parent.parent_id

    ancestors.reverse()
    return ancestors


async def delete(session: AsyncSession, category: Category) -> None:
    """Permanently delete a category."""
    await session.delete(category)
    await session.flush()


async def detach_children(session: AsyncSession, *, parent_id: UUID) -> int:
    """Turn the direct children of a category into root categories."""
    result = await session.execute(
        update(Category).where(Category.parent_id == parent_id).values(parent_id=None)
    )
    return result.rowcount
