"""Repository for Slug database operations (the slug store)."""

from datetime import datetime, UTC
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.record_status import RecordStatus
from models.slug import Slug


def _where_collection(query, collection: str | None):
    # NULL collection only matches NULL, never "any collection"
    if collection is None:
        return query.where(Slug.collection.is_(None))
    return query.where(Slug.collection == collection)


async def get_for_entity(
    session: AsyncSession,
    *,
    entity_type: str,
    entity_id: UUID,
    include_retired: bool = False,
) -> Slug | None:
    """
    Get the slug row of an entity.

    Args:
        session: Database session
        entity_type: Slugable type discriminator
        entity_id: Slugable entity ID
        include_retired: If True, also return the row of a soft-deleted entity

    Returns:
        Slug if found, None otherwise
    """
    query = select(Slug).where(
        Slug.slugable_type == entity_type,
        Slug.slugable_id == entity_id,
    )

    if not include_retired:
        query = query.where(Slug.status == RecordStatus.ACTIVE.value)

    # Active row first when retired rows are included
    query = query.order_by(Slug.status.asc(), Slug.id.desc()).limit(1)

    result = await session.execute(query)
    return result.scalar_one_or_none()


async def find_active(
    session: AsyncSession,
    *,
    entity_type: str,
    slug: str,
    collection: str | None = None,
) -> Slug | None:
    """
    Find the active slug row owning (entity_type, slug, collection).

    Args:
        session: Database session
        entity_type: Slugable type discriminator
        slug: Normalized slug
        collection: Collection scope; None matches rows with NULL collection only

    Returns:
        Slug if found, None otherwise
    """
    query = select(Slug).where(
        Slug.slugable_type == entity_type,
        Slug.slug == slug,
        Slug.status == RecordStatus.ACTIVE.value,
    )
    query = _where_collection(query, collection)

    result = await session.execute(query.limit(1))
    return result.scalar_one_or_none()


async def find_active_any_collection(
    session: AsyncSession,
    *,
    entity_type: str,
    slug: str,
) -> Slug | None:
    """Find the first active slug row for (entity_type, slug) in any collection."""
    query = (
        select(Slug)
        .where(
            Slug.slugable_type == entity_type,
            Slug.slug == slug,
            Slug.status == RecordStatus.ACTIVE.value,
        )
        .order_by(Slug.id.asc())
        .limit(1)
    )

    result = await session.execute(query)
    return result.scalar_one_or_none()


async def has_active_conflict(
    session: AsyncSession,
    *,
    entity_type: str,
    slug: str,
    collection: str | None,
    exclude_entity_id: UUID | None = None,
) -> bool:
    """
    Check whether another active row already owns (entity_type, slug, collection).

    Args:
        session: Database session
        entity_type: Slugable type discriminator
        slug: Normalized slug
        collection: Collection scope
        exclude_entity_id: Entity to ignore (the one being saved)

    Returns:
        True if a conflicting active row exists
    """
    query = select(Slug.id).where(
        Slug.slugable_type == entity_type,
        Slug.slug == slug,
        Slug.status == RecordStatus.ACTIVE.value,
    )
    query = _where_collection(query, collection)

    if exclude_entity_id is not None:
        query = query.where(Slug.slugable_id != exclude_entity_id)

    result = await session.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def upsert(
    session: AsyncSession,
    *,
    entity_type: str,
    entity_id: UUID,
    slug: str | None,
    collection: str | None,
) -> Slug | None:
    """
    Create or replace the single active slug row of an entity.

    A missing slug keeps the stored one (collection-only update). Nothing is
    written when both values are unset, or when there is no row yet and no slug.

    Args:
        session: Database session
        entity_type: Slugable type discriminator
        entity_id: Slugable entity ID
        slug: Normalized slug (or None)
        collection: Resolved collection (or None)

    Returns:
        The stored Slug, or None if nothing was written
    """
    if slug is None and collection is None:
        return None

    record = await get_for_entity(
        session,
        entity_type=entity_type,
        entity_id=entity_id,
    )

    if record is None:
        if slug is None:
            return None
        record = Slug(
            slugable_type=entity_type,
            slugable_id=entity_id,
            slug=slug,
            collection=collection,
            status=RecordStatus.ACTIVE.value,
        )
        session.add(record)
    else:
        if slug is not None:
            record.slug = slug
        record.collection = collection

    await session.flush()
    return record


async def soft_delete(
    session: AsyncSession,
    *,
    entity_type: str,
    entity_id: UUID,
) -> int:
    """
    Retire the active slug row of an entity (soft delete).

    Returns:
        Number of rows retired
    """
    result = await session.execute(
        update(Slug)
        .where(
            Slug.slugable_type == entity_type,
            Slug.slugable_id == entity_id,
            Slug.status == RecordStatus.ACTIVE.value,
        )
        .values(status=RecordStatus.RETIRED.value, deleted_at=datetime.now(UTC))
    )
    return result.rowcount


async def restore(
    session: AsyncSession,
    *,
    entity_type: str,
    entity_id: UUID,
) -> Slug | None:
    """
    Re-activate the most recent retired slug row of an entity.

    Callers must run the conflict check first; the partial unique index
    rejects a restore onto an owned (type, slug, collection).

    Returns:
        The restored Slug, or None if the entity has no retired slug
    """
    result = await session.execute(
        select(Slug)
        .where(
            Slug.slugable_type == entity_type,
            Slug.slugable_id == entity_id,
            Slug.status == RecordStatus.RETIRED.value,
        )
        .order_by(Slug.id.desc())
        .limit(1)
    )
    record = result.scalar_one_or_none()

    if record is None:
        return None

    record.status = RecordStatus.ACTIVE.value
    record.deleted_at = None
    await session.flush()
    return record


async def purge(
    session: AsyncSession,
    *,
    entity_type: str,
    entity_id: UUID,
) -> int:
    """
    Permanently delete every slug row (active or retired) of an entity.

    Returns:
        Number of rows deleted
    """
    result = await session.execute(
        delete(Slug).where(
            Slug.slugable_type == entity_type,
            Slug.slugable_id == entity_id,
        )
    )
    return result.rowcount


async def delete_for_entity(
    session: AsyncSession,
    *,
    entity_type: str,
    entity_id: UUID,
    collection: str | None = None,
) -> int:
    """
    Permanently delete the active slug row of an entity.

    Args:
        session: Database session
        entity_type: Slugable type discriminator
        entity_id: Slugable entity ID
        collection: If given, only delete when the row's collection matches

    Returns:
        Number of rows deleted
    """
    query = delete(Slug).where(
        Slug.slugable_type == entity_type,
        Slug.slugable_id == entity_id,
        Slug.status == RecordStatus.ACTIVE.value,
    )

    if collection is not None:
        query = query.where(Slug.collection == collection)

    result = await session.execute(query)
    return result.rowcount
