"""Repository for Url database operations (the versioned path store)."""

from datetime import datetime, UTC
from typing import Iterable
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.record_status import RecordStatus
from models.url import Url


def _paths(full_url: str | Iterable[str]) -> list[str]:
    if isinstance(full_url, str):
        return [full_url]
    return [path for path in full_url]


async def get_active(
    session: AsyncSession,
    *,
    entity_type: str,
    entity_id: UUID,
) -> Url | None:
    """
    Get the active url version of an entity.

    Args:
        session: Database session
        entity_type: Urlable type discriminator
        entity_id: Urlable entity ID

    Returns:
        Active Url if found, None otherwise
    """
    query = (
        select(Url)
        .where(
            Url.urlable_type == entity_type,
            Url.urlable_id == entity_id,
            Url.status == RecordStatus.ACTIVE.value,
        )
        .order_by(Url.version.desc(), Url.id.desc())
        .limit(1)
    )

    result = await session.execute(query)
    return result.scalar_one_or_none()


async def get_history(
    session: AsyncSession,
    *,
    entity_type: str,
    entity_id: UUID,
    include_retired: bool = True,
) -> list[Url]:
    """
    List the url versions of an entity, ordered by version ascending.

    Args:
        session: Database session
        entity_type: Urlable type discriminator
        entity_id: Urlable entity ID
        include_retired: If False, only the active version is returned

    Returns:
        List of Url records, ordered by version ASC
    """
    query = select(Url).where(
        Url.urlable_type == entity_type,
        Url.urlable_id == entity_id,
    )

    if not include_retired:
        query = query.where(Url.status == RecordStatus.ACTIVE.value)

    result = await session.execute(query.order_by(Url.version.asc(), Url.id.asc()))
    return list(result.scalars().all())


async def get_latest_version(
    session: AsyncSession,
    *,
    entity_type: str,
    entity_id: UUID,
) -> int:
    """Highest version stored for an entity across all rows (0 if none)."""
    result = await session.execute(
        select(func.max(Url.version)).where(
            Url.urlable_type == entity_type,
            Url.urlable_id == entity_id,
        )
    )
    return result.scalar_one_or_none() or 0


async def create_version(
    session: AsyncSession,
    *,
    entity_type: str,
    entity_id: UUID,
    full_url: str,
    collection: str | None,
    version: int,
) -> Url:
    """
    Insert a new active url version.

    The caller guarantees version = previous + 1 (or 1) and that the previous
    active row was retired in the same transaction.

    Returns:
        Created Url
    """
    url = Url(
        urlable_type=entity_type,
        urlable_id=entity_id,
        full_url=full_url,
        collection=collection,
        version=version,
        status=RecordStatus.ACTIVE.value,
    )
    session.add(url)
    await session.flush()
    return url


async def retire_active(
    session: AsyncSession,
    *,
    entity_type: str,
    entity_id: UUID,
) -> int:
    """
    Retire the active url version of an entity; other rows are left alone.

    Returns:
        Number of rows retired (0 or 1)
    """
    result = await session.execute(
        update(Url)
        .where(
            Url.urlable_type == entity_type,
            Url.urlable_id == entity_id,
            Url.status == RecordStatus.ACTIVE.value,
        )
        .values(status=RecordStatus.RETIRED.value, deleted_at=datetime.now(UTC))
    )
    return result.rowcount


async def purge_retired_duplicates(session: AsyncSession, *, full_url: str) -> int:
    """
    Permanently delete retired rows (of any entity) whose full_url matches.

    Run right before a row with that full_url is activated, so a reused path
    never leaves dead duplicates behind.

    Returns:
        Number of rows deleted
    """
    result = await session.execute(
        delete(Url).where(
            Url.full_url == full_url,
            Url.status == RecordStatus.RETIRED.value,
        )
    )
    return result.rowcount


async def find_active_by_path(
    session: AsyncSession,
    *,
    full_url: str | Iterable[str],
    exclude_entity: tuple[str, UUID] | None = None,
) -> Url | None:
    """
    Find the active url row for a full URL (or any of several candidates).

    Args:
        session: Database session
        full_url: Full URL or candidate variants
        exclude_entity: Optional (entity_type, entity_id) to ignore

    Returns:
        Active Url (highest version, then most recent) or None
    """
    query = select(Url).where(
        Url.full_url.in_(_paths(full_url)),
        Url.status == RecordStatus.ACTIVE.value,
    )

    if exclude_entity is not None:
        entity_type, entity_id = exclude_entity
        query = query.where(
            ~((Url.urlable_type == entity_type) & (Url.urlable_id == entity_id))
        )

    result = await session.execute(
        query.order_by(Url.version.desc(), Url.id.desc()).limit(1)
    )
    return result.scalar_one_or_none()


async def find_most_recent_retired_by_path(
    session: AsyncSession,
    *,
    full_url: str | Iterable[str],
) -> Url | None:
    """Most recently written retired row for a full URL (or candidates), by id."""
    query = (
        select(Url)
        .where(
            Url.full_url.in_(_paths(full_url)),
            Url.status == RecordStatus.RETIRED.value,
        )
        .order_by(Url.id.desc())
        .limit(1)
    )

    result = await session.execute(query)
    return result.scalar_one_or_none()


async def update_collection(
    session: AsyncSession,
    url: Url,
    *,
    collection: str | None,
) -> Url:
    """Correct the collection of an url row in place (no version bump)."""
    url.collection = collection
    await session.flush()
    return url


async def purge_all(
    session: AsyncSession,
    *,
    entity_type: str,
    entity_id: UUID,
) -> int:
    """
    Permanently delete every url version (active and retired) of an entity.

    Returns:
        Number of rows deleted
    """
    result = await session.execute(
        delete(Url).where(
            Url.urlable_type == entity_type,
            Url.urlable_id == entity_id,
        )
    )
    return result.rowcount
