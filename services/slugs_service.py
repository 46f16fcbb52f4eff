"""Service layer for direct slug operations (outside a normal entity save)."""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from repos import slugs_repo
from services import urlable_registry, url_sync_service
from services.exceptions import SlugNotFoundError, UnknownUrlableTypeError
from services.slug_normalizer import normalize_collection, normalize_slug
from services.url_sync_service import CascadeMode, SaveOutcome


def _require_type(entity_type: str) -> urlable_registry.Urlable:
    urlable = urlable_registry.get(entity_type)
    if urlable is None:
        raise UnknownUrlableTypeError(entity_type)
    return urlable


async def dispatch_slug(
    session: AsyncSession,
    entity: Any,
    *,
    slug: str | None,
    collection: str | None = None,
    cascade_mode: CascadeMode = CascadeMode.ENABLED,
) -> SaveOutcome:
    """
    Set or change an entity's slug and sync its url (and dependents).

    Raises:
        SlugConflictError: If the slug is taken; nothing is written
        UrlConflictError: If the resulting full URL is taken; the slug is kept
    """
    previous_url = await url_sync_service.capture_previous_url(session, entity)
    return await url_sync_service.save_with_url(
        session,
        entity,
        slug=slug,
        collection=collection,
        cascade_mode=cascade_mode,
        previous_url=previous_url,
    )


async def forget_slug(
    session: AsyncSession,
    entity: Any,
    *,
    collection: str | None = None,
) -> bool:
    """
    Delete an entity's slug row; its url rows are left untouched.

    Args:
        session: Database session
        entity: Urlable entity
        collection: If given, only forget the slug when it belongs to this collection

    Returns:
        True if a slug row was deleted
    """
    ref = urlable_registry.require_for_entity(entity).ref(entity)
    deleted = await slugs_repo.delete_for_entity(
        session,
        entity_type=ref.entity_type,
        entity_id=ref.entity_id,
        collection=normalize_collection(collection),
    )
    await session.commit()
    return deleted > 0


async def get_slug(
    session: AsyncSession,
    entity: Any,
    *,
    collection: str | None = None,
) -> str | None:
    """Current slug of an entity, optionally only when its collection matches."""
    ref = urlable_registry.require_for_entity(entity).ref(entity)
    record = await slugs_repo.get_for_entity(session, entity_type=ref.entity_type, entity_id=ref.entity_id)

    if record is None:
        return None

    collection = normalize_collection(collection)
    if collection is not None and record.collection != collection:
        return None

    return record.slug


async def find_by_slug(session: AsyncSession, entity_type: str, slug: str) -> Any | None:
    """Live entity of a type owning the slug in any collection."""
    urlable = _require_type(entity_type)
    normalized = normalize_slug(slug)
    if normalized is None:
        return None

    record = await slugs_repo.find_active_any_collection(session, entity_type=entity_type, slug=normalized)
    if record is None:
        return None

    return await urlable.load(session, record.slugable_id)


async def find_by_slug_or_fail(session: AsyncSession, entity_type: str, slug: str) -> Any:
    """
    Live entity of a type owning the slug.

    Raises:
        SlugNotFoundError: If no live entity owns the slug
    """
    entity = await find_by_slug(session, entity_type, slug)
    if entity is None:
        raise SlugNotFoundError()
    return entity


async def find_by_slug_and_collection(
    session: AsyncSession,
    entity_type: str,
    slug: str,
    collection: str | None,
) -> Any | None:
    """Live entity owning the slug within one collection (None matches no collection)."""
    urlable = _require_type(entity_type)
    normalized = normalize_slug(slug)
    if normalized is None:
        return None

    record = await slugs_repo.find_active(
        session,
        entity_type=entity_type,
        slug=normalized,
        collection=normalize_collection(collection),
    )
    if record is None:
        return None

    return await urlable.load(session, record.slugable_id)


async def is_slug_available(
    session: AsyncSession,
    *,
    entity_type: str,
    slug: str,
    collection: str | None = None,
    exclude_id: UUID | None = None,
) -> tuple[str | None, bool]:
    """
    Check whether a slug could be saved for an entity type.

    The slug is normalized exactly as on save; an empty result is always
    available because it skips the uniqueness check.

    Returns:
        (normalized slug, available)
    """
    _require_type(entity_type)
    normalized = normalize_slug(slug)
    if normalized is None:
        return None, True

    conflict = await slugs_repo.has_active_conflict(
        session,
        entity_type=entity_type,
        slug=normalized,
        collection=normalize_collection(collection),
        exclude_entity_id=exclude_id,
    )
    return normalized, not conflict


async def get_slug_record(
    session: AsyncSession,
    *,
    entity_type: str,
    entity_id: UUID,
    include_retired: bool = False,
):
    """
    Slug row of an entity.

    Raises:
        UnknownUrlableTypeError: If entity_type is not registered
        SlugNotFoundError: If the entity has no (active) slug
    """
    _require_type(entity_type)
    record = await slugs_repo.get_for_entity(
        session,
        entity_type=entity_type,
        entity_id=entity_id,
        include_retired=include_retired,
    )
    if record is None:
        raise SlugNotFoundError()
    return record
