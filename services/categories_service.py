"""Service layer for Category business logic."""

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from models.category import Category, CategoryCreate, CategoryResponse, CategoryUpdate
from repos import categories_repo, products_repo, slugs_repo
from services import url_lifecycle_service, url_sync_service, urlable_registry
from services.unit_of_work import UnitOfWork
from services.url_sync_service import CascadeMode, CascadeReport, SaveOutcome


async def _get_or_404(session: AsyncSession, category_id: UUID) -> Category:
    category = await categories_repo.get_by_id(session, category_id=category_id)
    if not category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found",
        )
    return category


async def _validate_parent(
    session: AsyncSession,
    *,
    parent_id: UUID | None,
    category: Category | None = None,
) -> None:
    """
    Check that parent_id names an existing category that would not create a cycle.

    Raises:
        HTTPException: 404 if the parent does not exist, 400 on a cycle
    """
    if parent_id is None:
        return

    parent = await _get_or_404(session, parent_id)

    if category is None:
        return

    ancestors = await categories_repo.get_ancestors(session, parent)
    if parent.id == category.id or any(a.id == category.id for a in ancestors):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A category cannot be nested under itself or its descendants",
        )


async def to_response(session: AsyncSession, category: Category) -> CategoryResponse:
    """Category with its current slug and active url."""
    response = CategoryResponse.model_validate(category)
    return response.model_copy(update=await url_sync_service.url_fields(session, category))


async def get_category(session: AsyncSession, *, category_id: UUID) -> Category:
    return await _get_or_404(session, category_id)


async def list_categories(session: AsyncSession) -> list[Category]:
    return await categories_repo.list_all(session)


async def create_category(
    session: AsyncSession,
    *,
    payload: CategoryCreate,
    cascade_mode: CascadeMode = CascadeMode.ENABLED,
) -> SaveOutcome:
    """
    Create a category with its slug, then give it its first url version.

    Args:
        session: Database session
        payload: Category creation data (raw slug and collection)
        cascade_mode: Whether dependents are re-synced (a new category has none)

    Returns:
        SaveOutcome of the save

    Raises:
        HTTPException: 404 if the parent does not exist
        SlugConflictError: If the slug is taken; nothing is written
        UrlConflictError: If the full URL is taken; the category is kept without a url
    """
    await _validate_parent(session, parent_id=payload.parent_id)

    category = Category(
        title=payload.title,
        status=payload.status,
        type=payload.type,
        parent_id=payload.parent_id,
    )
    session.add(category)

    return await url_sync_service.save_with_url(
        session,
        category,
        slug=payload.slug,
        collection=payload.collection,
        cascade_mode=cascade_mode,
    )


async def update_category(
    session: AsyncSession,
    *,
    category_id: UUID,
    payload: CategoryUpdate,
    cascade_mode: CascadeMode = CascadeMode.ENABLED,
) -> SaveOutcome:
    """
    Update a category; slug, collection or parent changes move its url and,
    unless cascade_mode is DISABLED, the urls of everything nested under it.

    Only fields present in the payload are changed (parent_id may be set to
    null explicitly to make the category a root).

    Raises:
        HTTPException: 404 if the category or new parent does not exist,
            400 if the new parent would create a cycle
        SlugConflictError: If the new slug is taken; nothing is written
        UrlConflictError: If the new full URL is taken; fields and slug are kept
    """
    category = await _get_or_404(session, category_id)
    fields = payload.model_fields_set

    previous_url = await url_sync_service.capture_previous_url(session, category)

    if "parent_id" in fields:
        await _validate_parent(session, parent_id=payload.parent_id, category=category)
        category.parent_id = payload.parent_id

    for name in ("title", "status", "type"):
        value = getattr(payload, name)
        if name in fields and value is not None:
            setattr(category, name, value)

    slug = payload.slug if "slug" in fields else None
    collection = payload.collection if "collection" in fields else None

    # A new type re-resolves the collection unless one is given explicitly
    if "type" in fields and "collection" not in fields and category.type:
        collection = category.type

    # A new slug alone keeps the stored collection
    if slug is not None and collection is None:
        current = await slugs_repo.get_for_entity(
            session,
            entity_type=urlable_registry.require_for_entity(category).entity_type,
            entity_id=category.id,
        )
        if current is not None:
            collection = current.collection

    return await url_sync_service.save_with_url(
        session,
        category,
        slug=slug,
        collection=collection,
        cascade_mode=cascade_mode,
        previous_url=previous_url,
    )


async def delete_category(
    session: AsyncSession,
    *,
    category_id: UUID,
) -> CascadeReport:
    """
    Permanently delete a category with all of its slug and url rows.

    Child categories become roots and products are unfiled; their urls are
    recomputed after the delete commits.

    Returns:
        CascadeReport of the re-synced dependents

    Raises:
        HTTPException: 404 if category not found
    """
    category = await _get_or_404(session, category_id)
    urlable = urlable_registry.require_for_entity(category)

    refs = url_sync_service.dependent_refs(await urlable.list_dependents(session, category))
    origin = urlable.ref(category)

    async with UnitOfWork(session) as uow:
        await categories_repo.detach_children(session, parent_id=category.id)
        await products_repo.detach_from_category(session, category_id=category.id)
        await url_lifecycle_service.on_force_deleted(session, category)
        await categories_repo.delete(session, category)

        async def _resync():
            return await url_sync_service.sync_refs(session, refs, origin=origin)

        uow.after_commit(_resync)
        [report] = await uow.commit()

    return report
