"""Service layer for Product business logic."""

from datetime import datetime, UTC
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from models.product import Product, ProductCreate, ProductResponse, ProductUpdate
from repos import categories_repo, products_repo, slugs_repo
from services import url_lifecycle_service, url_sync_service, urlable_registry
from services.unit_of_work import UnitOfWork
from services.url_sync_service import SaveOutcome, UrlSyncResult


async def _get_or_404(
    session: AsyncSession,
    product_id: UUID,
    *,
    include_deleted: bool = False,
) -> Product:
    product = await products_repo.get_by_id(
        session,
        product_id=product_id,
        include_deleted=include_deleted,
    )
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )
    return product


async def _validate_category(session: AsyncSession, category_id: UUID | None) -> None:
    if category_id is None:
        return
    if await categories_repo.get_by_id(session, category_id=category_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found",
        )


async def to_response(session: AsyncSession, product: Product) -> ProductResponse:
    """Product with its current slug and active url."""
    response = ProductResponse.model_validate(product)
    return response.model_copy(update=await url_sync_service.url_fields(session, product))


async def get_product(
    session: AsyncSession,
    *,
    product_id: UUID,
    include_deleted: bool = False,
) -> Product:
    return await _get_or_404(session, product_id, include_deleted=include_deleted)


async def list_products(session: AsyncSession, *, include_deleted: bool = False) -> list[Product]:
    return await products_repo.list_all(session, include_deleted=include_deleted)


async def create_product(session: AsyncSession, *, payload: ProductCreate) -> SaveOutcome:
    """
    Create a product with its slug, then give it its first url version.

    Raises:
        HTTPException: 404 if the category does not exist
        SlugConflictError: If the slug is taken; nothing is written
        UrlConflictError: If the full URL is taken; the product is kept without a url
    """
    await _validate_category(session, payload.category_id)

    product = Product(title=payload.title, category_id=payload.category_id)
    session.add(product)

    return await url_sync_service.save_with_url(
        session,
        product,
        slug=payload.slug,
        collection=payload.collection,
    )


async def update_product(
    session: AsyncSession,
    *,
    product_id: UUID,
    payload: ProductUpdate,
) -> SaveOutcome:
    """
    Update a live product; only fields present in the payload change.

    Raises:
        HTTPException: 404 if product or category not found
        SlugConflictError: If the new slug is taken; nothing is written
        UrlConflictError: If the new full URL is taken; fields and slug are kept
    """
    product = await _get_or_404(session, product_id)
    fields = payload.model_fields_set

    previous_url = await url_sync_service.capture_previous_url(session, product)

    if "category_id" in fields:
        await _validate_category(session, payload.category_id)
        product.category_id = payload.category_id

    if "title" in fields and payload.title is not None:
        product.title = payload.title

    slug = payload.slug if "slug" in fields else None
    collection = payload.collection if "collection" in fields else None

    # A new slug alone keeps the stored collection
    if slug is not None and collection is None:
        current = await slugs_repo.get_for_entity(
            session,
            entity_type=urlable_registry.require_for_entity(product).entity_type,
            entity_id=product.id,
        )
        if current is not None:
            collection = current.collection

    return await url_sync_service.save_with_url(
        session,
        product,
        slug=slug,
        collection=collection,
        previous_url=previous_url,
    )


async def delete_product(session: AsyncSession, *, product_id: UUID) -> Product:
    """
    Soft delete a product; its slug and active url are retired so the old
    path keeps resolving to a redirect once the slug is reused elsewhere.

    Raises:
        HTTPException: 404 if product not found or already deleted
    """
    product = await _get_or_404(session, product_id)

    # Soft delete: set deleted_at
    product.deleted_at = datetime.now(UTC)
    await url_lifecycle_service.on_soft_deleted(session, product)

    await session.commit()
    await session.refresh(product)

    return product


async def restore_product(session: AsyncSession, *, product_id: UUID) -> tuple[Product, UrlSyncResult | None]:
    """
    Restore a soft-deleted product, re-activating its slug and url.

    Returns:
        (product, url sync result); the result is None if the product was not deleted

    Raises:
        HTTPException: 404 if product not found
        SlugConflictError: If its slug was taken meanwhile; nothing is written
        UrlConflictError: If its full URL was taken meanwhile; the product is
            restored without an active url
    """
    product = await _get_or_404(session, product_id, include_deleted=True)

    if product.deleted_at is None:
        return product, None

    async with UnitOfWork(session) as uow:
        product.deleted_at = None
        await session.flush()
        await url_lifecycle_service.on_restoring(session, product, uow)
        [(url_result, _cascade)] = await uow.commit()

    return product, url_result


async def force_delete_product(session: AsyncSession, *, product_id: UUID) -> None:
    """
    Permanently delete a product (live or soft-deleted) with every slug and url row.

    Raises:
        HTTPException: 404 if product not found
    """
    product = await _get_or_404(session, product_id, include_deleted=True)

    await url_lifecycle_service.on_force_deleted(session, product)
    await products_repo.delete(session, product)
    await session.commit()
