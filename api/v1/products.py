"""Product endpoints (soft delete, restore, permanent delete)."""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db
from models.product import ProductCreate, ProductResponse, ProductUpdate
from services.products_service import (
    create_product,
    delete_product,
    force_delete_product,
    get_product,
    list_products,
    restore_product,
    to_response,
    update_product,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/products", response_model=List[ProductResponse])
async def list_products_endpoint(
    include_deleted: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """List products (excluding soft-deleted unless include_deleted)."""
    try:
        products = await list_products(db, include_deleted=include_deleted)
        return [await to_response(db, product) for product in products]
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch products: {str(e)}",
        )


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product_endpoint(product_id: UUID, db: AsyncSession = Depends(get_db)):
    """
    Get a product by ID.

    Raises:
        404 if product not found or deleted.
    """
    try:
        product = await get_product(db, product_id=product_id)
        return await to_response(db, product)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch product: {str(e)}",
        )


@router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product_endpoint(product_data: ProductCreate, db: AsyncSession = Depends(get_db)):
    """Create a product; its url is its category's url followed by its slug."""
    try:
        outcome = await create_product(db, payload=product_data)
        return await to_response(db, outcome.entity)
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error creating product: {type(e).__name__}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to create product: {str(e)}",
        )


@router.put("/products/{product_id}", response_model=ProductResponse)
async def update_product_endpoint(
    product_id: UUID,
    product_data: ProductUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a product; a new slug or category moves its url to a new version."""
    try:
        outcome = await update_product(db, product_id=product_id, payload=product_data)
        return await to_response(db, outcome.entity)
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error updating product: {type(e).__name__}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to update product: {str(e)}",
        )


@router.delete("/products/{product_id}", response_model=ProductResponse)
async def delete_product_endpoint(product_id: UUID, db: AsyncSession = Depends(get_db)):
    """
    Soft delete a product.

    Its slug and url are retired; the url history is kept.
    """
    try:
        product = await delete_product(db, product_id=product_id)
        return await to_response(db, product)
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise HTTPException(
            status_code=500,
            detail=f"Failed to delete product: {str(e)}",
        )


@router.post("/products/{product_id}/restore", response_model=ProductResponse)
async def restore_product_endpoint(product_id: UUID, db: AsyncSession = Depends(get_db)):
    """
    Restore a soft-deleted product.

    Raises:
        409 if its slug or url was claimed by another record meanwhile.
    """
    try:
        product, _ = await restore_product(db, product_id=product_id)
        return await to_response(db, product)
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise HTTPException(
            status_code=500,
            detail=f"Failed to restore product: {str(e)}",
        )


@router.delete("/products/{product_id}/force", status_code=status.HTTP_204_NO_CONTENT)
async def force_delete_product_endpoint(product_id: UUID, db: AsyncSession = Depends(get_db)):
    """Permanently delete a product with its whole slug and url history."""
    try:
        await force_delete_product(db, product_id=product_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise HTTPException(
            status_code=500,
            detail=f"Failed to delete product: {str(e)}",
        )
