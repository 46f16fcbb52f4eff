"""Category endpoints."""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db
from models.category import CategoryCreate, CategoryResponse, CategoryUpdate
from services.categories_service import (
    create_category,
    delete_category,
    get_category,
    list_categories,
    to_response,
    update_category,
)
from services.url_sync_service import CascadeMode

logger = logging.getLogger(__name__)

router = APIRouter()


def _cascade_mode(cascade: bool) -> CascadeMode:
    return CascadeMode.ENABLED if cascade else CascadeMode.DISABLED


@router.get("/categories", response_model=List[CategoryResponse])
async def list_categories_endpoint(db: AsyncSession = Depends(get_db)):
    """List all categories with their current slug and url."""
    try:
        categories = await list_categories(db)
        return [await to_response(db, category) for category in categories]
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch categories: {str(e)}",
        )


@router.get("/categories/{category_id}", response_model=CategoryResponse)
async def get_category_endpoint(category_id: UUID, db: AsyncSession = Depends(get_db)):
    """
    Get a category by ID.

    Raises:
        404 if category not found.
    """
    try:
        category = await get_category(db, category_id=category_id)
        return await to_response(db, category)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch category: {str(e)}",
        )


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category_endpoint(
    category_data: CategoryCreate,
    cascade: bool = Query(True, description="Re-sync nested categories and products"),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a category.

    The slug is normalized server-side; the category gets url version 1 once it has a slug.
    """
    try:
        outcome = await create_category(db, payload=category_data, cascade_mode=_cascade_mode(cascade))
        return await to_response(db, outcome.entity)
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error creating category: {type(e).__name__}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to create category: {str(e)}",
        )


@router.put("/categories/{category_id}", response_model=CategoryResponse)
async def update_category_endpoint(
    category_id: UUID,
    category_data: CategoryUpdate,
    cascade: bool = Query(True, description="Re-sync nested categories and products"),
    db: AsyncSession = Depends(get_db),
):
    """
    Update a category.

    A changed slug, collection or parent moves the category's url; with
    cascade=false the nested categories and products keep their urls.
    """
    try:
        outcome = await update_category(
            db,
            category_id=category_id,
            payload=category_data,
            cascade_mode=_cascade_mode(cascade),
        )
        return await to_response(db, outcome.entity)
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error updating category: {type(e).__name__}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to update category: {str(e)}",
        )


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category_endpoint(category_id: UUID, db: AsyncSession = Depends(get_db)):
    """
    Permanently delete a category and its slug / url history.

    Children become root categories and products are unfiled.
    """
    try:
        await delete_category(db, category_id=category_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise HTTPException(
            status_code=500,
            detail=f"Failed to delete category: {str(e)}",
        )
