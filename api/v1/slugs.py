"""Slug lookup endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db
from models.slug import SlugAvailabilityResponse, SlugResponse
from services.slug_normalizer import normalize_collection
from services.slugs_service import get_slug_record, is_slug_available

router = APIRouter()


@router.get("/slugs/availability", response_model=SlugAvailabilityResponse)
async def slug_availability_endpoint(
    entity_type: str = Query(...),
    slug: str = Query(...),
    collection: str | None = Query(None),
    exclude_id: UUID | None = Query(None, description="Entity being edited"),
    db: AsyncSession = Depends(get_db),
):
    """
    Check whether a slug is free for an entity type (and collection).

    The slug is normalized exactly as it would be on save; the normalized
    value is returned.
    """
    try:
        normalized, available = await is_slug_available(
            db,
            entity_type=entity_type,
            slug=slug,
            collection=collection,
            exclude_id=exclude_id,
        )
        return SlugAvailabilityResponse(
            slugable_type=entity_type,
            slug=normalized,
            collection=normalize_collection(collection),
            available=available,
        )
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to check slug: {str(e)}",
        )


@router.get("/slugs/{entity_type}/{entity_id}", response_model=SlugResponse)
async def get_slug_endpoint(
    entity_type: str,
    entity_id: UUID,
    include_retired: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """
    Slug row of an entity.

    Raises:
        404 if the type is unknown or the entity has no slug.
    """
    try:
        record = await get_slug_record(
            db,
            entity_type=entity_type,
            entity_id=entity_id,
            include_retired=include_retired,
        )
        return SlugResponse.model_validate(record)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch slug: {str(e)}",
        )
