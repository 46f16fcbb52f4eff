"""Url history, lookup and rebuild endpoints."""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db
from models.url import UrlOwnerResponse, UrlRebuildResponse, UrlRedirectResponse, UrlResponse
from services.url_rebuild_service import rebuild_all_urls
from services.urls_service import get_history, get_owner, get_redirect_target

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/urls/history/{entity_type}/{entity_id}", response_model=List[UrlResponse])
async def url_history_endpoint(
    entity_type: str,
    entity_id: UUID,
    include_retired: bool = Query(True),
    db: AsyncSession = Depends(get_db),
):
    """
    Url versions of an entity, ordered by version.

    Raises:
        404 if the entity type is not registered.
    """
    try:
        urls = await get_history(
            db,
            entity_type=entity_type,
            entity_id=entity_id,
            include_retired=include_retired,
        )
        return [UrlResponse.model_validate(url) for url in urls]
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch url history: {str(e)}",
        )


@router.get("/urls/owner", response_model=UrlOwnerResponse)
async def url_owner_endpoint(
    path: str = Query(..., description="Request path, with or without slashes"),
    db: AsyncSession = Depends(get_db),
):
    """
    Owner of an active path.

    Raises:
        404 if no live entity owns the path.
    """
    try:
        return await get_owner(db, path=path)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to resolve path: {str(e)}",
        )


@router.get("/urls/redirect", response_model=UrlRedirectResponse)
async def url_redirect_endpoint(
    path: str = Query(..., description="Legacy request path"),
    db: AsyncSession = Depends(get_db),
):
    """
    Current path for a legacy (retired) path.

    Raises:
        404 if the path is active, unknown, or its owner has no current url.
    """
    try:
        target = await get_redirect_target(db, path=path)
        return UrlRedirectResponse(requested=path, target=target)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to resolve redirect: {str(e)}",
        )


@router.post("/urls/rebuild/{entity_type}", response_model=UrlRebuildResponse)
async def rebuild_urls_endpoint(
    entity_type: str,
    batch_size: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    """
    Recompute the full url of every entity of a type.

    Entities whose url is taken by another record are counted as failed.
    """
    try:
        report = await rebuild_all_urls(db, entity_type, batch_size=batch_size)
        return UrlRebuildResponse.model_validate(report)
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error rebuilding {entity_type} urls: {type(e).__name__}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to rebuild urls: {str(e)}",
        )
