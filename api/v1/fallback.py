"""Catch-all route resolving request paths through the url store.

Mounted last, outside the API prefix, so every other route wins. An active
path dispatches UrlMatched and returns whatever a listener responded with;
a legacy path redirects permanently to its owner's current path.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db
from services import events
from services.exceptions import UrlNotFoundError
from services.url_resolver import Found, Redirect, resolve_path
from services.urls_service import describe_owner

logger = logging.getLogger(__name__)

router = APIRouter()


async def respond_with_owner(event: events.UrlMatched) -> None:
    """Default UrlMatched listener: describe the owner as JSON."""
    if event.response is None:
        owner = await describe_owner(event.url, event.urlable)
        event.respond(JSONResponse(owner.model_dump(mode="json")))


@router.get("/{path:path}", include_in_schema=False)
async def resolve_path_endpoint(
    path: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Resolve a request path.

    Returns:
        The UrlMatched listener's response, or a 301 to the current path

    Raises:
        404 if nothing owns the path or no listener handled it.
    """
    resolution = await resolve_path(db, path, request.url.query or None)

    if isinstance(resolution, Redirect):
        return RedirectResponse(resolution.target, status_code=301)

    if isinstance(resolution, Found):
        event = await events.dispatch(
            events.UrlMatched(
                request=request,
                url=resolution.url,
                urlable=resolution.entity,
                collection=resolution.url.collection,
            )
        )
        if event.response is not None:
            return event.response
        logger.debug("No listener handled %r", path)

    raise UrlNotFoundError()
