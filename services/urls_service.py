"""Service layer for url history and path lookups."""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from models.url import Url, UrlOwnerResponse
from repos import urls_repo
from services import events, urlable_registry, url_resolver
from services.exceptions import UnknownUrlableTypeError, UrlNotFoundError


async def get_history(
    session: AsyncSession,
    *,
    entity_type: str,
    entity_id: UUID,
    include_retired: bool = True,
) -> list[Url]:
    """
    Url versions of an entity, oldest first.

    Raises:
        UnknownUrlableTypeError: If entity_type is not registered
    """
    if urlable_registry.get(entity_type) is None:
        raise UnknownUrlableTypeError(entity_type)

    return await urls_repo.get_history(
        session,
        entity_type=entity_type,
        entity_id=entity_id,
        include_retired=include_retired,
    )


async def describe_owner(url: Url, entity: Any) -> UrlOwnerResponse:
    """Owner response for an active url; UrlableResource listeners describe the entity."""
    event = await events.dispatch(events.UrlableResource(urlable=entity, entity_type=url.urlable_type))
    return UrlOwnerResponse.model_validate(url).model_copy(update={"urlable": event.resource})


async def get_owner(session: AsyncSession, *, path: str) -> UrlOwnerResponse:
    """
    Owner of an active path, with the entity resource when a listener supplies one.

    Raises:
        UrlNotFoundError: If no live entity owns the path
    """
    resolution = await url_resolver.resolve_path(session, path)
    if not isinstance(resolution, url_resolver.Found):
        raise UrlNotFoundError()
    return await describe_owner(resolution.url, resolution.entity)


async def get_redirect_target(session: AsyncSession, *, path: str) -> str:
    """
    Current path for a legacy path.

    Raises:
        UrlNotFoundError: If the path is active, unknown, or its owner has no url
    """
    target = await url_resolver.resolve_redirect_target(session, path)
    if target is None:
        raise UrlNotFoundError()
    return target
