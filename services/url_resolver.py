"""Inbound path resolution: active owner, legacy redirect, or not found."""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

import config
from models.url import Url
from repos import urls_repo
from services import urlable_registry
from services.exceptions import UrlNotFoundError
from services.urlable_registry import EntityRef

logger = logging.getLogger(__name__)


@dataclass
class Found:
    entity: Any
    url: Url


@dataclass
class Redirect:
    """Permanent redirect to the owner's current path (query string preserved)."""

    target: str
    url: Url | None = None


@dataclass
class NotFound:
    pass


Resolution = Found | Redirect | NotFound


def split_path(raw_path: str, query_string: str | None = None) -> tuple[str, str | None]:
    """Separate an inline query string from the path unless one is given."""
    path, sep, inline_query = (raw_path or "").partition("?")
    if query_string is None and sep:
        query_string = inline_query
    return path.strip().strip("/"), (query_string or None)


def candidate_paths(path: str) -> list[str]:
    """Stored forms a request path may match, bare form first."""
    if not path:
        return ["/", ""]

    candidates = [path, f"{path}/", f"/{path}", f"/{path}/"]
    return list(dict.fromkeys(candidates))


def redirect_target(full_url: str, query_string: str | None = None) -> str:
    target = "/" + full_url.strip("/")
    if query_string:
        target = f"{target}?{query_string}"
    return target


async def _load_owner(session: AsyncSession, url: Url) -> Any | None:
    entity = await urlable_registry.load(session, EntityRef(url.urlable_type, url.urlable_id))
    if entity is None:
        logger.warning("Active url %r points at missing %s:%s", url.full_url, url.urlable_type, url.urlable_id)
    return entity


async def resolve_path(
    session: AsyncSession,
    raw_path: str,
    query_string: str | None = None,
) -> Resolution:
    """
    Resolve a request path.

    1. an active row matching any candidate form -> Found(owner, url)
    2. else the most recent retired row -> Redirect to its owner's current
       active path, if the owner has one and it differs from the request
    3. otherwise NotFound

    Args:
        session: Database session
        raw_path: Request path, optionally with "?query"
        query_string: Query string to carry through a redirect

    Returns:
        Found, Redirect or NotFound
    """
    path, query_string = split_path(raw_path, query_string)

    if len(path) > config.settings.URL_MAX_LENGTH:
        return NotFound()

    candidates = candidate_paths(path)

    active = await urls_repo.find_active_by_path(session, full_url=candidates)
    if active is not None:
        entity = await _load_owner(session, active)
        return Found(entity, active) if entity is not None else NotFound()

    retired = await urls_repo.find_most_recent_retired_by_path(session, full_url=candidates)
    if retired is None:
        return NotFound()

    current = await urls_repo.get_active(
        session,
        entity_type=retired.urlable_type,
        entity_id=retired.urlable_id,
    )
    if current is None or current.full_url.strip("/") == path:
        return NotFound()

    logger.debug("Legacy path %r redirects to %r", path, current.full_url)
    return Redirect(redirect_target(current.full_url, query_string), current)


async def resolve_owner(session: AsyncSession, path: str) -> Any | None:
    """Entity owning the active path, or None."""
    resolution = await resolve_path(session, path)
    return resolution.entity if isinstance(resolution, Found) else None


async def resolve_owner_or_fail(session: AsyncSession, path: str) -> Any:
    """
    Entity owning the active path.

    Raises:
        UrlNotFoundError: If no active path matches
    """
    entity = await resolve_owner(session, path)
    if entity is None:
        raise UrlNotFoundError()
    return entity


async def resolve_active_by_full_url(session: AsyncSession, entity_type: str, path: str) -> Any | None:
    """Entity of the given type owning the exact active full URL, or None."""
    path, _ = split_path(path)
    url = await urls_repo.find_active_by_path(session, full_url=path)

    if url is None or url.urlable_type != entity_type:
        return None

    return await _load_owner(session, url)


async def resolve_redirect_target(
    session: AsyncSession,
    path: str,
    query_string: str | None = None,
) -> str | None:
    """Redirect target for a legacy path, or None if it is active or unknown."""
    resolution = await resolve_path(session, path, query_string)
    return resolution.target if isinstance(resolution, Redirect) else None
