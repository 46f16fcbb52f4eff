"""Slug / url bookkeeping for entity soft delete, restore and permanent delete.

The hooks run inside the entity's own write transaction and never commit;
the calling service commits (restore through a UnitOfWork so the url sync
runs after that commit).
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from repos import slugs_repo, urls_repo
from services import urlable_registry, url_sync_service
from services.exceptions import SlugConflictError
from services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


async def on_soft_deleted(session: AsyncSession, entity: Any) -> None:
    """Retire the entity's slug row and active url; history stays for redirects."""
    ref = urlable_registry.require_for_entity(entity).ref(entity)

    slugs = await slugs_repo.soft_delete(session, entity_type=ref.entity_type, entity_id=ref.entity_id)
    urls = await urls_repo.retire_active(session, entity_type=ref.entity_type, entity_id=ref.entity_id)

    logger.info("Soft-deleted %s: retired %d slug(s), %d url(s)", ref, slugs, urls)


async def on_restoring(
    session: AsyncSession,
    entity: Any,
    uow: UnitOfWork | None = None,
) -> None:
    """
    Re-activate the entity's slug and queue a url sync for after the commit.

    Args:
        session: Database session
        entity: Entity being restored (its own deleted flag already cleared)
        uow: Unit of work receiving the deferred url sync; without one the
            caller is responsible for syncing after commit

    Raises:
        SlugConflictError: If another active entity took the slug meanwhile
    """
    ref = urlable_registry.require_for_entity(entity).ref(entity)

    record = await slugs_repo.get_for_entity(
        session,
        entity_type=ref.entity_type,
        entity_id=ref.entity_id,
        include_retired=True,
    )

    if record is not None and not record.is_active:
        if await slugs_repo.has_active_conflict(
            session,
            entity_type=ref.entity_type,
            slug=record.slug,
            collection=record.collection,
            exclude_entity_id=ref.entity_id,
        ):
            raise SlugConflictError(record.slug, record.collection)

        await slugs_repo.restore(session, entity_type=ref.entity_type, entity_id=ref.entity_id)
        logger.info("Restored slug %r of %s", record.slug, ref)

    if uow is not None:
        async def _sync():
            return await url_sync_service.sync_entity(session, entity, slug_changed=True)

        uow.after_commit(_sync)


async def on_force_deleted(session: AsyncSession, entity: Any) -> None:
    """Permanently remove every slug and url row of the entity (all versions)."""
    ref = urlable_registry.require_for_entity(entity).ref(entity)

    slugs = await slugs_repo.purge(session, entity_type=ref.entity_type, entity_id=ref.entity_id)
    urls = await urls_repo.purge_all(session, entity_type=ref.entity_type, entity_id=ref.entity_id)

    logger.info("Purged %s: %d slug row(s), %d url row(s)", ref, slugs, urls)
